"""
Miscellaneous routes: health check.
"""

from fastapi import APIRouter

from .. import __version__
from ..config import config, state
from ..database.converters import utcnow

router = APIRouter(tags=["misc"])


# ─────────────────────────────────────────────────────────────
# Health Check
# ─────────────────────────────────────────────────────────────

@router.get("/health")
async def health_check() -> dict:
    """API health check."""
    return {
        "status": "success",
        "message": "Portfolio API is running",
        "timestamp": utcnow().isoformat(),
        "environment": config.ENVIRONMENT,
        "version": __version__,
        "database": "connected" if state.db and state.db.ping() else "disconnected",
    }
