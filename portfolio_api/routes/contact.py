"""
Contact routes: public contact form and the admin message inbox.
"""

import logging

from fastapi import APIRouter, Request

from ..auth import AdminUser
from ..exceptions import parse_id
from ..rate_limit import client_ip, get_contact_rate_limit, limiter
from ..schemas import (
    ContactMessageResponse,
    ContactRequest,
    ContactSubmissionResponse,
    ContactUpdateRequest,
    envelope,
    paginated,
)
from ..services import ContactServiceDep
from ..validators import ListParamsDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


# ─────────────────────────────────────────────────────────────
# Public
# ─────────────────────────────────────────────────────────────

@router.post("", status_code=201)
@limiter.limit(get_contact_rate_limit())
async def submit_contact(
    request: Request,
    body: ContactRequest,
    service: ContactServiceDep,
) -> dict:
    """Accept a contact form submission."""
    message = service.submit(body, ip_address=client_ip(request), user_agent=request.headers.get("user-agent"))
    return envelope(
        {"contact_message": ContactSubmissionResponse.from_db(message).model_dump()},
        message="Thank you for your message! I'll get back to you soon.",
    )


# ─────────────────────────────────────────────────────────────
# Admin
# ─────────────────────────────────────────────────────────────

@router.get("/messages")
async def list_messages(
    service: ContactServiceDep,
    admin: AdminUser,
    params: ListParamsDep,
    status: str | None = None,
) -> dict:
    page = service.list_messages(params, status=status)
    items = [ContactMessageResponse.from_db(m).model_dump() for m in page.items]
    return paginated(page, "messages", items)


@router.get("/stats")
async def contact_stats(service: ContactServiceDep, admin: AdminUser) -> dict:
    return envelope(service.get_stats())


@router.get("/messages/{message_id}")
async def get_message(message_id: str, service: ContactServiceDep, admin: AdminUser) -> dict:
    """Get a message; opening a new message marks it read."""
    message = service.open_message(parse_id(message_id, "Contact message not found"))
    return envelope({"message": ContactMessageResponse.from_db(message).model_dump()})


@router.patch("/messages/{message_id}")
async def update_message(
    message_id: str,
    body: ContactUpdateRequest,
    service: ContactServiceDep,
    admin: AdminUser,
) -> dict:
    message = service.update_message(parse_id(message_id, "Contact message not found"), body, admin)
    return envelope(
        {"message": ContactMessageResponse.from_db(message).model_dump()},
        message="Message updated successfully",
    )


@router.delete("/messages/{message_id}")
async def delete_message(message_id: str, service: ContactServiceDep, admin: AdminUser) -> dict:
    service.delete_message(parse_id(message_id, "Contact message not found"), admin)
    return envelope(message="Message deleted successfully")
