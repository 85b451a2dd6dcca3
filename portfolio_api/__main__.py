"""
Run the API with uvicorn: python -m portfolio_api
"""

import uvicorn

from .config import config


def main():
    uvicorn.run(
        "portfolio_api.server:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=not config.is_production(),
    )


if __name__ == "__main__":
    main()
