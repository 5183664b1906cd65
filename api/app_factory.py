"""Entry points for the API app and its uvicorn runner."""
import uvicorn

from api.app import app, create_app
from api.core.config import get_settings

__all__ = ["app", "create_app", "run"]


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "api.app:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_prod,
        log_level=settings.log_level.lower(),
    )
