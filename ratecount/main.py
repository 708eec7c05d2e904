import uvicorn

from ratecount.core.app_factory import create_app
from ratecount.core.config import settings

app = create_app()


def run() -> None:
    """Serve the app; uvicorn handles SIGINT/SIGTERM and the shutdown grace period."""
    uvicorn.run(
        "ratecount.main:app",
        host=settings.app.host,
        port=settings.app.port,
        timeout_graceful_shutdown=max(1, round(settings.app.shutdown_grace_seconds)),
    )
