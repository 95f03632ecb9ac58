"""Main entrypoint

Exposes the ASGI app assembled in `presentation.main`, with the Socket.IO
messaging hub mounted beside the HTTP API. Run locally with:

    uvicorn main:socket_app --reload

Keep application logic in `presentation`, `core`, and
`infrastructure` to preserve a clean architecture.
"""
from core.config import settings
from presentation.main import app, socket_app

__all__ = ["app", "socket_app"]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:socket_app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
