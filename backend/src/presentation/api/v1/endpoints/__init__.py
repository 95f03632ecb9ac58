"""
API V1 Endpoints Package
Exports routers used by main app
"""
from .pipeline import router as pipeline_router
from .messaging import router as messaging_router
from .documents import router as documents_router

__all__ = [
    "pipeline_router",
    "messaging_router",
    "documents_router",
]
