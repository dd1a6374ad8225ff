"""
app/api/routers package marker.
"""

from app.api.routers.sync_router import router as sync_router
from app.api.routers.upload_router import router as upload_router

__all__ = [
    "sync_router",
    "upload_router",
]
