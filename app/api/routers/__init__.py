"""
app/api/routers package marker.
"""

from app.api.routers.csv_upload import router as csv_upload_router
from app.api.routers.upload_events import router as upload_events_router

__all__ = [
    "csv_upload_router",
    "upload_events_router",
]
