"""Service layer for request handling."""

from .sync_service import SyncRequest, SyncResponse, handle_sync_request

__all__ = [
    "SyncRequest",
    "SyncResponse",
    "handle_sync_request",
]
