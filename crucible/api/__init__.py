"""
API Module - Progress server.

Stores per-user progress so a player can continue on another device:
1. GET /api/v1/init returns stored discoveries and table
2. POST /api/v1/progress replaces them

Users are identified by request headers only. There are no accounts.

The service and app live in crucible.api.service and crucible.api.app;
only the schemas are exported here since the sync layer shares them.
"""

from .schemas import (
    # Enums
    ErrorCode,
    # Shared
    TokenRecord,
    ProgressRecord,
    # Requests / Responses
    InitResponse,
    SaveProgressRequest,
    SaveProgressResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ErrorCode",
    "TokenRecord",
    "ProgressRecord",
    "InitResponse",
    "SaveProgressRequest",
    "SaveProgressResponse",
    "ErrorResponse",
    "HealthResponse",
]
