"""
Pydantic Schemas - Wire and storage models for progress.

These models define:
- The persisted shape of progress (local and server-side)
- The request/response contract of the progress server

Error Codes:
- PAYLOAD_TOO_LARGE: Serialized progress exceeds the storage ceiling
- VALIDATION_ERROR: Request body did not match the schema
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class TokenRecord(BaseModel):
    """A persisted token: identity and position only."""
    id: str
    name: str
    x: float
    y: float

    model_config = {"from_attributes": True}


class ProgressRecord(BaseModel):
    """Stored progress for one user."""
    discovered: list[str] = Field(default_factory=list)
    elements: list[TokenRecord] = Field(default_factory=list)

    def limited(self, token_limit: int) -> "ProgressRecord":
        """Copy keeping only the most recent `token_limit` tokens."""
        elements = self.elements[-token_limit:] if token_limit > 0 else []
        return ProgressRecord(discovered=list(self.discovered), elements=elements)

    def encoded(self) -> str:
        return self.model_dump_json()

    def encoded_size(self) -> int:
        return len(self.encoded().encode("utf-8"))


# =============================================================================
# Requests / Responses
# =============================================================================

class InitResponse(BaseModel):
    """Session start data for a client."""
    discovered: list[str] = Field(default_factory=list, description="Remote discovered names")
    elements: list[TokenRecord] = Field(default_factory=list, description="Remote table snapshot")
    username: Optional[str] = None


class SaveProgressRequest(BaseModel):
    """Full progress push from a client."""
    discovered: list[str]
    elements: list[TokenRecord] = Field(default_factory=list)


class SaveProgressResponse(BaseModel):
    """Result of a progress push."""
    success: bool
    saved_elements: int = 0
    size_bytes: int = 0


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    environment: str
