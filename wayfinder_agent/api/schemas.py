"""
Pydantic schemas for the Wayfinder API.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for /v1/chat."""

    message: str = Field(..., min_length=1, description="The user's message")
    include_history: bool = Field(
        default=False, description="Include the full conversation history in the response"
    )

    model_config = {
        "json_schema_extra": {
            "example": {"message": "Where is the nearest coffee shop?"}
        }
    }


class InvocationSchema(BaseModel):
    """A tool call the model requested during the turn."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    continuation_token: Optional[str] = None


class OutcomeSchema(BaseModel):
    """The result of one tool call."""

    name: str
    value: Any = None
    error: Optional[str] = None


class ChatResponse(BaseModel):
    """Response body for /v1/chat."""

    text: str = Field(..., description="The assistant's final answer")
    invocations: list[InvocationSchema] = Field(default_factory=list)
    outcomes: list[OutcomeSchema] = Field(default_factory=list)
    iterations: int = Field(..., description="Model calls made during the turn")
    history: Optional[list[dict[str, Any]]] = Field(
        default=None, description="Conversation history, when requested"
    )


class HistoryResponse(BaseModel):
    """The conversation history in its persisted layout."""

    messages: list[dict[str, Any]]


class ToolInfo(BaseModel):
    name: str
    description: str


class ToolListResponse(BaseModel):
    tools: list[ToolInfo]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = "healthy"
    version: str
    model: str


class ErrorResponse(BaseModel):
    """Error response format."""

    detail: str
