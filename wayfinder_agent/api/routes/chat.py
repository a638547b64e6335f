"""
Conversation endpoints.

Implements /v1/chat for running a turn, /v1/history for reading and
resetting the conversation, and /v1/tools for listing the available tools.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from ...errors import ProviderError, TurnInProgressError
from ...models import history_to_list
from ...orchestration import OrchestrationLoop
from ...tracing import get_tracing_client
from ..dependencies import get_agent
from ..schemas import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HistoryResponse,
    InvocationSchema,
    OutcomeSchema,
    ToolInfo,
    ToolListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

PROVIDER_ERROR_MESSAGE = "Something went wrong while contacting the assistant. Please try again."


@router.post(
    "/v1/chat",
    response_model=ChatResponse,
    responses={
        409: {"model": ErrorResponse, "description": "A turn is already in progress"},
        502: {"model": ErrorResponse, "description": "Model provider failure"},
    },
    summary="Send a message",
    description=(
        "Run one conversation turn. The assistant may call venue tools several "
        "times before answering."
    ),
)
async def chat(
    request: ChatRequest,
    agent: OrchestrationLoop = Depends(get_agent),
) -> ChatResponse:
    """Process a user message through the orchestration loop."""
    id_prefix = f"[{agent.execution_id}] " if agent.execution_id else ""
    logger.info(f"{id_prefix}Processing chat request: {request.message[:100]}")

    try:
        result = await agent.handle_turn(request.message)
    except ProviderError as e:
        logger.error(
            f"{id_prefix}Provider failure ({type(e).__name__}, status {e.status_code}): {e}"
        )
        raise HTTPException(status_code=502, detail=PROVIDER_ERROR_MESSAGE)
    except TurnInProgressError as e:
        logger.warning(f"{id_prefix}Rejected concurrent turn: {e}")
        raise HTTPException(status_code=409, detail="A turn is already in progress.")
    finally:
        _flush_tracing()

    return ChatResponse(
        text=result.final_text,
        invocations=[InvocationSchema(**inv.to_dict()) for inv in result.invocations],
        outcomes=[OutcomeSchema(**outcome.to_dict()) for outcome in result.outcomes],
        iterations=result.iterations,
        history=history_to_list(agent.get_history()) if request.include_history else None,
    )


@router.get(
    "/v1/history",
    response_model=HistoryResponse,
    summary="Get conversation history",
)
def get_history(agent: OrchestrationLoop = Depends(get_agent)) -> HistoryResponse:
    """Return the conversation history in its persisted layout."""
    return HistoryResponse(messages=history_to_list(agent.get_history()))


@router.delete(
    "/v1/history",
    status_code=204,
    summary="Reset conversation",
)
def reset_history(agent: OrchestrationLoop = Depends(get_agent)) -> Response:
    """Clear the conversation history."""
    agent.reset_history()
    logger.info("Conversation history cleared")
    return Response(status_code=204)


@router.get(
    "/v1/tools",
    response_model=ToolListResponse,
    summary="List tools",
)
def list_tools(agent: OrchestrationLoop = Depends(get_agent)) -> ToolListResponse:
    """Return the tools the assistant can call."""
    return ToolListResponse(
        tools=[
            ToolInfo(name=tool.name, description=tool.description)
            for tool in agent.registry.list()
        ]
    )


def _flush_tracing() -> None:
    """Flush tracing client if available."""
    client = get_tracing_client()
    if client:
        client.flush()
