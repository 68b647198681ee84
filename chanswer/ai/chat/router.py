"""FastAPI router for chat turns streamed as Server-Sent Events."""

import asyncio
from contextlib import suppress
from typing import Annotated, Any, AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from chanswer.ai.base import SSEEvent
from chanswer.ai.chat.config import get_chat_settings
from chanswer.ai.chat.dependencies import get_chat_service
from chanswer.ai.chat.events import StreamEvent, TextEvent, to_sse
from chanswer.ai.chat.exceptions import ChatError
from chanswer.ai.chat.schemas import (
    ChatRequest,
    DeleteChatResponse,
    ToolInvocationRequest,
)
from chanswer.ai.chat.service import ChatTurnService
from chanswer.auth.dependencies import get_current_user_optional
from chanswer.auth.schemas import User
from chanswer.db.dependencies import get_chat_store
from chanswer.db.store import ChatStore
from chanswer.utils.logger import logger

router = APIRouter(prefix="/chat", tags=["Chat"])


def _http_error(error: ChatError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


async def sse_with_heartbeat(
    events: AsyncGenerator[StreamEvent, None],
    heartbeat_interval: float,
    chat_id: str | None = None,
) -> AsyncGenerator[str, None]:
    """
    Format events as SSE, sending a heartbeat whenever the producer is idle.

    Ends with a `done` event. Stopping early (client disconnect) closes the
    event generator, which cancels the turn.
    """
    accumulated_output = ""
    events_iter = events.__aiter__()
    next_event_task: asyncio.Task | None = None

    try:
        next_event_task = asyncio.create_task(events_iter.__anext__())
        while True:
            done, _ = await asyncio.wait({next_event_task}, timeout=heartbeat_interval)

            if next_event_task not in done:
                # Keep proxies from closing an idle connection
                yield SSEEvent(event="heartbeat", data="keep-alive").format()
                continue

            try:
                event = next_event_task.result()
            except StopAsyncIteration:
                break

            next_event_task = asyncio.create_task(events_iter.__anext__())

            if isinstance(event, TextEvent):
                accumulated_output += event.content
            yield to_sse(event).format()

        yield SSEEvent(event="done", data="complete").format()

        if accumulated_output:
            logger.info("[AGENT_OUTPUT]", chat_id=chat_id, output=accumulated_output)

    finally:
        if next_event_task is not None and not next_event_task.done():
            next_event_task.cancel()
            with suppress(asyncio.CancelledError, StopAsyncIteration):
                await next_event_task
        await events.aclose()


@router.post("")
async def stream_chat(
    request: ChatRequest,
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
    chat_service: Annotated[ChatTurnService, Depends(get_chat_service)],
    store: Annotated[ChatStore, Depends(get_chat_store)],
) -> StreamingResponse:
    """
    Run one chat turn and stream its events.

    Returns:
        StreamingResponse: SSE stream; unnamed data lines carry assistant
        text, named events carry everything else

    Raises:
        HTTPException: 401 unauthenticated or foreign chat, 404 unknown model,
        400 no user message
    """
    logger.info(
        "Chat request",
        chat_id=request.id,
        user_id=current_user.id if current_user else None,
        message_count=len(request.messages),
    )

    try:
        turn = await chat_service.start_turn(
            chat_id=request.id,
            messages=list(request.messages),
            model_id=request.model_id,
            user=current_user,
            store=store,
        )
    except ChatError as e:
        raise _http_error(e) from e

    return StreamingResponse(
        sse_with_heartbeat(
            chat_service.stream_turn(turn, store),
            heartbeat_interval=get_chat_settings().heartbeat_interval_seconds,
            chat_id=turn.chat_id,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.delete("", response_model=DeleteChatResponse)
async def delete_chat(
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
    chat_service: Annotated[ChatTurnService, Depends(get_chat_service)],
    store: Annotated[ChatStore, Depends(get_chat_store)],
    id: Annotated[str | None, Query(description="Chat UUID")] = None,
) -> DeleteChatResponse:
    """
    Delete a chat owned by the caller.

    Raises:
        HTTPException: 404 missing or unknown id, 401 unauthenticated or not
        the owner, 500 persistence failure
    """
    try:
        await chat_service.delete_chat(id, current_user, store)
    except ChatError as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.exception("Failed to delete chat", chat_id=id, error=str(e))
        raise HTTPException(
            status_code=500,
            detail="An error occurred while processing your request",
        ) from e
    return DeleteChatResponse()


@router.post("/tools/{tool_name}")
async def invoke_tool(
    tool_name: str,
    request: ToolInvocationRequest,
    current_user: Annotated[User | None, Depends(get_current_user_optional)],
    chat_service: Annotated[ChatTurnService, Depends(get_chat_service)],
    store: Annotated[ChatStore, Depends(get_chat_store)],
) -> dict[str, Any]:
    """Run an FAQ tool without a model turn and return its result object."""
    try:
        return await chat_service.invoke_tool(
            tool_name, request.args, current_user, store
        )
    except ChatError as e:
        raise _http_error(e) from e
