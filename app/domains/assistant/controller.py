"""Assistant API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.dependencies import get_orchestrator, validate_token
from app.domains.assistant.orchestrator import ConversationOrchestrator
from app.schemas.assistant import SubmitMessageRequest
from app.schemas.base import ResponseSchema


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/assistant",
    tags=["assistant"],
    dependencies=[Depends(validate_token)],
)


def _store_error_response(operation: str, error: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error during {operation}: {str(error)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseSchema(
            status="error",
            message="The assistant could not save your conversation. Please try again.",
            data=None,
        ).model_dump(),
    )


@router.get("/conversation", response_model=ResponseSchema)
async def get_conversation(
    request: Request,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Get the active conversation with its messages and any pending confirmation.

    A conversation is created if the user has none.
    """
    try:
        view = await orchestrator.view(client=request.headers.get("user-agent"))
    except SQLAlchemyError as e:
        return _store_error_response("conversation load", e)

    return ResponseSchema(
        status="success",
        message="Conversation retrieved successfully",
        data=view.model_dump(mode="json", by_alias=True),
    )


@router.post("/messages", response_model=ResponseSchema, status_code=201)
async def submit_message(
    request: Request,
    submit_request: SubmitMessageRequest = Body(...),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Send a message to the assistant.

    Args:
        submit_request: Message text and the route of the screen the user is on
        orchestrator: Turn state machine for the current user

    Returns:
        The turn result: persisted messages, any parsed action and its outcome
    """
    try:
        result = await orchestrator.submit(
            submit_request.message,
            submit_request.current_page,
            client=request.headers.get("user-agent"),
        )
    except SQLAlchemyError as e:
        return _store_error_response("message submission", e)

    return ResponseSchema(
        status="success",
        message="Message processed successfully",
        data=result.model_dump(mode="json", by_alias=True),
    )


@router.post("/confirm", response_model=ResponseSchema)
async def confirm_action(orchestrator: ConversationOrchestrator = Depends(get_orchestrator)):
    """Approve and execute the action awaiting confirmation."""
    try:
        result = await orchestrator.confirm()
    except SQLAlchemyError as e:
        return _store_error_response("action confirmation", e)

    return ResponseSchema(
        status="success",
        message=result.status.message if result.status else "Action processed",
        data=result.model_dump(mode="json", by_alias=True),
    )


@router.post("/reject", response_model=ResponseSchema)
async def reject_action(orchestrator: ConversationOrchestrator = Depends(get_orchestrator)):
    """Cancel the action awaiting confirmation."""
    try:
        result = await orchestrator.reject()
    except SQLAlchemyError as e:
        return _store_error_response("action rejection", e)

    return ResponseSchema(
        status="success",
        message="Action cancelled",
        data=result.model_dump(mode="json", by_alias=True),
    )


@router.post("/conversations", response_model=ResponseSchema, status_code=201)
async def start_new_conversation(
    request: Request,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Complete the current conversation and start a new one."""
    try:
        started = await orchestrator.start_new_conversation(client=request.headers.get("user-agent"))
    except SQLAlchemyError as e:
        return _store_error_response("conversation start", e)

    return ResponseSchema(
        status="success",
        message="New conversation started",
        data=started.model_dump(mode="json", by_alias=True),
    )
