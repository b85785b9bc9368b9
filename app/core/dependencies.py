# app/core/dependencies.py
import logging
from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import TokenAuthenticator
from app.database import get_db
from app.domains.assistant.completion import CompletionClient
from app.domains.assistant.context import ContextAssembler
from app.domains.assistant.executor import ActionExecutor
from app.domains.assistant.orchestrator import ConversationOrchestrator, conversation_registry
from app.domains.assistant.parser import IntentParser
from app.domains.assistant.safety import SafetyClassifier
from app.domains.assistant.service import AssistantService
from app.domains.user.service import UserService
from models import User

logger = logging.getLogger(__name__)

security = HTTPBearer()
auth = TokenAuthenticator()

__all__ = [
    "get_completion_client",
    "get_current_user",
    "get_db",
    "get_orchestrator",
    "validate_token",
]


async def validate_token(token: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Validate and decode the bearer JWT.

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        if not token or not token.credentials:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication token is required",
                headers={"WWW-Authenticate": "Bearer"},
            )

        payload = auth.verify_token(token.credentials)

        if not payload:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return payload

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Token validation error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user(
    request: Request,
    payload: dict = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from JWT payload.

    Returns:
        User: Current authenticated user

    Raises:
        HTTPException: If the token has no subject or the user is inactive
    """
    try:
        auth_user_id = payload.get("sub")

        if not auth_user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token payload - missing user ID",
            )

        user_service = UserService(db)
        user = await user_service.get_or_create_user(auth_user_id, payload)

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive"
            )

        # Add user info to request state for logging
        request.state.user_id = user.id
        request.state.auth_user_id = auth_user_id

        return user

    except HTTPException:
        raise
    except Exception as e:
        logger.error("User authentication error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication service error",
        ) from e


@lru_cache
def get_completion_client() -> CompletionClient:
    """Process-wide completion client; the SDK is configured once."""
    return CompletionClient()


async def get_orchestrator(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    completion_client: CompletionClient = Depends(get_completion_client),
) -> AsyncGenerator[ConversationOrchestrator, Any]:
    """Wire a conversation orchestrator for the current user's request.

    The user's turn state is held for the request and released afterwards.
    """
    classifier = SafetyClassifier()
    state = conversation_registry.acquire(current_user.id)
    try:
        yield ConversationOrchestrator(
            state=state,
            service=AssistantService(db),
            context_assembler=ContextAssembler(db),
            completion_client=completion_client,
            executor=ActionExecutor(db, classifier=classifier),
            parser=IntentParser(classifier=classifier),
            classifier=classifier,
        )
    finally:
        conversation_registry.release(state)
