"""Conversation orchestrator: the per-user turn state machine.

One turn runs ``IDLE -> AWAITING_COMPLETION -> (IDLE | AWAITING_CONFIRMATION)``.
A pending confirmation resolves through :meth:`ConversationOrchestrator.confirm`
or :meth:`ConversationOrchestrator.reject` and both return to ``IDLE``.
The phase is always advanced before the first await of an operation, so a
second request for the same user observes it and is refused. Looking up,
creating and completing the active conversation happen under the state's
lock, so a user never ends up with two active conversations.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID

from app.exceptions.ai import AIServiceError
from app.exceptions.assistant import EmptyMessageError, NoPendingActionError, TurnInProgressError
from app.schemas.assistant import (
    ActionIntent,
    ActionResult,
    ActionStatus,
    ActionStatusType,
    ChatConversationResponse,
    ChatMessageResponse,
    ConfirmationPayload,
    ConversationStartedResponse,
    ConversationView,
    PendingConfirmationResponse,
    SafetyTier,
    TurnPhase,
    TurnResult,
)
from models.chat_conversation import ChatConversation
from models.chat_message import MessageActionState, MessageRole

from .completion import CompletionClient
from .context import ContextAssembler, build_system_prompt
from .executor import ACTION_SCOPES, ActionExecutor
from .parser import IntentParser
from .presenter import present_action
from .safety import SafetyClassifier
from .service import AssistantService


logger = logging.getLogger(__name__)

COMPLETION_ERROR_REPLY = "Sorry, I encountered an error. Please try again."
CANCELLED_NOTE = "❌ Action cancelled by user"
EXPIRED_NOTE = "❌ Action expired before it was confirmed"

DataChangedCallback = Callable[[list[str]], Awaitable[None]]


@dataclass
class PendingAction:
    """An intent held at the confirmation gate together with its message."""

    intent: ActionIntent
    message_id: UUID
    confirmation: ConfirmationPayload

    def to_response(self) -> PendingConfirmationResponse:
        return PendingConfirmationResponse(
            action=self.intent.action,
            params=self.intent.params,
            safety_tier=self.intent.safety_tier,
            message_id=self.message_id,
            confirmation=self.confirmation,
        )


@dataclass
class ConversationState:
    """In-memory turn state of one user's active conversation."""

    user_id: UUID
    conversation_id: UUID | None = None
    phase: TurnPhase = TurnPhase.IDLE
    pending: PendingAction | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    holders: int = field(default=0, repr=False, compare=False)

    @property
    def is_settled(self) -> bool:
        """Idle with nothing awaiting confirmation."""
        return self.phase is TurnPhase.IDLE and self.pending is None


class ConversationRegistry:
    """Keeps one :class:`ConversationState` per user while it is in use.

    Requests :meth:`acquire` the state and :meth:`release` it when done. A
    settled state nobody holds is dropped; a pending confirmation keeps it.
    """

    def __init__(self):
        self._states: dict[UUID, ConversationState] = {}

    def get(self, user_id: UUID) -> ConversationState:
        state = self._states.get(user_id)
        if state is None:
            state = ConversationState(user_id=user_id)
            self._states[user_id] = state
        return state

    def acquire(self, user_id: UUID) -> ConversationState:
        state = self.get(user_id)
        state.holders += 1
        return state

    def release(self, state: ConversationState) -> None:
        state.holders = max(state.holders - 1, 0)
        if state.holders == 0 and state.is_settled and self._states.get(state.user_id) is state:
            del self._states[state.user_id]

    def __len__(self) -> int:
        return len(self._states)

    def clear(self) -> None:
        self._states.clear()


conversation_registry = ConversationRegistry()


class ConversationOrchestrator:
    """Drives submit, confirm, reject and new-conversation for one user."""

    def __init__(
        self,
        state: ConversationState,
        service: AssistantService,
        context_assembler: ContextAssembler,
        completion_client: CompletionClient,
        executor: ActionExecutor,
        parser: IntentParser | None = None,
        classifier: SafetyClassifier | None = None,
        presenter: Callable[..., ConfirmationPayload] = present_action,
        on_data_changed: DataChangedCallback | None = None,
    ):
        self.state = state
        self.service = service
        self.context_assembler = context_assembler
        self.completion_client = completion_client
        self.executor = executor
        self.classifier = classifier or executor.classifier
        self.parser = parser or IntentParser(classifier=self.classifier)
        self.presenter = presenter
        self.on_data_changed = on_data_changed

    @property
    def user_id(self) -> UUID:
        return self.state.user_id

    async def view(self, client: str | None = None) -> ConversationView:
        """Load the active conversation, creating one if the user has none.

        Pending flags left behind by a lost confirmation (a restart, or a
        settle that failed) are resolved as expired when nothing is pending.
        """
        async with self.state.lock:
            conversation = await self._active_conversation(client)
            if self.state.is_settled:
                await self._expire_orphaned_actions(conversation.id)
            return await self._build_view(conversation)

    async def submit(self, text: str, current_page: str = "/", client: str | None = None) -> TurnResult:
        """Run one user turn from persisted user message to settled reply."""
        if not text or not text.strip():
            raise EmptyMessageError()
        self._guard_idle()

        self.state.phase = TurnPhase.AWAITING_COMPLETION
        try:
            return await self._run_turn(text.strip(), current_page, client)
        finally:
            if self.state.phase is TurnPhase.AWAITING_COMPLETION:
                self.state.phase = TurnPhase.IDLE

    async def confirm(self) -> TurnResult:
        """Execute the pending action for real and settle its message."""
        pending = self._take_pending()
        self.state.phase = TurnPhase.EXECUTING_ACTION
        try:
            result = await self.executor.execute(
                pending.intent.action, pending.intent.params, self.user_id, needs_confirmation=False
            )
            return await self._settle_confirmed(pending, result)
        finally:
            self.state.phase = TurnPhase.IDLE

    async def reject(self) -> TurnResult:
        """Cancel the pending action. Nothing is written to planning data."""
        pending = self._take_pending()
        try:
            message = await self.service.settle_message(
                pending.message_id, MessageActionState.CANCELLED, CANCELLED_NOTE
            )
        finally:
            self.state.phase = TurnPhase.IDLE

        logger.info(f"User {self.user_id} rejected {pending.intent.action.value}")
        return TurnResult(
            conversation_id=message.conversation_id,
            phase=self.state.phase,
            assistant_message=ChatMessageResponse.model_validate(message),
            intent=pending.intent,
            status=ActionStatus(type=ActionStatusType.INFO, message="Action cancelled"),
        )

    async def start_new_conversation(self, client: str | None = None) -> ConversationStartedResponse:
        """Complete the current conversation and open a fresh one.

        A pending action is cancelled first so no message stays flagged pending.
        """
        async with self.state.lock:
            if self.state.phase in (TurnPhase.AWAITING_COMPLETION, TurnPhase.EXECUTING_ACTION):
                raise TurnInProgressError(details={"phase": self.state.phase.value})

            cancelled = False
            if self.state.pending is not None:
                await self.reject()
                cancelled = True

            current = await self.service.get_active_conversation(self.user_id)
            if current is not None:
                await self.service.complete_conversation(current.id, self.user_id)

            self.state.conversation_id = None
            conversation = await self._active_conversation(client)
            logger.info(f"User {self.user_id} started conversation {conversation.id}")
            return ConversationStartedResponse(
                conversation=await self._build_view(conversation),
                cancelled_pending_action=cancelled,
            )

    # Turn steps

    async def _run_turn(self, text: str, current_page: str, client: str | None) -> TurnResult:
        async with self.state.lock:
            conversation = await self._active_conversation(client)
        conversation_id = conversation.id

        user_message = await self.service.add_message(
            conversation_id, MessageRole.USER, text, user_id=self.user_id
        )
        user_view = ChatMessageResponse.model_validate(user_message)

        context = await self.context_assembler.assemble(current_page)
        try:
            reply = await self.completion_client.complete(build_system_prompt(context), text)
        except AIServiceError as e:
            logger.error(f"Completion failed for user {self.user_id}: {e.error_code} {str(e)}")
            assistant_message = await self.service.add_message(
                conversation_id, MessageRole.ASSISTANT, COMPLETION_ERROR_REPLY
            )
            return TurnResult(
                conversation_id=conversation_id,
                phase=TurnPhase.IDLE,
                user_message=user_view,
                assistant_message=ChatMessageResponse.model_validate(assistant_message),
            )

        intent = self.parser.parse(reply)
        if intent is None:
            assistant_message = await self.service.add_message(
                conversation_id, MessageRole.ASSISTANT, reply
            )
            return TurnResult(
                conversation_id=conversation_id,
                phase=TurnPhase.IDLE,
                user_message=user_view,
                assistant_message=ChatMessageResponse.model_validate(assistant_message),
            )

        if intent.safety_tier is None:
            intent = intent.model_copy(update={"safety_tier": self.classifier.classify(intent.action)})

        result = await self.executor.execute(intent.action, intent.params, self.user_id)

        if result.requires_confirmation:
            assistant_message = await self.service.add_message(
                conversation_id,
                MessageRole.ASSISTANT,
                reply,
                action_state=MessageActionState.PENDING,
            )
            pending = PendingAction(
                intent=intent,
                message_id=assistant_message.id,
                confirmation=self.presenter(intent.action, intent.params),
            )
            self.state.pending = pending
            self.state.phase = TurnPhase.AWAITING_CONFIRMATION
            return TurnResult(
                conversation_id=conversation_id,
                phase=self.state.phase,
                user_message=user_view,
                assistant_message=ChatMessageResponse.model_validate(assistant_message),
                intent=intent,
                action_result=result,
                pending_confirmation=pending.to_response(),
            )

        if result.success:
            assistant_message = await self.service.add_message(
                conversation_id,
                MessageRole.ASSISTANT,
                f"{reply}\n\n✅ {result.message}",
                action_state=MessageActionState.COMPLETED,
            )
            return TurnResult(
                conversation_id=conversation_id,
                phase=TurnPhase.IDLE,
                user_message=user_view,
                assistant_message=ChatMessageResponse.model_validate(assistant_message),
                intent=intent,
                action_result=result,
                action_summary=(
                    self.presenter(intent.action, intent.params)
                    if intent.safety_tier is SafetyTier.MEDIUM
                    else None
                ),
                status=ActionStatus(type=ActionStatusType.SUCCESS, message=result.message),
                refresh=await self._data_changed(intent),
            )

        assistant_message = await self.service.add_message(
            conversation_id,
            MessageRole.ASSISTANT,
            f"{reply}\n\n❌ {self._failure_text(result)}",
            action_state=MessageActionState.FAILED,
        )
        return TurnResult(
            conversation_id=conversation_id,
            phase=TurnPhase.IDLE,
            user_message=user_view,
            assistant_message=ChatMessageResponse.model_validate(assistant_message),
            intent=intent,
            action_result=result,
            status=ActionStatus(type=ActionStatusType.ERROR, message=self._failure_text(result)),
        )

    async def _settle_confirmed(self, pending: PendingAction, result: ActionResult) -> TurnResult:
        if result.success:
            message = await self.service.settle_message(
                pending.message_id, MessageActionState.COMPLETED, f"✅ {result.message}"
            )
            status = ActionStatus(type=ActionStatusType.SUCCESS, message=result.message)
            refresh = await self._data_changed(pending.intent)
        else:
            logger.error(f"Confirmed action {pending.intent.action.value} failed: {result.error}")
            message = await self.service.settle_message(
                pending.message_id, MessageActionState.FAILED, f"❌ {self._failure_text(result)}"
            )
            status = ActionStatus(type=ActionStatusType.ERROR, message=self._failure_text(result))
            refresh = []

        return TurnResult(
            conversation_id=message.conversation_id,
            phase=TurnPhase.IDLE,
            assistant_message=ChatMessageResponse.model_validate(message),
            intent=pending.intent,
            action_result=result,
            status=status,
            refresh=refresh,
        )

    # Helpers

    def _guard_idle(self) -> None:
        if self.state.phase is not TurnPhase.IDLE:
            raise TurnInProgressError(details={"phase": self.state.phase.value})

    def _take_pending(self) -> PendingAction:
        """Detach the pending action so a repeated confirm or reject finds nothing."""
        pending = self.state.pending
        if self.state.phase is not TurnPhase.AWAITING_CONFIRMATION or pending is None:
            raise NoPendingActionError()
        self.state.pending = None
        return pending

    async def _active_conversation(self, client: str | None) -> ChatConversation:
        conversation = await self.service.get_or_create_active_conversation(self.user_id, client)
        self.state.conversation_id = conversation.id
        return conversation

    async def _expire_orphaned_actions(self, conversation_id: UUID) -> None:
        for message in await self.service.list_pending_messages(conversation_id):
            logger.warning(f"Expiring orphaned pending action on message {message.id}")
            await self.service.settle_message(message.id, MessageActionState.CANCELLED, EXPIRED_NOTE)

    async def _build_view(self, conversation: ChatConversation) -> ConversationView:
        conversation_view = ChatConversationResponse.model_validate(conversation)
        messages = await self.service.list_messages(conversation.id)
        return ConversationView(
            conversation=conversation_view,
            messages=[ChatMessageResponse.model_validate(message) for message in messages],
            phase=self.state.phase,
            pending_confirmation=self.state.pending.to_response() if self.state.pending else None,
        )

    async def _data_changed(self, intent: ActionIntent) -> list[str]:
        """Report the read views invalidated by a successful action."""
        scope = ACTION_SCOPES.get(intent.action)
        scopes = [scope] if scope else []
        if scopes and self.on_data_changed is not None:
            try:
                await self.on_data_changed(scopes)
            except Exception as e:
                logger.warning(f"Data refresh callback failed for {scopes}: {str(e)}")
        return scopes

    @staticmethod
    def _failure_text(result: ActionResult) -> str:
        return result.error or "Action failed"
