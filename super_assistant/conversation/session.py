"""
Outer driver loop around the dialogue reducer.

A ``DialogueSession`` owns one conversation: it feeds member input to the
state machine, performs the effects it asks for (awaiting the classifier
and slot normalizer, writing to the record store, filling display cards),
and runs the deferred fund-offer timer. Turns are serialized with a lock,
so a timer firing mid-turn waits for the turn to finish.

Usage:
    session = DialogueSession(classifier=KeywordIntentClassifier(),
                              slot_normalizer=PassthroughSlotNormalizer())
    result = await session.submit("I'd like to update my email")
    assert result.phase == "awaiting_new_value"
"""

import asyncio
import time
import uuid
from collections import deque
from typing import Optional, Protocol

from super_assistant.config import settings
from super_assistant.conversation.intents import ClassifierResult
from super_assistant.conversation.slot_extractor import SlotKind
from super_assistant.conversation.state_machine import (
    CancelFundOffer,
    ConversationPhase,
    ConversationState,
    Display,
    DisplayView,
    DialoguePolicy,
    DialogueStateMachine,
    Event,
    FundOfferDue,
    IntentClassified,
    RequestClassification,
    RequestSlotHint,
    ScheduleFundOffer,
    SlotHintReceived,
    Speak,
    UpdateRecord,
    UserUtterance,
)
from super_assistant.logging_context import get_session_logger, set_session_id
from super_assistant.schemas.conversation_schema import (
    DisplayDirective,
    Speaker,
    TranscriptTurn,
    TurnResult,
)
from super_assistant.services.llm_client import IntentClassifier, SlotNormalizer
from super_assistant.tools.customer import CustomerStore, get_customer_store
from super_assistant.tools.fund_form import build_choice_of_fund_form, send_form_copy
from super_assistant.utils import collapse_whitespace

logger = get_session_logger(__name__)


class Classifier(Protocol):
    async def classify(self, message: str) -> ClassifierResult: ...


class SlotHintSource(Protocol):
    async def normalize(self, slot_kind: SlotKind, message: str) -> str: ...


class DialogueSession:
    """One member conversation: state, transcript and the fund-offer timer."""

    def __init__(
        self,
        store: Optional[CustomerStore] = None,
        classifier: Optional[Classifier] = None,
        slot_normalizer: Optional[SlotHintSource] = None,
        policy: Optional[DialoguePolicy] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or f"SES-{uuid.uuid4().hex[:8].upper()}"
        self.store = store or get_customer_store()
        self.classifier = classifier or IntentClassifier()
        self.slot_normalizer = slot_normalizer or SlotNormalizer()
        self.machine = DialogueStateMachine(policy)
        self.transcript: list[TranscriptTurn] = []
        self._lock = asyncio.Lock()
        self._timer: Optional[asyncio.Task] = None
        self._outbox: list[TurnResult] = []

    @property
    def state(self) -> ConversationState:
        return self.machine.state

    @property
    def phase(self) -> ConversationPhase:
        return self.machine.phase

    @property
    def has_scheduled_offer(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def submit(self, text: str) -> TurnResult:
        """Handle one member utterance to completion and return what was said and shown."""
        text = collapse_whitespace(text or "")[: settings.dialogue.max_input_length]
        async with self._lock:
            set_session_id(self.session_id)
            if text:
                self._record(Speaker.USER, text)
            return await self._run(UserUtterance(text))

    async def _run(self, event: Event) -> TurnResult:
        replies: list[str] = []
        displays: list[DisplayDirective] = []
        intent_label: Optional[str] = None
        offer_delay: Optional[float] = None

        events = deque([event])
        while events:
            for effect in self.machine.dispatch(events.popleft()):
                if isinstance(effect, Speak):
                    replies.append(effect.text)
                elif isinstance(effect, Display):
                    displays.append(self._render(effect))
                elif isinstance(effect, UpdateRecord):
                    self._apply(effect)
                elif isinstance(effect, RequestClassification):
                    result = await self.classifier.classify(effect.utterance)
                    intent_label = result.label or result.intent.value
                    events.append(IntentClassified(effect.utterance, result))
                elif isinstance(effect, RequestSlotHint):
                    hint = await self.slot_normalizer.normalize(effect.slot_kind, effect.utterance)
                    events.append(SlotHintReceived(effect.slot_kind, effect.utterance, hint))
                elif isinstance(effect, ScheduleFundOffer):
                    offer_delay = effect.delay_seconds
                elif isinstance(effect, CancelFundOffer):
                    self._cancel_timer()

        # The offer clock starts once this turn's output is out.
        if offer_delay is not None:
            self._start_timer(offer_delay)

        phase = self.phase.value
        for reply in replies:
            self._record(Speaker.ASSISTANT, reply, phase=phase, intent=intent_label)
        return TurnResult(replies=replies, displays=displays, phase=phase)

    def _apply(self, effect: UpdateRecord) -> None:
        if effect.field == SlotKind.EMAIL:
            self.store.update(email=effect.value)
        else:
            self.store.update(address=effect.value)
        logger.info("Applied verified %s update", effect.field.value)

    def _render(self, effect: Display) -> DisplayDirective:
        payload = dict(effect.payload)
        view = effect.view
        if view in (DisplayView.BALANCE, DisplayView.PERSONAL_DETAILS, DisplayView.CHOICE_OF_FUND_FORM):
            record = self.store.get()
            if view == DisplayView.BALANCE:
                payload["memberId"] = record.member_id
                payload["balance"] = record.balance.model_dump(by_alias=True)
            elif view == DisplayView.PERSONAL_DETAILS:
                payload["customer"] = record.model_dump(by_alias=True)
            else:
                form = build_choice_of_fund_form(record)
                payload["form"] = form.model_dump(by_alias=True)
                payload["receipt"] = send_form_copy(form)
        return DisplayDirective(view=view.value, payload=payload)

    def _record(self, speaker: Speaker, text: str, phase: Optional[str] = None,
                intent: Optional[str] = None) -> None:
        self.transcript.append(TranscriptTurn(
            speaker=speaker, text=text, timestamp=time.time(), phase=phase, intent=intent,
        ))

    # --- Deferred fund offer ---

    def _start_timer(self, delay: float) -> None:
        self._cancel_timer()
        logger.info("Fund offer scheduled in %.1fs", delay)
        self._timer = asyncio.create_task(self._offer_after(delay))

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            logger.info("Scheduled fund offer cancelled")
        self._timer = None

    async def _offer_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self._lock:
            self._timer = None
            set_session_id(self.session_id)
            result = await self._run(FundOfferDue())
            if result.replies or result.displays:
                self._outbox.append(result)

    def drain_outbox(self) -> list[TurnResult]:
        """Return and clear output produced by timers since the last call."""
        results, self._outbox = self._outbox, []
        return results

    async def wait_for_scheduled(self) -> list[TurnResult]:
        """Wait for a pending fund offer (if any) to fire, then drain the outbox."""
        task = self._timer
        if task is not None:
            await asyncio.wait([task])
        return self.drain_outbox()

    async def reset(self) -> None:
        """Abandon any flow, cancel timers and return to idle."""
        async with self._lock:
            self._cancel_timer()
            self.machine.reset()
            self._outbox.clear()
            self._record(Speaker.SYSTEM, "Session reset")
            logger.info("Session reset")
