"""
Deterministic dialogue state machine for member requests.

The machine is a pure reducer: ``handle(state, event)`` returns the next
state and an ordered list of effects (speak, display, update the record,
ask the classifier, schedule the fund offer). The outer session performs
the effects and feeds classifier and slot-hint results back in as events,
so every decision the dialogue makes is reproducible from its inputs.

Usage:
    state, effects = handle(ConversationState.idle(), UserUtterance("update my email"))
    assert effects == [RequestClassification("update my email")]
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Union

from super_assistant.config import settings
from super_assistant.conversation import otp
from super_assistant.conversation.intents import (
    ClassifierResult,
    Intent,
    confirmation_answer,
    is_cancel,
    is_cancel_reply,
    is_negative,
    mentions_job_change,
)
from super_assistant.conversation.slot_extractor import SlotKind, extract
from super_assistant.conversation.subflows import AdviserScheduler, FundOfferFlow
from super_assistant.logging_context import get_session_logger
from super_assistant.prompts import prompt_templates

logger = get_session_logger(__name__)


class ConversationPhase(str, Enum):
    """All phases a member conversation can be in."""
    IDLE = "idle"
    AWAITING_NEW_VALUE = "awaiting_new_value"
    AWAITING_OTP = "awaiting_otp"
    ADVISER_CONFIRM = "adviser_confirm"
    ADVISER_PICK_SLOT = "adviser_pick_slot"
    ADVISER_CONFIRMED = "adviser_confirmed"
    FUND_OFFER = "fund_offer"
    FUND_CONFIRMED = "fund_confirmed"


# Phases that accept a fresh request; completed flows rest here.
RESTING_PHASES = frozenset({
    ConversationPhase.IDLE,
    ConversationPhase.ADVISER_CONFIRMED,
    ConversationPhase.FUND_CONFIRMED,
})


class TransitionTrigger(str, Enum):
    """Reasons a phase change happens."""
    INTENT_UPDATE = "intent_update"
    INTENT_INFO = "intent_info"
    INTENT_ADVISER = "intent_adviser"
    INTENT_FUND_FORM = "intent_fund_form"
    VALUE_EXTRACTED = "value_extracted"
    EXTRACTION_FAILED = "extraction_failed"
    OTP_VERIFIED = "otp_verified"
    OTP_REJECTED = "otp_rejected"
    OTP_EXHAUSTED = "otp_exhausted"
    CANCELLED = "cancelled"
    ADVISER_ACCEPTED = "adviser_accepted"
    SLOT_SELECTED = "slot_selected"
    FUND_ACCEPTED = "fund_accepted"
    DECLINED = "declined"
    UNCLEAR = "unclear"
    FUND_OFFER_DUE = "fund_offer_due"


@dataclass(frozen=True)
class Transition:
    """A single valid phase transition."""
    from_phase: ConversationPhase
    to_phase: ConversationPhase
    trigger: TransitionTrigger


def _from_resting(to_phase: Optional[ConversationPhase], trigger: TransitionTrigger) -> list[Transition]:
    """Declare a transition from every resting phase; ``None`` means stay put."""
    return [Transition(phase, to_phase or phase, trigger) for phase in RESTING_PHASES]


_P = ConversationPhase
_T = TransitionTrigger

TRANSITIONS: list[Transition] = [
    # --- Fresh requests ---
    *_from_resting(_P.AWAITING_NEW_VALUE, _T.INTENT_UPDATE),
    *_from_resting(None, _T.INTENT_INFO),
    *_from_resting(_P.ADVISER_CONFIRM, _T.INTENT_ADVISER),
    *_from_resting(_P.FUND_OFFER, _T.INTENT_FUND_FORM),
    *_from_resting(_P.FUND_OFFER, _T.FUND_OFFER_DUE),

    # --- Address / email update ---
    Transition(_P.AWAITING_NEW_VALUE, _P.AWAITING_OTP, _T.VALUE_EXTRACTED),
    Transition(_P.AWAITING_NEW_VALUE, _P.AWAITING_NEW_VALUE, _T.EXTRACTION_FAILED),
    Transition(_P.AWAITING_NEW_VALUE, _P.IDLE, _T.CANCELLED),

    # --- OTP gate ---
    Transition(_P.AWAITING_OTP, _P.IDLE, _T.OTP_VERIFIED),
    Transition(_P.AWAITING_OTP, _P.AWAITING_OTP, _T.OTP_REJECTED),
    Transition(_P.AWAITING_OTP, _P.IDLE, _T.OTP_EXHAUSTED),
    Transition(_P.AWAITING_OTP, _P.IDLE, _T.CANCELLED),

    # --- Adviser appointment ---
    Transition(_P.ADVISER_CONFIRM, _P.ADVISER_PICK_SLOT, _T.ADVISER_ACCEPTED),
    Transition(_P.ADVISER_CONFIRM, _P.IDLE, _T.DECLINED),
    Transition(_P.ADVISER_CONFIRM, _P.ADVISER_CONFIRM, _T.UNCLEAR),
    Transition(_P.ADVISER_PICK_SLOT, _P.ADVISER_CONFIRMED, _T.SLOT_SELECTED),
    Transition(_P.ADVISER_PICK_SLOT, _P.IDLE, _T.DECLINED),
    Transition(_P.ADVISER_PICK_SLOT, _P.ADVISER_PICK_SLOT, _T.UNCLEAR),

    # --- Choice of fund ---
    Transition(_P.FUND_OFFER, _P.FUND_CONFIRMED, _T.FUND_ACCEPTED),
    Transition(_P.FUND_OFFER, _P.IDLE, _T.DECLINED),
    Transition(_P.FUND_OFFER, _P.FUND_OFFER, _T.UNCLEAR),
]

_TRANSITION_INDEX: dict[tuple[ConversationPhase, TransitionTrigger], ConversationPhase] = {
    (t.from_phase, t.trigger): t.to_phase for t in TRANSITIONS
}


class InvalidTransitionError(Exception):
    """Raised when the reducer produces a phase change the table does not declare."""


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PendingUpdate:
    """A validated value waiting for OTP confirmation."""
    slot_kind: SlotKind
    candidate_value: str
    otp_code: str


@dataclass(frozen=True)
class ConversationState:
    """
    The single active phase plus the data that belongs to it.

    Phase data is only ever set by the named constructors, so entering a
    phase drops whatever the previous sub-flow was holding. The two fund
    offer flags survive phase changes and are managed by the reducer.
    """
    phase: ConversationPhase = ConversationPhase.IDLE
    slot_kind: Optional[SlotKind] = None
    pending: Optional[PendingUpdate] = None
    otp_attempts: int = 0
    adviser_slot: Optional[str] = None
    job_change_noted: bool = False
    fund_offer_scheduled: bool = False

    @classmethod
    def idle(cls) -> "ConversationState":
        return cls(phase=ConversationPhase.IDLE)

    @classmethod
    def awaiting_new_value(cls, slot_kind: SlotKind) -> "ConversationState":
        return cls(phase=ConversationPhase.AWAITING_NEW_VALUE, slot_kind=slot_kind)

    @classmethod
    def awaiting_otp(cls, pending: PendingUpdate, attempts: int = 0) -> "ConversationState":
        return cls(
            phase=ConversationPhase.AWAITING_OTP,
            slot_kind=pending.slot_kind,
            pending=pending,
            otp_attempts=attempts,
        )

    @classmethod
    def adviser_confirm(cls) -> "ConversationState":
        return cls(phase=ConversationPhase.ADVISER_CONFIRM)

    @classmethod
    def adviser_pick_slot(cls) -> "ConversationState":
        return cls(phase=ConversationPhase.ADVISER_PICK_SLOT)

    @classmethod
    def adviser_confirmed(cls, slot: str) -> "ConversationState":
        return cls(phase=ConversationPhase.ADVISER_CONFIRMED, adviser_slot=slot)

    @classmethod
    def fund_offer(cls) -> "ConversationState":
        return cls(phase=ConversationPhase.FUND_OFFER)

    @classmethod
    def fund_confirmed(cls) -> "ConversationState":
        return cls(phase=ConversationPhase.FUND_CONFIRMED)

    @property
    def is_resting(self) -> bool:
        return self.phase in RESTING_PHASES


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserUtterance:
    """What the member said or typed."""
    text: str


@dataclass(frozen=True)
class IntentClassified:
    """Classifier answer for an utterance received while resting."""
    utterance: str
    result: ClassifierResult


@dataclass(frozen=True)
class SlotHintReceived:
    """LLM-normalized version of an utterance given as a new slot value."""
    slot_kind: SlotKind
    utterance: str
    hint: str = ""


@dataclass(frozen=True)
class FundOfferDue:
    """The deferred fund-offer delay has elapsed."""


Event = Union[UserUtterance, IntentClassified, SlotHintReceived, FundOfferDue]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

class DisplayView(str, Enum):
    """UI cards the front end knows how to render."""
    BALANCE = "balance"
    PERSONAL_DETAILS = "personal_details"
    OTP_SENT = "otp_sent"
    ADVISER_SLOTS = "adviser_slots"
    APPOINTMENT_SUMMARY = "appointment_summary"
    CHOICE_OF_FUND_FORM = "choice_of_fund_form"


@dataclass(frozen=True)
class Speak:
    text: str


@dataclass(frozen=True)
class Display:
    view: DisplayView
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateRecord:
    field: SlotKind
    value: str


@dataclass(frozen=True)
class RequestClassification:
    utterance: str


@dataclass(frozen=True)
class RequestSlotHint:
    slot_kind: SlotKind
    utterance: str


@dataclass(frozen=True)
class ScheduleFundOffer:
    delay_seconds: float


@dataclass(frozen=True)
class CancelFundOffer:
    pass


Effect = Union[
    Speak, Display, UpdateRecord, RequestClassification,
    RequestSlotHint, ScheduleFundOffer, CancelFundOffer,
]


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

@dataclass
class DialoguePolicy:
    """Tunables and collaborators the reducer consults."""
    max_otp_attempts: int = field(default_factory=lambda: settings.dialogue.max_otp_attempts)
    fund_offer_delay: float = field(default_factory=lambda: settings.dialogue.fund_offer_delay_sec)
    otp_generator: Callable[[], str] = otp.generate
    scheduler: AdviserScheduler = field(default_factory=AdviserScheduler)
    fund_offer: FundOfferFlow = field(default_factory=FundOfferFlow)


@dataclass(frozen=True)
class Step:
    """Result of reducing one event."""
    state: ConversationState
    effects: tuple[Effect, ...] = ()
    trigger: Optional[TransitionTrigger] = None


def _finish(
    before: ConversationState,
    after: ConversationState,
    effects: list[Effect],
    trigger: Optional[TransitionTrigger],
    policy: DialoguePolicy,
    job_change: bool = False,
) -> Step:
    """Carry the fund-offer flags across the step and emit timer effects."""
    noted = before.job_change_noted or job_change
    scheduled = before.fund_offer_scheduled

    if after.phase in (ConversationPhase.FUND_OFFER, ConversationPhase.FUND_CONFIRMED):
        noted = False

    if scheduled and not after.is_resting:
        effects.append(CancelFundOffer())
        scheduled = False
        logger.debug("Pending fund offer superseded by '%s'", after.phase.value)

    if noted and after.is_resting and not scheduled:
        effects.append(ScheduleFundOffer(policy.fund_offer_delay))
        scheduled = True
        noted = False

    state = replace(after, job_change_noted=noted, fund_offer_scheduled=scheduled)
    return Step(state=state, effects=tuple(effects), trigger=trigger)


def _yes_no(text: str) -> Optional[bool]:
    answer = confirmation_answer(text)
    if answer is None and is_cancel(text):
        return False
    return answer


def _on_intent(state: ConversationState, event: IntentClassified, policy: DialoguePolicy) -> Step:
    result = event.result
    intent = result.intent
    job_change = mentions_job_change(event.utterance)

    if intent == Intent.CHOICE_OF_FUND_FORM and not job_change:
        logger.debug("Fund form intent without a job change mention; answering generally")
        intent = Intent.GENERAL_QUESTION

    if intent in (Intent.UPDATE_ADDRESS, Intent.UPDATE_EMAIL):
        kind = SlotKind.ADDRESS if intent == Intent.UPDATE_ADDRESS else SlotKind.EMAIL
        return _finish(
            state, ConversationState.awaiting_new_value(kind),
            [Speak(prompt_templates.build_new_value_prompt(kind.value))],
            TransitionTrigger.INTENT_UPDATE, policy, job_change,
        )

    if intent == Intent.BALANCE_QUERY:
        effects: list[Effect] = [Speak(result.reply), Display(DisplayView.BALANCE)]
        return _finish(state, state, effects,
                       TransitionTrigger.INTENT_INFO, policy, job_change)

    if intent == Intent.PERSONAL_DETAILS:
        effects = [Speak(result.reply), Display(DisplayView.PERSONAL_DETAILS)]
        return _finish(state, state, effects,
                       TransitionTrigger.INTENT_INFO, policy, job_change)

    if intent == Intent.ADVISER_APPOINTMENT:
        return _finish(
            state, ConversationState.adviser_confirm(),
            [Speak(policy.scheduler.confirmation_prompt())],
            TransitionTrigger.INTENT_ADVISER, policy, job_change,
        )

    if intent == Intent.CHOICE_OF_FUND_FORM:
        return _finish(
            state, ConversationState.fund_offer(),
            [Speak(policy.fund_offer.offer_prompt())],
            TransitionTrigger.INTENT_FUND_FORM, policy,
        )

    reply = result.reply or prompt_templates.build_fallback_reply()
    return _finish(state, state, [Speak(reply)],
                   TransitionTrigger.INTENT_INFO, policy, job_change)


def _on_slot_hint(state: ConversationState, event: SlotHintReceived, policy: DialoguePolicy) -> Step:
    kind = event.slot_kind
    result = extract(kind, event.utterance, event.hint)
    if not result.ok:
        logger.info("Could not extract %s from member reply", kind.value)
        return _finish(
            state, state,
            [Speak(prompt_templates.build_extraction_retry_prompt(kind.value, result.error))],
            TransitionTrigger.EXTRACTION_FAILED, policy,
        )

    code = policy.otp_generator()
    logger.debug("Generated OTP %s for %s update", code, kind.value)
    pending = PendingUpdate(slot_kind=kind, candidate_value=result.value, otp_code=code)
    effects: list[Effect] = [
        Speak(prompt_templates.build_otp_sent_message(kind.value, result.value)),
        Display(DisplayView.OTP_SENT, {
            "slotKind": kind.value,
            "value": result.value,
            "code": code,
        }),
    ]
    return _finish(state, ConversationState.awaiting_otp(pending), effects,
                   TransitionTrigger.VALUE_EXTRACTED, policy)


def _awaiting_new_value(state: ConversationState, text: str, policy: DialoguePolicy):
    kind = state.slot_kind
    if is_cancel_reply(text):
        return (ConversationState.idle(),
                [Speak(prompt_templates.build_cancelled_message(kind.value))],
                TransitionTrigger.CANCELLED)
    return state, [RequestSlotHint(kind, text)], None


def _awaiting_otp(state: ConversationState, text: str, policy: DialoguePolicy):
    pending = state.pending
    kind = pending.slot_kind
    if is_cancel_reply(text):
        return (ConversationState.idle(),
                [Speak(prompt_templates.build_cancelled_message(kind.value))],
                TransitionTrigger.CANCELLED)

    if otp.verify(text, pending.otp_code):
        logger.info("OTP verified; updating %s", kind.value)
        return (
            ConversationState.idle(),
            [
                UpdateRecord(kind, pending.candidate_value),
                Speak(prompt_templates.build_update_confirmed_message(
                    kind.value, pending.candidate_value)),
                Display(DisplayView.PERSONAL_DETAILS, {"updatedField": kind.value}),
            ],
            TransitionTrigger.OTP_VERIFIED,
        )

    attempts = state.otp_attempts + 1
    if attempts >= policy.max_otp_attempts:
        logger.warning("OTP attempts exhausted for %s update", kind.value)
        return (ConversationState.idle(),
                [Speak(prompt_templates.build_otp_exhausted_message(kind.value))],
                TransitionTrigger.OTP_EXHAUSTED)

    logger.info("OTP mismatch (%d/%d)", attempts, policy.max_otp_attempts)
    return (
        ConversationState.awaiting_otp(pending, attempts=attempts),
        [Speak(prompt_templates.build_otp_mismatch_message(policy.max_otp_attempts - attempts))],
        TransitionTrigger.OTP_REJECTED,
    )


def _adviser_confirm(state: ConversationState, text: str, policy: DialoguePolicy):
    scheduler = policy.scheduler
    answer = _yes_no(text)
    if answer is True:
        return (
            ConversationState.adviser_pick_slot(),
            [
                Speak(scheduler.slot_prompt()),
                Display(DisplayView.ADVISER_SLOTS, {
                    "adviser": scheduler.adviser_name,
                    "slots": list(scheduler.slots),
                }),
            ],
            TransitionTrigger.ADVISER_ACCEPTED,
        )
    if answer is False:
        return ConversationState.idle(), [Speak(scheduler.decline_message())], TransitionTrigger.DECLINED
    return (state,
            [Speak(prompt_templates.build_yes_no_reprompt(scheduler.confirmation_prompt()))],
            TransitionTrigger.UNCLEAR)


def _adviser_pick_slot(state: ConversationState, text: str, policy: DialoguePolicy):
    scheduler = policy.scheduler
    slot = scheduler.match_slot(text)
    if slot:
        day, _, time = slot.partition(" ")
        return (
            ConversationState.adviser_confirmed(slot),
            [
                Speak(scheduler.summary(slot)),
                Display(DisplayView.APPOINTMENT_SUMMARY, {
                    "adviser": scheduler.adviser_name,
                    "slot": slot,
                    "day": day,
                    "time": time,
                }),
            ],
            TransitionTrigger.SLOT_SELECTED,
        )
    if is_negative(text) or is_cancel(text):
        return ConversationState.idle(), [Speak(scheduler.decline_message())], TransitionTrigger.DECLINED
    return state, [Speak(scheduler.retry_prompt())], TransitionTrigger.UNCLEAR


def _fund_offer(state: ConversationState, text: str, policy: DialoguePolicy):
    flow = policy.fund_offer
    answer = _yes_no(text)
    if answer is True:
        return (
            ConversationState.fund_confirmed(),
            [Speak(flow.confirmation_message()), Display(DisplayView.CHOICE_OF_FUND_FORM)],
            TransitionTrigger.FUND_ACCEPTED,
        )
    if answer is False:
        return ConversationState.idle(), [Speak(flow.decline_message())], TransitionTrigger.DECLINED
    return (state,
            [Speak(prompt_templates.build_yes_no_reprompt(flow.offer_prompt()))],
            TransitionTrigger.UNCLEAR)


_SUBFLOW_HANDLERS = {
    ConversationPhase.AWAITING_NEW_VALUE: _awaiting_new_value,
    ConversationPhase.AWAITING_OTP: _awaiting_otp,
    ConversationPhase.ADVISER_CONFIRM: _adviser_confirm,
    ConversationPhase.ADVISER_PICK_SLOT: _adviser_pick_slot,
    ConversationPhase.FUND_OFFER: _fund_offer,
}


def _on_utterance(state: ConversationState, event: UserUtterance, policy: DialoguePolicy) -> Step:
    text = event.text.strip()
    if not text:
        return Step(state=state)

    if state.is_resting:
        return _finish(state, state, [RequestClassification(text)], None, policy)

    job_change = state.phase != ConversationPhase.FUND_OFFER and mentions_job_change(text)
    if job_change:
        logger.debug("Job change mentioned during '%s'; fund offer deferred", state.phase.value)

    after, effects, trigger = _SUBFLOW_HANDLERS[state.phase](state, text, policy)
    return _finish(state, after, effects, trigger, policy, job_change)


def _on_fund_offer_due(state: ConversationState, policy: DialoguePolicy) -> Step:
    if not (state.is_resting and state.fund_offer_scheduled):
        logger.debug("Fund offer timer ignored in '%s'", state.phase.value)
        return Step(state=state)
    before = replace(state, fund_offer_scheduled=False)
    return _finish(before, ConversationState.fund_offer(),
                   [Speak(policy.fund_offer.offer_prompt())],
                   TransitionTrigger.FUND_OFFER_DUE, policy)


def _validate(from_phase: ConversationPhase, step: Step) -> None:
    to_phase = step.state.phase
    if step.trigger is None:
        if to_phase != from_phase:
            raise InvalidTransitionError(
                f"Phase changed from '{from_phase.value}' to '{to_phase.value}' without a trigger"
            )
        return
    expected = _TRANSITION_INDEX.get((from_phase, step.trigger))
    if expected != to_phase:
        valid = [t.trigger.value for t in TRANSITIONS if t.from_phase == from_phase]
        raise InvalidTransitionError(
            f"No valid transition from '{from_phase.value}' to '{to_phase.value}' "
            f"with trigger '{step.trigger.value}'. Valid triggers: {valid}"
        )


def reduce(state: ConversationState, event: Event, policy: Optional[DialoguePolicy] = None) -> Step:
    """
    Apply one event to the conversation state.

    Args:
        state: The current state.
        event: The utterance, classifier answer, slot hint or timer tick.
        policy: Attempt limits, delays and sub-flow collaborators.

    Returns:
        A Step holding the new state, the ordered effects and the trigger.

    Raises:
        InvalidTransitionError: If the resulting phase change is not declared.
    """
    policy = policy or DialoguePolicy()

    if isinstance(event, UserUtterance):
        step = _on_utterance(state, event, policy)
    elif isinstance(event, IntentClassified):
        if not state.is_resting:
            logger.warning("Classifier result arrived in '%s'; ignored", state.phase.value)
            step = Step(state=state)
        else:
            step = _on_intent(state, event, policy)
    elif isinstance(event, SlotHintReceived):
        if state.phase != ConversationPhase.AWAITING_NEW_VALUE or state.slot_kind != event.slot_kind:
            logger.warning("Slot hint for %s arrived in '%s'; ignored",
                           event.slot_kind.value, state.phase.value)
            step = Step(state=state)
        else:
            step = _on_slot_hint(state, event, policy)
    elif isinstance(event, FundOfferDue):
        step = _on_fund_offer_due(state, policy)
    else:
        raise TypeError(f"Unsupported dialogue event: {event!r}")

    _validate(state.phase, step)
    return step


def handle(
    state: ConversationState,
    event: Event,
    policy: Optional[DialoguePolicy] = None,
) -> tuple[ConversationState, list[Effect]]:
    """Pure entry point: the next state and the effects to perform, in order."""
    step = reduce(state, event, policy)
    return step.state, list(step.effects)


@dataclass
class StateEntry:
    """Recorded history entry for a phase visit."""
    phase: ConversationPhase
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class DialogueStateMachine:
    """
    Holds the current conversation state and its transition history.

    All decisions are made by ``reduce``; this wrapper only remembers the
    result so a session can be inspected after the fact.
    """

    def __init__(self, policy: Optional[DialoguePolicy] = None) -> None:
        self.policy = policy or DialoguePolicy()
        self._state = ConversationState.idle()
        self._history: list[StateEntry] = [
            StateEntry(phase=self._state.phase, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def phase(self) -> ConversationPhase:
        return self._state.phase

    def dispatch(self, event: Event) -> list[Effect]:
        """Reduce one event, record the transition and return its effects."""
        old_phase = self._state.phase
        step = reduce(self._state, event, self.policy)
        self._state = step.state

        if step.trigger is not None:
            self._history.append(StateEntry(
                phase=step.state.phase,
                entered_at=datetime.now(timezone.utc),
                trigger=step.trigger,
            ))
            logger.debug(
                "Phase transition: %s -> %s (trigger: %s)",
                old_phase.value, step.state.phase.value, step.trigger.value,
            )
        return list(step.effects)

    def reset(self) -> None:
        self._state = ConversationState.idle()
        self._history.append(StateEntry(phase=self._state.phase, entered_at=datetime.now(timezone.utc)))

    def get_history(self) -> list[StateEntry]:
        """Return the full phase transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of phase names visited."""
        return [entry.phase.value for entry in self._history]
