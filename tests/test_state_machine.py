"""Tests for the dialogue reducer and its state machine wrapper."""

import pytest

from super_assistant.conversation import state_machine
from super_assistant.conversation.intents import Intent
from super_assistant.conversation.slot_extractor import EMAIL_GUIDANCE, SlotKind
from super_assistant.conversation.state_machine import (
    RESTING_PHASES,
    TRANSITIONS,
    CancelFundOffer,
    ConversationPhase,
    ConversationState,
    Display,
    DisplayView,
    DialogueStateMachine,
    FundOfferDue,
    InvalidTransitionError,
    RequestClassification,
    RequestSlotHint,
    ScheduleFundOffer,
    SlotHintReceived,
    Speak,
    TransitionTrigger,
    UpdateRecord,
    UserUtterance,
    handle,
    reduce,
)
from tests.conftest import FIXED_CODE, awaiting_otp_state, classified, intent_event, make_policy


def _speech(effects) -> str:
    return " ".join(e.text for e in effects if isinstance(e, Speak))


def _views(effects) -> list[DisplayView]:
    return [e.view for e in effects if isinstance(e, Display)]


def _updates(effects) -> list[UpdateRecord]:
    return [e for e in effects if isinstance(e, UpdateRecord)]


class TestTransitionTable:
    def test_every_resting_phase_accepts_fresh_requests(self):
        for phase in RESTING_PHASES:
            triggers = {t.trigger for t in TRANSITIONS if t.from_phase == phase}
            assert TransitionTrigger.INTENT_UPDATE in triggers
            assert TransitionTrigger.FUND_OFFER_DUE in triggers

    def test_undeclared_phase_change_rejected(self, policy, monkeypatch):
        def bad_handler(state, text, policy):
            return awaiting_otp_state(), [], TransitionTrigger.DECLINED

        monkeypatch.setitem(state_machine._SUBFLOW_HANDLERS, ConversationPhase.FUND_OFFER, bad_handler)
        with pytest.raises(InvalidTransitionError, match="fund_offer"):
            reduce(ConversationState.fund_offer(), UserUtterance("no"), policy)

    def test_unknown_event_rejected(self, policy):
        with pytest.raises(TypeError):
            handle(ConversationState.idle(), "hello", policy)


class TestIdle:
    def test_utterance_requests_classification(self, policy):
        state, effects = handle(ConversationState.idle(), UserUtterance("update my email"), policy)
        assert state.phase == ConversationPhase.IDLE
        assert effects == [RequestClassification("update my email")]

    def test_blank_utterance_ignored(self, policy):
        state, effects = handle(ConversationState.idle(), UserUtterance("   "), policy)
        assert state == ConversationState.idle()
        assert effects == []

    @pytest.mark.parametrize("intent, kind", [
        (Intent.UPDATE_EMAIL, SlotKind.EMAIL),
        (Intent.UPDATE_ADDRESS, SlotKind.ADDRESS),
    ])
    def test_update_intent_asks_for_new_value(self, policy, intent, kind):
        state, effects = handle(ConversationState.idle(), intent_event("change it", intent), policy)
        assert state.phase == ConversationPhase.AWAITING_NEW_VALUE
        assert state.slot_kind == kind
        assert f"What is your new {kind.value}?" in _speech(effects)
        assert _updates(effects) == []

    def test_balance_query_displays_balance(self, policy):
        state, effects = handle(
            ConversationState.idle(),
            intent_event("what's my balance", Intent.BALANCE_QUERY, "Here it is."),
            policy,
        )
        assert state.phase == ConversationPhase.IDLE
        assert _views(effects) == [DisplayView.BALANCE]
        assert _speech(effects) == "Here it is."

    def test_personal_details_query(self, policy):
        _, effects = handle(
            ConversationState.idle(),
            intent_event("show my details", Intent.PERSONAL_DETAILS, "Sure."),
            policy,
        )
        assert _views(effects) == [DisplayView.PERSONAL_DETAILS]

    def test_adviser_intent_asks_for_confirmation(self, policy):
        state, effects = handle(
            ConversationState.idle(), intent_event("grow my super", Intent.ADVISER_APPOINTMENT), policy
        )
        assert state.phase == ConversationPhase.ADVISER_CONFIRM
        assert _speech(effects).endswith("?")

    def test_fund_intent_with_job_change_offers_form(self, policy):
        state, effects = handle(
            ConversationState.idle(),
            intent_event("I'm starting a new job", Intent.CHOICE_OF_FUND_FORM),
            policy,
        )
        assert state.phase == ConversationPhase.FUND_OFFER
        assert "Choice of Fund" in _speech(effects)
        assert not state.job_change_noted

    def test_fund_intent_without_job_change_is_general(self, policy):
        state, effects = handle(
            ConversationState.idle(),
            intent_event("tell me about forms", Intent.CHOICE_OF_FUND_FORM, "We have many forms."),
            policy,
        )
        assert state.phase == ConversationPhase.IDLE
        assert _speech(effects) == "We have many forms."

    def test_general_reply_spoken(self, policy):
        state, effects = handle(
            ConversationState.idle(),
            intent_event("hello", Intent.GENERAL_QUESTION, "Hi there!"),
            policy,
        )
        assert state.phase == ConversationPhase.IDLE
        assert effects == [Speak("Hi there!")]

    def test_degraded_classifier_keeps_state(self, policy):
        before = ConversationState.adviser_confirmed("Monday 10am")
        event = state_machine.IntentClassified(
            "hello", classified(Intent.GENERAL_QUESTION, "Sorry, try again.", degraded=True)
        )
        state, effects = handle(before, event, policy)
        assert state == before
        assert effects == [Speak("Sorry, try again.")]

    def test_empty_reply_falls_back(self, policy):
        _, effects = handle(ConversationState.idle(), intent_event("hm", Intent.GENERAL_QUESTION), policy)
        assert _speech(effects)


class TestAwaitingNewValue:
    def test_utterance_requests_slot_hint(self, policy):
        before = ConversationState.awaiting_new_value(SlotKind.EMAIL)
        state, effects = handle(before, UserUtterance("jane at new dot com"), policy)
        assert state == before
        assert effects == [RequestSlotHint(SlotKind.EMAIL, "jane at new dot com")]

    def test_never_reclassified(self, policy):
        before = ConversationState.awaiting_new_value(SlotKind.ADDRESS)
        _, effects = handle(before, UserUtterance("what's my balance"), policy)
        assert not any(isinstance(e, RequestClassification) for e in effects)

    def test_cancel_returns_to_idle(self, policy):
        state, effects = handle(
            ConversationState.awaiting_new_value(SlotKind.EMAIL), UserUtterance("never mind"), policy
        )
        assert state == ConversationState.idle()
        assert "cancelled" in _speech(effects)

    def test_extracted_value_sends_code(self, policy):
        state, effects = handle(
            ConversationState.awaiting_new_value(SlotKind.EMAIL),
            SlotHintReceived(SlotKind.EMAIL, "jane dot smith at outlook dot com", "jane.smith@outlook.com"),
            policy,
        )
        assert state.phase == ConversationPhase.AWAITING_OTP
        assert state.pending.candidate_value == "jane.smith@outlook.com"
        assert state.pending.otp_code == FIXED_CODE
        assert state.otp_attempts == 0
        otp_display = [e for e in effects if isinstance(e, Display)][0]
        assert otp_display.view == DisplayView.OTP_SENT
        assert otp_display.payload["code"] == FIXED_CODE
        assert _updates(effects) == []

    def test_generated_code_is_six_digits(self):
        policy = state_machine.DialoguePolicy()
        state, _ = handle(
            ConversationState.awaiting_new_value(SlotKind.ADDRESS),
            SlotHintReceived(SlotKind.ADDRESS, "1 Main St", "1 Main St"),
            policy,
        )
        assert len(state.pending.otp_code) == 6
        assert state.pending.otp_code.isdigit()

    def test_extraction_failure_reprompts(self, policy):
        before = ConversationState.awaiting_new_value(SlotKind.EMAIL)
        state, effects = handle(before, SlotHintReceived(SlotKind.EMAIL, "um", ""), policy)
        assert state == before
        assert _speech(effects) == EMAIL_GUIDANCE

    def test_hint_for_other_slot_ignored(self, policy):
        before = ConversationState.awaiting_new_value(SlotKind.EMAIL)
        state, effects = handle(before, SlotHintReceived(SlotKind.ADDRESS, "1 Main St", "1 Main St"), policy)
        assert state == before
        assert effects == []

    @pytest.mark.parametrize("kind, reply", [
        (SlotKind.ADDRESS, "4 Bus Stop Road, Sydney"),
        (SlotKind.EMAIL, "stop.smith@gmail.com"),
        (SlotKind.EMAIL, "cancel dot club at gmail dot com"),
    ])
    def test_value_containing_cancel_word_is_not_a_cancel(self, policy, kind, reply):
        before = ConversationState.awaiting_new_value(kind)
        state, effects = handle(before, UserUtterance(reply), policy)
        assert state == before
        assert effects == [RequestSlotHint(kind, reply)]

    def test_cancel_with_filler_words(self, policy):
        state, _ = handle(
            ConversationState.awaiting_new_value(SlotKind.ADDRESS), UserUtterance("no, cancel that"), policy
        )
        assert state == ConversationState.idle()


class TestAwaitingOtp:
    def test_correct_code_updates_record(self, policy):
        state, effects = handle(awaiting_otp_state(), UserUtterance(FIXED_CODE), policy)
        assert state == ConversationState.idle()
        assert _updates(effects) == [UpdateRecord(SlotKind.EMAIL, "jane@new.com")]
        assert DisplayView.PERSONAL_DETAILS in _views(effects)

    def test_spaced_code_accepted(self, policy):
        state, effects = handle(awaiting_otp_state(), UserUtterance("1 2 3 4 5 6"), policy)
        assert state.phase == ConversationPhase.IDLE
        assert len(_updates(effects)) == 1

    def test_mismatch_stays_and_counts(self, policy):
        state, effects = handle(awaiting_otp_state(), UserUtterance("999999"), policy)
        assert state.phase == ConversationPhase.AWAITING_OTP
        assert state.otp_attempts == 1
        assert state.pending == awaiting_otp_state().pending
        assert "incorrect" in _speech(effects)
        assert _updates(effects) == []

    def test_attempts_exhausted_cancels(self):
        policy = make_policy(max_otp_attempts=2)
        state, _ = handle(awaiting_otp_state(), UserUtterance("000000"), policy)
        state, effects = handle(state, UserUtterance("000001"), policy)
        assert state == ConversationState.idle()
        assert "cancelled" in _speech(effects)
        assert _updates(effects) == []

    def test_cancel_discards_pending(self, policy):
        state, effects = handle(awaiting_otp_state(), UserUtterance("cancel"), policy)
        assert state == ConversationState.idle()
        assert state.pending is None
        assert _updates(effects) == []

    def test_full_width_digits_count_as_mismatch(self, policy):
        state, effects = handle(awaiting_otp_state(), UserUtterance("１２３４５６"), policy)
        assert state.phase == ConversationPhase.AWAITING_OTP
        assert state.otp_attempts == 1
        assert _updates(effects) == []


class TestRecordMutation:
    def test_update_only_on_verified_otp(self, policy):
        events = [
            UserUtterance("update my email"),
            intent_event("update my email", Intent.UPDATE_EMAIL),
            UserUtterance("jane at new dot com"),
            SlotHintReceived(SlotKind.EMAIL, "jane at new dot com", "jane@new.com"),
            UserUtterance("111111"),
            UserUtterance("what's my balance"),
            UserUtterance(FIXED_CODE),
        ]
        state = ConversationState.idle()
        for event in events:
            before = state
            state, effects = handle(state, event, policy)
            verified = (
                before.phase == ConversationPhase.AWAITING_OTP
                and state.phase == ConversationPhase.IDLE
                and isinstance(event, UserUtterance)
                and event.text == FIXED_CODE
            )
            assert bool(_updates(effects)) == verified
        assert state.phase == ConversationPhase.IDLE


class TestAdviserFlow:
    def test_yes_shows_slots(self, policy):
        state, effects = handle(ConversationState.adviser_confirm(), UserUtterance("yes please"), policy)
        assert state.phase == ConversationPhase.ADVISER_PICK_SLOT
        display = [e for e in effects if isinstance(e, Display)][0]
        assert display.view == DisplayView.ADVISER_SLOTS
        assert display.payload["slots"] == list(policy.scheduler.slots)

    def test_no_declines(self, policy):
        state, effects = handle(ConversationState.adviser_confirm(), UserUtterance("no thanks"), policy)
        assert state == ConversationState.idle()
        assert _speech(effects)

    def test_neither_reprompts(self, policy):
        before = ConversationState.adviser_confirm()
        state, effects = handle(before, UserUtterance("what does that cost?"), policy)
        assert state == before
        assert "yes or no" in _speech(effects)

    def test_unsure_reply_reprompts(self, policy):
        before = ConversationState.adviser_confirm()
        state, effects = handle(before, UserUtterance("I'm not sure"), policy)
        assert state == before
        assert "yes or no" in _speech(effects)

    def test_pick_slot(self, policy):
        slot = policy.scheduler.slots[0]
        state, effects = handle(ConversationState.adviser_pick_slot(), UserUtterance(slot), policy)
        assert state.phase == ConversationPhase.ADVISER_CONFIRMED
        assert state.adviser_slot == slot
        assert _views(effects) == [DisplayView.APPOINTMENT_SUMMARY]
        assert policy.scheduler.adviser_name in _speech(effects)

    def test_unknown_slot_reprompts(self, policy):
        before = ConversationState.adviser_pick_slot()
        state, effects = handle(before, UserUtterance("sometime next year"), policy)
        assert state == before
        assert "isn't available" in _speech(effects)

    def test_negative_while_picking_returns_idle(self, policy):
        state, _ = handle(ConversationState.adviser_pick_slot(), UserUtterance("no, forget it"), policy)
        assert state == ConversationState.idle()

    def test_confirmed_behaves_like_idle(self, policy):
        state, effects = handle(
            ConversationState.adviser_confirmed("Monday 10am"), UserUtterance("update my address"), policy
        )
        assert effects == [RequestClassification("update my address")]


class TestFundOffer:
    def test_yes_shows_form(self, policy):
        state, effects = handle(ConversationState.fund_offer(), UserUtterance("yes please"), policy)
        assert state.phase == ConversationPhase.FUND_CONFIRMED
        assert state.is_resting
        assert _views(effects) == [DisplayView.CHOICE_OF_FUND_FORM]
        assert "sent to your email" in _speech(effects)

    def test_no_declines(self, policy):
        state, effects = handle(ConversationState.fund_offer(), UserUtterance("nah"), policy)
        assert state == ConversationState.idle()
        assert _views(effects) == []

    def test_neither_reprompts(self, policy):
        before = ConversationState.fund_offer()
        state, effects = handle(before, UserUtterance("what is that?"), policy)
        assert state == before
        assert "yes or no" in _speech(effects)

    def test_please_dont_declines(self, policy):
        state, effects = handle(ConversationState.fund_offer(), UserUtterance("please don't"), policy)
        assert state == ConversationState.idle()
        assert _views(effects) == []


class TestMutualExclusion:
    def test_new_flow_clears_previous_subflow_data(self, policy):
        before = ConversationState.adviser_confirmed("Friday 11am")
        state, _ = handle(before, intent_event("change my email", Intent.UPDATE_EMAIL), policy)
        assert state.adviser_slot is None
        assert state.pending is None
        assert state.slot_kind == SlotKind.EMAIL

    def test_adviser_flow_drops_pending_update(self, policy):
        state, _ = handle(awaiting_otp_state(), UserUtterance("cancel"), policy)
        state, _ = handle(state, intent_event("advice", Intent.ADVISER_APPOINTMENT), policy)
        assert state.phase == ConversationPhase.ADVISER_CONFIRM
        assert state.pending is None
        assert state.slot_kind is None
        assert state.otp_attempts == 0

    def test_exactly_one_phase(self, policy):
        state, _ = handle(awaiting_otp_state(), UserUtterance("000000"), policy)
        assert state.phase == ConversationPhase.AWAITING_OTP
        assert state.adviser_slot is None


class TestDeferredFundOffer:
    def test_job_change_during_flow_schedules_offer_on_completion(self, policy):
        state, effects = handle(
            awaiting_otp_state(), UserUtterance(f"{FIXED_CODE}, and I'm starting a new job"), policy
        )
        assert state.phase == ConversationPhase.IDLE
        assert ScheduleFundOffer(policy.fund_offer_delay) in effects
        assert state.fund_offer_scheduled
        assert not state.job_change_noted

    def test_flag_carried_until_resting(self, policy):
        state, effects = handle(
            ConversationState.adviser_confirm(), UserUtterance("yes, I changed jobs recently"), policy
        )
        assert state.phase == ConversationPhase.ADVISER_PICK_SLOT
        assert state.job_change_noted
        assert not any(isinstance(e, ScheduleFundOffer) for e in effects)

        state, effects = handle(state, UserUtterance("Monday 10am"), policy)
        assert state.phase == ConversationPhase.ADVISER_CONFIRMED
        assert any(isinstance(e, ScheduleFundOffer) for e in effects)

    def test_job_change_alongside_other_intent(self, policy):
        state, effects = handle(
            ConversationState.idle(),
            intent_event("new job, what's my balance?", Intent.BALANCE_QUERY, "Here."),
            policy,
        )
        assert state.phase == ConversationPhase.IDLE
        assert any(isinstance(e, ScheduleFundOffer) for e in effects)

    def test_due_offer_enters_fund_offer(self, policy):
        scheduled = ConversationState(fund_offer_scheduled=True)
        state, effects = handle(scheduled, FundOfferDue(), policy)
        assert state.phase == ConversationPhase.FUND_OFFER
        assert not state.fund_offer_scheduled
        assert "Choice of Fund" in _speech(effects)
        assert not any(isinstance(e, CancelFundOffer) for e in effects)

    def test_unscheduled_timer_ignored(self, policy):
        state, effects = handle(ConversationState.idle(), FundOfferDue(), policy)
        assert state == ConversationState.idle()
        assert effects == []

    def test_new_flow_supersedes_offer(self, policy):
        scheduled = ConversationState(fund_offer_scheduled=True)
        state, effects = handle(scheduled, intent_event("update my email", Intent.UPDATE_EMAIL), policy)
        assert state.phase == ConversationPhase.AWAITING_NEW_VALUE
        assert CancelFundOffer() in effects
        assert not state.fund_offer_scheduled

        state, effects = handle(state, FundOfferDue(), policy)
        assert state.phase == ConversationPhase.AWAITING_NEW_VALUE
        assert effects == []

    def test_info_reply_keeps_offer_scheduled(self, policy):
        scheduled = ConversationState(fund_offer_scheduled=True)
        state, effects = handle(scheduled, intent_event("balance?", Intent.BALANCE_QUERY, "Here."), policy)
        assert state.fund_offer_scheduled
        assert not any(isinstance(e, CancelFundOffer) for e in effects)

    def test_accepting_offer_does_not_reschedule(self, policy):
        state, effects = handle(
            ConversationState.fund_offer(), UserUtterance("yes, for my new job"), policy
        )
        assert state.phase == ConversationPhase.FUND_CONFIRMED
        assert not any(isinstance(e, ScheduleFundOffer) for e in effects)


class TestDialogueStateMachine:
    def test_starts_idle(self, policy):
        sm = DialogueStateMachine(policy)
        assert sm.phase == ConversationPhase.IDLE
        assert sm.get_state_trace() == ["idle"]

    def test_dispatch_records_transitions(self, policy):
        sm = DialogueStateMachine(policy)
        sm.dispatch(UserUtterance("grow my super"))
        sm.dispatch(intent_event("grow my super", Intent.ADVISER_APPOINTMENT))
        sm.dispatch(UserUtterance("yes"))
        sm.dispatch(UserUtterance("Friday"))
        assert sm.get_state_trace() == [
            "idle", "adviser_confirm", "adviser_pick_slot", "adviser_confirmed",
        ]
        history = sm.get_history()
        assert history[-1].trigger == TransitionTrigger.SLOT_SELECTED

    def test_reset_returns_to_idle(self, policy):
        sm = DialogueStateMachine(policy)
        sm.dispatch(intent_event("update", Intent.UPDATE_ADDRESS))
        sm.reset()
        assert sm.state == ConversationState.idle()
