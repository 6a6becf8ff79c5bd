"""Spoken reply templates for the dialogue flows."""

from typing import Optional

from super_assistant.config import settings

_assistant = settings.assistant


def build_new_value_prompt(kind_label: str) -> str:
    """Ask for the replacement value of a slot."""
    return f"Sure, I can help with that. What is your new {kind_label}?"


def build_extraction_retry_prompt(kind_label: str, guidance: Optional[str]) -> str:
    """Re-prompt after a value could not be extracted."""
    return guidance or f"Sorry, I didn't catch that. What is your new {kind_label}?"


def build_otp_sent_message(kind_label: str, value: str) -> str:
    return (
        f"Thanks. To update your {kind_label} to {value}, I've sent a six-digit "
        "verification code to your registered mobile. Please say or enter the code."
    )


def build_otp_mismatch_message(attempts_left: int) -> str:
    if attempts_left == 1:
        return "That code is incorrect. Please try again. You have one attempt left."
    return f"That code is incorrect. Please try again. You have {attempts_left} attempts left."


def build_otp_exhausted_message(kind_label: str) -> str:
    return (
        "That code still doesn't match, so I've cancelled the "
        f"{kind_label} update for your security. You can start again any time."
    )


def build_update_confirmed_message(kind_label: str, value: str) -> str:
    return f"Thanks, that code is correct. I've updated your {kind_label} to {value}."


def build_cancelled_message(kind_label: str) -> str:
    return f"No problem, I've cancelled the {kind_label} update."


def build_adviser_confirmation_prompt() -> str:
    return (
        f"I can book you a meeting with a {_assistant.company_name} adviser to talk "
        "about growing your super. Would you like to go ahead?"
    )


def build_adviser_slot_prompt(slots: list[str]) -> str:
    if len(slots) == 1:
        options = slots[0]
    else:
        options = ", ".join(slots[:-1]) + f", or {slots[-1]}"
    return f"Great. I have {options} available. Which time suits you?"


def build_adviser_slot_retry_prompt(slots: list[str]) -> str:
    return "Sorry, that time isn't available. " + build_adviser_slot_prompt(slots)


def build_appointment_summary(adviser_name: str, day: str, time: str) -> str:
    return (
        f"You're booked in with {_assistant.company_name} adviser {adviser_name} "
        f"on {day} at {time}. We'll send you a reminder beforehand."
    )


def build_adviser_declined_message() -> str:
    return "No worries. Let me know if you'd like to speak with an adviser later."


def build_fund_offer_prompt() -> str:
    return (
        "I noticed you mentioned a new job. Would you like me to pre-fill a "
        f"Choice of Fund form so your new employer can keep paying into {_assistant.company_name}?"
    )


def build_fund_confirmed_message() -> str:
    return "Here is your pre-filled Choice of Fund form. A copy has been sent to your email."


def build_fund_declined_message() -> str:
    return "No problem, I won't prepare the form. Is there anything else I can help with?"


def build_yes_no_reprompt(question: str) -> str:
    """Re-ask a yes/no question when the reply was neither."""
    return f"Sorry, I just need a yes or no. {question}"


def build_fallback_reply() -> str:
    return (
        "I'm sorry, I'm having trouble understanding right now. You can ask me to "
        "check your balance, update your address or email, or book an adviser."
    )
