"""
Adviser appointment scheduling and the choice-of-fund offer.

Both sub-flows are short and deterministic: the scheduler offers a fixed
set of slots and matches the member's reply against them, the fund offer
is a single yes/no question.
"""

import logging
import re
from typing import Optional, Sequence

from super_assistant.config import settings
from super_assistant.prompts import prompt_templates

logger = logging.getLogger(__name__)

_MERIDIEM_RE = re.compile(r"\b(\d{1,2})(?::00)?\s*([ap])\.?\s*m\b\.?", re.IGNORECASE)
_ORDINALS = {"first": 0, "second": 1, "third": 2, "last": -1}
_ORDINAL_RE = re.compile(r"\b(first|second|third|last) (?:one|slot|option|time)\b")


def normalize_time_phrase(text: str) -> str:
    """Lower-case and collapse clock times: ``"10 a.m."`` and ``"10:00 AM"`` become ``"10am"``."""
    return _MERIDIEM_RE.sub(lambda m: f"{int(m.group(1))}{m.group(2).lower()}m", text.lower())


class AdviserScheduler:
    """Offers the fixed adviser slots and resolves the member's pick."""

    def __init__(
        self,
        slots: Optional[Sequence[str]] = None,
        adviser_name: Optional[str] = None,
    ) -> None:
        self.slots = list(slots if slots is not None else settings.assistant.adviser_slots)
        self.adviser_name = adviser_name or settings.assistant.adviser_name
        if not self.slots:
            raise ValueError("AdviserScheduler needs at least one slot")

    @staticmethod
    def _split(slot: str) -> tuple[str, str]:
        day, _, time = slot.partition(" ")
        return day, time

    def match_slot(self, utterance: str) -> Optional[str]:
        """
        Resolve a reply to one of the offered slots.

        Tries the full label first, then the time, then the day name, then
        an ordinal ("the second one"). Returns None when nothing matches.
        """
        text = normalize_time_phrase(utterance)

        for slot in self.slots:
            if normalize_time_phrase(slot) in text:
                return slot

        for slot in self.slots:
            _, time = self._split(slot)
            if time and re.search(r"\b" + re.escape(normalize_time_phrase(time)) + r"\b", text):
                return slot

        for slot in self.slots:
            day, _ = self._split(slot)
            if re.search(r"\b" + re.escape(day.lower()) + r"\b", text):
                return slot

        ordinal = _ORDINAL_RE.search(text)
        if ordinal:
            index = _ORDINALS[ordinal.group(1)]
            if index < len(self.slots):
                return self.slots[index]

        logger.debug("No adviser slot matched %r", utterance)
        return None

    def confirmation_prompt(self) -> str:
        return prompt_templates.build_adviser_confirmation_prompt()

    def slot_prompt(self) -> str:
        return prompt_templates.build_adviser_slot_prompt(self.slots)

    def retry_prompt(self) -> str:
        return prompt_templates.build_adviser_slot_retry_prompt(self.slots)

    def decline_message(self) -> str:
        return prompt_templates.build_adviser_declined_message()

    def summary(self, slot: str) -> str:
        day, time = self._split(slot)
        return prompt_templates.build_appointment_summary(self.adviser_name, day, time)


class FundOfferFlow:
    """Text for the proactive choice-of-fund offer."""

    def offer_prompt(self) -> str:
        return prompt_templates.build_fund_offer_prompt()

    def confirmation_message(self) -> str:
        return prompt_templates.build_fund_confirmed_message()

    def decline_message(self) -> str:
        return prompt_templates.build_fund_declined_message()
