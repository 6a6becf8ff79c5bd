"""
Intent labels, classifier results, and phrase detectors for member replies.

The LLM decides what a fresh request is about; short replies inside a
sub-flow (yes/no, cancel) and the job-change trigger are recognised
locally with word-boundary patterns so a multi-turn flow never depends on
a reclassification.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


def _compile_patterns(phrases: list[str]) -> re.Pattern[str]:
    """Compile a list of phrases into a single word-boundary regex."""
    escaped = [re.escape(p) for p in phrases]
    return re.compile(r"\b(?:" + "|".join(escaped) + r")\b", re.IGNORECASE)


class Intent(str, Enum):
    """Discrete intent labels returned by the classifier."""

    BALANCE_QUERY = "superannuation_balance_query"
    UPDATE_ADDRESS = "update_address"
    UPDATE_EMAIL = "update_email"
    ADVISER_APPOINTMENT = "adviser_appointment"
    CHOICE_OF_FUND_FORM = "choice_of_fund_form"
    PERSONAL_DETAILS = "personal_details_query"
    GENERAL_QUESTION = "general_question"

    @classmethod
    def from_label(cls, label: str) -> "Intent":
        """Map a classifier label to an Intent; unknown labels become GENERAL_QUESTION."""
        normalized = (label or "").strip().lower()
        for intent in cls:
            if intent.value == normalized:
                return intent
        return cls.GENERAL_QUESTION


@dataclass(frozen=True)
class ClassifierResult:
    """What the classifier made of one utterance."""

    intent: Intent
    reply: str
    label: str = ""
    degraded: bool = False

    @classmethod
    def from_label(cls, label: str, reply: str, degraded: bool = False) -> "ClassifierResult":
        return cls(intent=Intent.from_label(label), reply=reply, label=label, degraded=degraded)


AFFIRMATIVE_PHRASES = [
    "yes", "yeah", "yep", "yup", "sure", "ok", "okay", "confirm",
    "go ahead", "sounds good", "absolutely", "of course", "definitely",
    "let's do it", "why not",
]
NEGATIVE_PHRASES = [
    "no", "nope", "nah", "not now", "no thanks", "don't", "do not",
    "not interested", "maybe later", "decline", "skip", "not really",
    "not ok", "not okay", "rather not",
]
CANCEL_PHRASES = [
    "cancel", "never mind", "nevermind", "forget it", "stop", "abort",
    "don't bother",
]
# Hedges that contain an affirmative word but answer neither way
UNSURE_PHRASES = [
    "not sure", "unsure", "not certain", "don't know", "dunno", "not yet",
]
# Words allowed around a cancel phrase when the whole reply is a cancellation
CANCEL_LEAD_WORDS = [
    "no", "oh", "um", "uh", "actually", "ok", "okay", "sorry", "wait", "please",
    "just", "i want to", "i'd like to", "let's", "can you", "can we",
]
CANCEL_TAIL_WORDS = [
    "it", "that", "this", "please", "thanks", "thank you", "then",
    "the update", "the change", "the request",
]
JOB_CHANGE_PHRASES = [
    "new job", "new employer", "another employer", "different employer",
    "another job", "different job", "changing jobs", "change jobs",
    "changed jobs", "changing job", "switching jobs", "switched jobs",
    "changing employers", "changed employers", "changing employer",
    "started a new job", "starting a new job", "starting a job",
    "moving to another employer", "new workplace",
]

_AFFIRMATIVE_RE = _compile_patterns(AFFIRMATIVE_PHRASES)
_NEGATIVE_RE = _compile_patterns(NEGATIVE_PHRASES)
_CANCEL_RE = _compile_patterns(CANCEL_PHRASES)
_JOB_CHANGE_RE = _compile_patterns(JOB_CHANGE_PHRASES)
_UNSURE_RE = _compile_patterns(UNSURE_PHRASES)


def _alternation(phrases: list[str]) -> str:
    return "(?:" + "|".join(re.escape(p) for p in phrases) + ")"


_CANCEL_REPLY_RE = re.compile(
    r"^\W*(?:" + _alternation(CANCEL_LEAD_WORDS) + r"\W+)*"
    + _alternation(CANCEL_PHRASES)
    + r"(?:\W+" + _alternation(CANCEL_TAIL_WORDS) + r")*\W*$",
    re.IGNORECASE,
)


def is_affirmative(text: str) -> bool:
    return bool(_AFFIRMATIVE_RE.search(text))


def is_negative(text: str) -> bool:
    return bool(_NEGATIVE_RE.search(text))


def is_cancel(text: str) -> bool:
    return bool(_CANCEL_RE.search(text))


def is_cancel_reply(text: str) -> bool:
    """True when the whole reply is a cancellation ("never mind", "no, cancel that").

    Used where the reply is otherwise a free-form value, so an address on
    "Bus Stop Road" is not read as "stop".
    """
    return bool(_CANCEL_REPLY_RE.match(text.strip()))


def mentions_job_change(text: str) -> bool:
    return bool(_JOB_CHANGE_RE.search(text))


def confirmation_answer(text: str) -> Optional[bool]:
    """Read a yes/no reply: True, False, or None when it is neither.

    Hedges ("I'm not sure") are removed first so the "sure" inside them is
    not read as a yes. When both kinds of phrase appear ("no, please don't")
    the earliest one wins.
    """
    text = _UNSURE_RE.sub(" ", text)
    yes = _AFFIRMATIVE_RE.search(text)
    no = _NEGATIVE_RE.search(text)
    if yes and no:
        return yes.start() < no.start()
    if yes:
        return True
    if no:
        return False
    return None


class KeywordIntentClassifier:
    """
    Offline stand-in for the LLM classifier.

    Mirrors the intent rules of the classifier prompt with keyword matching
    so the console demo and tests run without API keys.
    """

    INTENT_SIGNALS: list[tuple[Intent, list[str]]] = [
        (Intent.UPDATE_ADDRESS, [
            "update my address", "change my address", "new address",
            "update address", "change address", "moved house", "i've moved",
        ]),
        (Intent.UPDATE_EMAIL, [
            "update my email", "change my email", "new email",
            "update email", "change email", "email address",
        ]),
        (Intent.BALANCE_QUERY, [
            "balance", "how much super", "how much is in my", "my super worth",
        ]),
        (Intent.PERSONAL_DETAILS, [
            "personal details", "my details", "personal information",
        ]),
        (Intent.ADVISER_APPOINTMENT, [
            "adviser", "advisor", "optimise", "optimize", "grow my",
            "better investment", "investment options", "advice",
        ]),
    ]

    REPLIES: dict[Intent, str] = {
        Intent.BALANCE_QUERY: "Here is your current superannuation balance.",
        Intent.PERSONAL_DETAILS: "Here are your personal details.",
        Intent.UPDATE_ADDRESS: "Sure, I can update your address.",
        Intent.UPDATE_EMAIL: "Sure, I can update your email.",
        Intent.ADVISER_APPOINTMENT: "I can set up a time with one of our advisers.",
        Intent.CHOICE_OF_FUND_FORM: "Congratulations on the new role!",
        Intent.GENERAL_QUESTION: (
            "I can help you check your balance, update your address or email, "
            "or book a time with an adviser. What would you like to do?"
        ),
    }

    async def classify(self, message: str) -> ClassifierResult:
        lower = message.lower()
        intent = Intent.GENERAL_QUESTION
        if mentions_job_change(lower):
            intent = Intent.CHOICE_OF_FUND_FORM
        else:
            for candidate, signals in self.INTENT_SIGNALS:
                if any(s in lower for s in signals):
                    intent = candidate
                    break
        logger.debug("Keyword classifier: %r -> %s", message, intent.value)
        return ClassifierResult(intent=intent, reply=self.REPLIES[intent], label=intent.value)
