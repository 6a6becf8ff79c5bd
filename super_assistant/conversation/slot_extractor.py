"""
Heuristic slot extraction for free-form speech transcripts.

Speech recognition rarely produces a clean email address: members say
"john dot doe at gmail dot com", or drop the separators entirely. The
extractor combines the raw transcript with the LLM-normalized hint and
walks an ordered list of rules, returning the first syntactically valid
candidate. Addresses are free-form and are taken from the hint as-is.

Usage:
    result = extract(SlotKind.EMAIL, "john dot doe at gmail dot com")
    assert result.value == "john.doe@gmail.com"
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from super_assistant.logging_context import get_session_logger

logger = get_session_logger(__name__)

EMAIL_SEARCH_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
EMAIL_VALID_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Minimum tokens for "local domain tld" reconstruction
MIN_RECONSTRUCT_TOKENS = 3

EMAIL_GUIDANCE = (
    "Sorry, I could not extract a valid email address. Please say your email "
    "in the format john dot doe at gmail dot com, for example: "
    "jane dot smith at outlook dot com."
)
EMPTY_INPUT_GUIDANCE = "I didn't hear anything. Could you please say that again?"

# Applied in order; spoken separators first, then bracketed variants.
_EMAIL_SUBSTITUTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\s+at\s+", re.IGNORECASE), "@"),
    (re.compile(r"\s+dot\s+", re.IGNORECASE), "."),
    (re.compile(r"\s*\(at\)\s*", re.IGNORECASE), "@"),
    (re.compile(r"\s*\(dot\)\s*", re.IGNORECASE), "."),
    (re.compile(r"\s+"), ""),
    (re.compile(r"\[at\]", re.IGNORECASE), "@"),
    (re.compile(r"\[dot\]", re.IGNORECASE), "."),
]
_TRAILING_PUNCTUATION_RE = re.compile(r"[.,;:!?]+$")


class SlotKind(str, Enum):
    """Pieces of member information the dialogue can collect."""

    ADDRESS = "address"
    EMAIL = "email"

    @classmethod
    def parse(cls, label: str) -> "SlotKind":
        """Resolve a wire label such as ``"email"``; raises ValueError if unknown."""
        try:
            return cls(label.strip().lower())
        except ValueError:
            valid = ", ".join(f'"{k.value}"' for k in cls)
            raise ValueError(f"Invalid slot type {label!r}. Must be one of {valid}.") from None


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of a single extraction: a value, or an error to speak back."""

    value: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.value)


def clean_llm_value(text: str) -> str:
    """Trim whitespace and one pair of wrapping quotes from an LLM reply."""
    cleaned = text.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1].strip()
    return cleaned


def is_valid_email(candidate: str) -> bool:
    return bool(EMAIL_VALID_RE.match(candidate))


def find_email(text: str) -> Optional[str]:
    """Return the first email-shaped substring of ``text``, unchanged."""
    match = EMAIL_SEARCH_RE.search(text)
    return match.group(0) if match else None


def normalize_spoken_email(text: str) -> str:
    """Turn spoken separators into symbols: ``"jo dot li at x dot com"`` -> ``"jo.li@x.com"``."""
    email = text
    for pattern, replacement in _EMAIL_SUBSTITUTIONS:
        email = pattern.sub(replacement, email)
    email = email.lower()
    return _TRAILING_PUNCTUATION_RE.sub("", email)


def reconstruct_email_from_words(text: str) -> Optional[str]:
    """Rebuild ``local@domain.tld`` from bare words, e.g. ``"jane smith gmail com"``.

    The last token is the TLD, the second-last the domain and the rest are
    concatenated into the local part.
    """
    words = text.strip().lower().split()
    if len(words) < MIN_RECONSTRUCT_TOKENS:
        return None
    tld = words[-1]
    domain = words[-2]
    local = "".join(words[:-2])
    return f"{local}@{domain}.{tld}"


def _normalized_candidate(text: str) -> Optional[str]:
    normalized = normalize_spoken_email(text)
    if is_valid_email(normalized):
        return normalized
    return find_email(normalized)


def _email_rules(raw: str, hint: str) -> list[tuple[str, Callable[[], Optional[str]]]]:
    return [
        ("regex_transcript", lambda: find_email(raw)),
        ("regex_hint", lambda: find_email(hint)),
        ("normalized_hint", lambda: _normalized_candidate(hint)),
        ("normalized_transcript", lambda: _normalized_candidate(raw)),
        ("words_hint", lambda: reconstruct_email_from_words(hint)),
        ("words_transcript", lambda: reconstruct_email_from_words(raw)),
    ]


def _extract_email(raw: str, hint: str) -> ExtractionResult:
    for rule_name, rule in _email_rules(raw, hint):
        candidate = rule()
        if candidate and is_valid_email(candidate):
            logger.debug("Email extracted by rule '%s': %s", rule_name, candidate)
            return ExtractionResult(value=candidate)
    logger.debug("Email extraction failed for transcript %r (hint %r)", raw, hint)
    return ExtractionResult(error=EMAIL_GUIDANCE)


def _extract_address(raw: str, hint: str) -> ExtractionResult:
    return ExtractionResult(value=hint or raw.strip())


def extract(slot_kind: SlotKind, raw_transcript: str, llm_hint: str = "") -> ExtractionResult:
    """
    Extract a normalized slot value from a transcript and an optional LLM hint.

    Args:
        slot_kind: Which extraction rules to apply.
        raw_transcript: What the member actually said (or typed).
        llm_hint: The LLM-normalized version of the transcript, if any.

    Returns:
        An ExtractionResult with either ``value`` or ``error`` set.
    """
    if not raw_transcript or not raw_transcript.strip():
        return ExtractionResult(error=EMPTY_INPUT_GUIDANCE)

    hint = clean_llm_value(llm_hint or "")
    if slot_kind == SlotKind.EMAIL:
        return _extract_email(raw_transcript, hint)
    return _extract_address(raw_transcript, hint)
