"""
Mocked one-time passcode generation and verification.

Codes are never delivered anywhere real; the dialogue surfaces them through
an ``otp_sent`` display directive so the demo can be driven end to end.
"""

import random
import secrets
from typing import Optional

from super_assistant.utils import digits_only, spoken_digits_to_numerals

OTP_LENGTH = 6


def generate(rng: Optional[random.Random] = None) -> str:
    """Return a uniformly random 6-digit code; leading zeros are kept."""
    upper = 10 ** OTP_LENGTH
    number = rng.randrange(upper) if rng is not None else secrets.randbelow(upper)
    return f"{number:0{OTP_LENGTH}d}"


def verify(user_input: str, expected: str) -> bool:
    """Compare spoken or typed input against the expected code.

    Spoken digit words are converted and every non-digit character is
    stripped first, so ``"1 2 3 4 5 6"`` and ``"one two three four five six"``
    both match ``"123456"``.
    """
    if not expected:
        return False
    entered = digits_only(spoken_digits_to_numerals(user_input))
    return secrets.compare_digest(entered, expected)
