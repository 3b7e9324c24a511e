# Vault - Password Generator & Strength Meter
#
# Generation draws from the `secrets` CSPRNG only.
# Strength scoring is a pure, deterministic 0-100 heuristic consumed
# directly by the generator dialog (score, label, colour).

import re
import secrets
from dataclasses import dataclass
from typing import List, Optional

from .errors import InvalidInputError

UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
ALPHANUMERIC = LOWERCASE + UPPERCASE + DIGITS

DEFAULT_LENGTH = 20

WEAK_PREFIXES = ("password", "123456", "qwerty")

# (upper bound, label, colour), checked in order
_STRENGTH_STEPS = [
    (20, "Very Weak", "#ef4444"),
    (40, "Weak", "#f97316"),
    (60, "Fair", "#eab308"),
    (80, "Strong", "#22c55e"),
]
_STRONGEST = ("Very Strong", "#10b981")

_CLASS_PATTERNS = [
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[^a-zA-Z0-9]"),
]
_SINGLE_CLASS = re.compile(r"^[a-zA-Z]+\Z|^[0-9]+\Z")
_TRIPLE_REPEAT = re.compile(r"(.)\1{2,}", re.DOTALL)


@dataclass
class PasswordOptions:
    """Character classes enabled for generate_password()."""
    uppercase: bool = True
    lowercase: bool = True
    numbers: bool = True
    symbols: bool = True

    def pool(self) -> str:
        chars = ""
        if self.uppercase:
            chars += UPPERCASE
        if self.lowercase:
            chars += LOWERCASE
        if self.numbers:
            chars += DIGITS
        if self.symbols:
            chars += SYMBOLS
        # All classes disabled: fall back instead of failing
        return chars or ALPHANUMERIC


def generate_password(length: int = DEFAULT_LENGTH, options: Optional[PasswordOptions] = None) -> str:
    """
    Generate a random password of exactly ``length`` characters.

    Each character is an independent 32-bit draw from the CSPRNG mapped
    into the character pool by modulo.

    Raises:
        InvalidInputError: if length is negative
    """
    if length < 0:
        raise InvalidInputError("Password length must not be negative")

    chars = (options or PasswordOptions()).pool()
    draws: List[int] = [secrets.randbits(32) for _ in range(length)]
    return "".join(chars[x % len(chars)] for x in draws)


def calculate_password_strength(password: str) -> int:
    """
    Score a password from 0 (worst) to 100 (best).

    - length: 4 points per character, up to 40
    - each character class present (lower, upper, digit, symbol): +10
    - mixing bonus: +5 per class present
    - penalties: letters-only or digits-only (-10), a character repeated
      3+ times in a row (-10), starts with a well-known weak pattern (-30)
    """
    if not password:
        return 0

    score = min(len(password) * 4, 40)

    classes = sum(1 for pattern in _CLASS_PATTERNS if pattern.search(password))
    score += classes * 10
    score += classes * 5

    if _SINGLE_CLASS.match(password):
        score -= 10
    if _TRIPLE_REPEAT.search(password):
        score -= 10
    if password.lower().startswith(WEAK_PREFIXES):
        score -= 30

    return max(0, min(100, score))


def get_strength_label(score: int) -> str:
    """Human-readable label for a strength score."""
    for bound, label, _ in _STRENGTH_STEPS:
        if score < bound:
            return label
    return _STRONGEST[0]


def get_strength_color(score: int) -> str:
    """Hex colour for a strength score (red -> green ramp)."""
    for bound, _, color in _STRENGTH_STEPS:
        if score < bound:
            return color
    return _STRONGEST[1]
