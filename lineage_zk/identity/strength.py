"""
Passphrase strength estimate.

The passphrase is the only secret protecting a commitment against dictionary
reversal of common names, so the CLI reports a rough entropy estimate before
proving. The estimate is heuristic and advisory only.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional

from .normalize import normalize_name

COMMON_WEAK_PASSWORDS = frozenset(
    {
        "password",
        "123456",
        "123456789",
        "qwerty123",
        "letmein",
        "welcome",
        "family2024",
        "deepfamily",
        "abc123",
        "111111",
        "000000",
        "iloveyou",
    }
)

KEYBOARD_ROWS = ("1234567890", "qwertyuiop", "asdfghjkl", "zxcvbnm")
ALPHABET = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"

MIN_UNICODE_CHARSET = 48

# (upper bound exclusive, level)
LEVELS = (
    (50, "weak"),
    (80, "medium"),
    (128, "strong"),
    (192, "very-strong"),
)
STRONG_THRESHOLD = 80


@dataclass(frozen=True)
class PassphraseStrength:
    is_strong: bool
    entropy: float
    raw_entropy: float
    level: str
    recommendation: Optional[str] = None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _has_sequential_pattern(value: str) -> bool:
    if len(value) < 4:
        return False
    lower = value.lower()
    for sequence in (*KEYBOARD_ROWS, ALPHABET, DIGITS):
        reverse = sequence[::-1]
        for i in range(len(lower) - 3):
            segment = lower[i:i + 4]
            if segment in sequence or segment in reverse:
                return True
    return False


def _is_repeated_sequence(value: str) -> bool:
    if len(value) < 4:
        return False
    lower = value.lower()
    for size in range(1, len(lower) // 2 + 1):
        if len(lower) % size:
            continue
        if lower[:size] * (len(lower) // size) == lower:
            return True
    return False


def _charset_size(value: str) -> int:
    size = 0
    if re.search(r"[a-z]", value):
        size += 26
    if re.search(r"[A-Z]", value):
        size += 26
    if re.search(r"[0-9]", value):
        size += 10
    if re.search(r"[^a-zA-Z0-9\s]", value):
        size += 32
    if re.search(r"\s", value):
        size += 1
    non_ascii = {ch for ch in value if ord(ch) > 0x7F}
    if non_ascii:
        size += max(MIN_UNICODE_CHARSET, len(non_ascii) * 6)
    if size == 0:
        size = int(_clamp(len(set(value)), 1, 95))
    return size


def _level(entropy: float) -> str:
    for bound, name in LEVELS:
        if entropy < bound:
            return name
    return "excellent"


def assess_passphrase(passphrase: str, include_recommendation: bool = False) -> PassphraseStrength:
    """
    Estimate passphrase entropy in bits.

    raw entropy = length * log2(charset size), then scaled down for dominant
    characters, low diversity, short length, keyboard/alphabet runs and
    repeated chunks.
    """
    normalized = normalize_name(passphrase)
    if not normalized:
        return PassphraseStrength(
            is_strong=False,
            entropy=0.0,
            raw_entropy=0.0,
            level="weak",
            recommendation=(
                "Empty passphrase: the commitment is only as private as the name. "
                "Use an 18+ character passphrase."
                if include_recommendation
                else None
            ),
        )

    if normalized.lower() in COMMON_WEAK_PASSWORDS:
        return PassphraseStrength(
            is_strong=False,
            entropy=10.0,
            raw_entropy=10.0,
            level="weak",
            recommendation=(
                "Common passphrase detected. Choose a unique phrase with mixed characters."
                if include_recommendation
                else None
            ),
        )

    length = len(normalized)
    raw_entropy = length * math.log2(_charset_size(normalized))

    counts: dict[str, int] = {}
    for ch in normalized:
        counts[ch] = counts.get(ch, 0) + 1
    unique_ratio = len(counts) / length
    dominant_ratio = max(counts.values()) / length

    modifier = 1.0
    if dominant_ratio >= 0.9:
        modifier *= 0.2
    elif dominant_ratio >= 0.75:
        modifier *= 0.35
    elif dominant_ratio >= 0.6:
        modifier *= 0.5

    if unique_ratio < 0.5:
        modifier *= _clamp(0.5 + unique_ratio, 0.4, 0.9)

    if length < 8:
        modifier *= 0.35
    elif length < 12:
        modifier *= 0.6

    if _has_sequential_pattern(normalized):
        modifier *= 0.55
    if _is_repeated_sequence(normalized):
        modifier *= 0.45

    entropy = raw_entropy * _clamp(modifier, 0.05, 1.0)
    level = _level(entropy)

    recommendation = None
    if include_recommendation:
        if entropy < STRONG_THRESHOLD:
            recommendation = (
                f"Entropy: {round(entropy)} bits. Recommend 15+ mixed characters or 20+ letters."
            )
        else:
            recommendation = f"Entropy: {round(entropy)} bits ({level})."

    return PassphraseStrength(
        is_strong=entropy >= STRONG_THRESHOLD,
        entropy=entropy,
        raw_entropy=raw_entropy,
        level=level,
        recommendation=recommendation,
    )
