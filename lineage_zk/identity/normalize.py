"""Text normalization applied before hashing names and passphrases."""

from __future__ import annotations

import unicodedata

from .config import NAME_NORMALIZATION_FORM, PASSPHRASE_NORMALIZATION_FORM
from .exceptions import ValidationError

# Characters removed by ECMAScript String.prototype.trim (WhiteSpace and
# LineTerminator). Differs from str.strip: U+FEFF is stripped, U+001C-U+001F
# and U+0085 are kept.
JS_TRIM_CHARS = (
    "\u0009\u000a\u000b\u000c\u000d\u0020\u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def normalize_name(value) -> str:
    """
    Trim surrounding whitespace the way the web client does, then apply NFC.

    An empty result is the "absent" signal for a parent; use
    :func:`require_name` for the primary subject.
    """
    if value is None:
        return ""
    return unicodedata.normalize(NAME_NORMALIZATION_FORM, str(value).strip(JS_TRIM_CHARS))


def require_name(value, field: str = "full_name") -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(field, "must be a string")
    normalized = normalize_name(value)
    if not normalized:
        raise ValidationError(field, "must be a non-empty string")
    return normalized


def normalize_passphrase(value) -> str:
    """
    Apply NFKD without trimming.

    Leading and trailing whitespace is significant in a passphrase.
    """
    if value is None:
        return ""
    return unicodedata.normalize(PASSPHRASE_NORMALIZATION_FORM, str(value))
