# batepapo/services/sanitizer.py

from __future__ import annotations

import html
import math
import re
from typing import Any, Optional

from batepapo.core.errors import ValidationError

# ============================================================================
# INPUT SANITIZATION
# ============================================================================

_TAG_RE = re.compile(r"</?[a-zA-Z!][^>]*>")
_UNCLOSED_TAG_RE = re.compile(r"<[a-zA-Z/!][^>]*$")


def strip_markup(value: Any) -> Any:
    """
    Remove HTML markup from a free-text field and trim it.

    Tags are dropped, HTML entities decoded, and surrounding whitespace
    trimmed. Anything that is not a string is returned untouched so the
    schema layer can reject it with a proper validation error.

    Examples:
        strip_markup("  <b>Ana</b> ")          -> "Ana"
        strip_markup("<script>x</script>oi")   -> "xoi"
        strip_markup(None)                     -> None
    """
    if not isinstance(value, str):
        return value

    # Decoded entities can spell new markup (&amp;lt;b&amp;gt; -> <b>),
    # so repeat until nothing changes
    previous = None
    cleaned = value
    while cleaned != previous:
        previous = cleaned
        cleaned = _TAG_RE.sub("", cleaned)
        cleaned = _UNCLOSED_TAG_RE.sub("", cleaned)
        cleaned = html.unescape(cleaned).strip()
    return cleaned


def require_text(value: Any, field: str) -> str:
    """Sanitize a required field and fail if nothing is left."""
    cleaned = strip_markup(value)
    if not isinstance(cleaned, str) or not cleaned:
        raise ValidationError(f"'{field}' is required")
    return cleaned


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """
    Turn the `limit` query parameter into a truncation size.

    Returns None (no truncation) when the value is absent, not numeric,
    not finite, or not positive. Fractional values are floored.
    """
    if raw is None:
        return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 1:
        return None
    return int(number)
