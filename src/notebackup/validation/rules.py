"""Field level rules for backup records.

Each rule looks at one raw value (whatever came out of JSON) and returns a
:class:`RuleResult`. Rules never raise, it is up to the caller to decide what an
outcome means for the record.
"""

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class RuleOutcome(str, Enum):
    VALID = "valid"
    EMPTY = "empty"
    TOO_LONG = "too_long"
    INVALID = "invalid"


class RuleResult(BaseModel):
    outcome: RuleOutcome
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return self.outcome == RuleOutcome.VALID


VALID = RuleResult(outcome=RuleOutcome.VALID)

_HEX_RE = re.compile(r"^#?(?:[0-9A-Fa-f]{2})?([0-9A-Fa-f]{6})$")


def check_text(value: Any, max_length: int, what: str) -> RuleResult:
    """Generic rule for required, length limited text (length counted after trimming)."""
    if value is None:
        return RuleResult(outcome=RuleOutcome.EMPTY, reason=f"{what} is missing")
    if not isinstance(value, str):
        return RuleResult(outcome=RuleOutcome.INVALID, reason=f"{what} must be a string, got {type(value).__name__}")
    stripped = value.strip()
    if not stripped:
        return RuleResult(outcome=RuleOutcome.EMPTY, reason=f"{what} is blank")
    if len(stripped) > max_length:
        return RuleResult(
            outcome=RuleOutcome.TOO_LONG,
            reason=f"{what} is too long ({len(stripped)} > {max_length} characters)",
        )
    return VALID


def check_content(value: Any, max_length: int) -> RuleResult:
    return check_text(value, max_length, "Content")


def check_category_name(value: Any, max_length: int) -> RuleResult:
    return check_text(value, max_length, "Category name")


def check_reference(value: Any) -> RuleResult:
    """Category referenced by a note, no length limit here (the category may not be declared)."""
    if value is None:
        return RuleResult(outcome=RuleOutcome.EMPTY, reason="Category reference is missing")
    if not isinstance(value, str):
        return RuleResult(outcome=RuleOutcome.INVALID, reason="Category reference must be a string")
    if not value.strip():
        return RuleResult(outcome=RuleOutcome.EMPTY, reason="Category reference is blank")
    return VALID


def normalize_color(value: Any, default: str) -> str:
    """Accept ``RRGGBB``, ``#RRGGBB``, ``AARRGGBB`` and ``#AARRGGBB``, return ``RRGGBB``.

    Older exports wrote ARGB values like ``#FF4A90E2``, the alpha channel is dropped.
    Anything else falls back to ``default``.
    """
    if isinstance(value, str):
        match = _HEX_RE.match(value.strip())
        if match is not None:
            return match.group(1).upper()
    return default.upper()


def normalize_count(value: Any) -> int:
    """Informational counters: anything that is not a non-negative integer becomes 0."""
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(value, 0)


def normalize_icon(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default
