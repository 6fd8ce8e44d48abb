"""Date parsing and rendering for date-like form controls."""

import re
from datetime import date, datetime
from typing import Any, List, Optional

# Input layouts accepted from profiles, tried in order. Day-first layouts win
# over month-first ones because the stored profiles are Indian-format.
_INPUT_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
)

_ISO_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]")
_DMY_HINT = re.compile(r"d{1,2}\s*([-/.\s])\s*m{1,2}\s*[-/.\s]\s*y{2,4}", re.IGNORECASE)
_YMD_HINT = re.compile(r"y{4}\s*([-/.\s])\s*m{1,2}\s*[-/.\s]\s*d{1,2}", re.IGNORECASE)


def to_iso(value: Any) -> Optional[str]:
    """
    Convert a profile value to an ISO ``YYYY-MM-DD`` string.

    Accepts ``date``/``datetime`` objects, ISO timestamps and the common
    day-first layouts. Returns ``None`` when the value is not a date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None

    match = _ISO_PREFIX.match(text)
    if match:
        text = match.group(1)

    cleaned = text.replace(",", " ")
    cleaned = " ".join(cleaned.split())
    for fmt in _INPUT_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def format_dmy(iso_value: str, separator: str = "-") -> str:
    """Render an ISO date as day-month-year."""
    parsed = datetime.strptime(iso_value, "%Y-%m-%d")
    return parsed.strftime(f"%d{separator}%m{separator}%Y")


def placeholder_format(placeholder: Optional[str]) -> Optional[str]:
    """
    Infer the date layout a control expects from its placeholder.

    Returns ``"dmy"``, ``"iso"`` or ``None`` when the placeholder says
    nothing about dates.
    """
    if not placeholder:
        return None
    if _DMY_HINT.search(placeholder):
        return "dmy"
    if _YMD_HINT.search(placeholder):
        return "iso"
    return None


def _placeholder_separator(placeholder: Optional[str]) -> str:
    match = _DMY_HINT.search(placeholder or "")
    if match and match.group(1).strip():
        return match.group(1)
    return "-"


def render_candidates(raw_value: Any, placeholder: Optional[str] = None) -> List[str]:
    """
    Ordered, de-duplicated renderings to try against a date control.

    The placeholder's implied layout comes first, then ISO, then
    day-month-year, then the raw value as given.

    Example:
        >>> render_candidates("2001-05-04", "dd-mm-yyyy")[0]
        '04-05-2001'
    """
    raw_text = "" if raw_value is None else str(raw_value).strip()
    iso_value = to_iso(raw_value)
    if iso_value is None:
        return [raw_text] if raw_text else []

    separator = _placeholder_separator(placeholder)
    dmy_value = format_dmy(iso_value, separator)

    ordered: List[str] = []
    if placeholder_format(placeholder) == "dmy":
        ordered.append(dmy_value)
    ordered.extend([iso_value, dmy_value, raw_text])

    candidates: List[str] = []
    for candidate in ordered:
        if candidate and candidate not in candidates:
            candidates.append(candidate)
    return candidates
