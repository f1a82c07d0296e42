# mensa/durations.py
import re
from datetime import timedelta

from mensa.errors import BadDuration

_UNIT_SECONDS = {
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
}

# one "<number><unit>" group, e.g. "1.5h" or "30 min"
_PART_RE = re.compile(r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>[a-z]+)")
_BARE_RE = re.compile(r"^\d+(?:\.\d+)?$")


def parse_duration(text: str, max_duration: timedelta | None = None) -> timedelta:
    """
    Parse human durations: "0", "90", "30m", "2h", "1h30m", "1 day 2 hours".
    Bare numbers are seconds. Raises BadDuration on anything else.
    """
    s = (text or "").strip().lower()
    if not s:
        raise BadDuration()

    if _BARE_RE.match(s):
        total = float(s)
    else:
        total = 0.0
        pos = 0
        for m in _PART_RE.finditer(s):
            # only whitespace/commas/"and" may sit between groups
            gap = s[pos:m.start()].replace(",", " ").replace("and", " ")
            if gap.strip():
                raise BadDuration(f"unexpected `{gap.strip()}` in duration {text!r}")
            unit = m.group("unit")
            if unit not in _UNIT_SECONDS:
                raise BadDuration(f"unknown unit `{unit}` in duration {text!r}")
            total += float(m.group("value")) * _UNIT_SECONDS[unit]
            pos = m.end()
        if pos == 0 or s[pos:].strip():
            raise BadDuration(f"unparseable duration {text!r}")

    try:
        duration = timedelta(seconds=total)
    except (OverflowError, ValueError) as e:
        raise BadDuration(f"Duration {text!r} is way too long.") from e
    if max_duration is not None and duration > max_duration:
        limit = f"{max_duration.total_seconds() / 3600:g}h"
        raise BadDuration(f"Duration {text!r} is too long, markers can last at most {limit}.")
    return duration
