"""Human-readable scholarship identifiers.

A code is the client's non-empty reference codes joined with ``-``, followed
by the award date as ``YYYYMMDD``::

    >>> generate_scholarship_code(["ABC123", None, ""], "2024-03-15")
    'ABC123-20240315'

The same client awarded twice on one day would collide, so the store keeps
codes unique and later awards get a sequence suffix (``-2``, ``-3``, ...).
"""

import re
from collections.abc import Iterable, Sequence
from datetime import date

from scholarfund.common.exceptions import ValidationError
from scholarfund.common.validators import parse_date

DELIMITER = "-"


def generate_scholarship_code(
    reference_codes: Sequence[str | None], award_date: date | str,
) -> str:
    refs = [ref.strip() for ref in reference_codes if ref and ref.strip()]
    if not refs:
        raise ValidationError("Client has no reference codes")
    date_part = parse_date(award_date, "award_date").strftime("%Y%m%d")
    return DELIMITER.join([*refs, date_part])


def with_sequence_suffix(base: str, existing: Iterable[str]) -> str:
    """Return ``base`` if unused, else ``base-N`` with N one past the highest taken."""
    taken = set(existing)
    if base not in taken:
        return base
    pattern = re.compile(re.escape(base) + DELIMITER + r"(\d+)$")
    highest = 1
    for code in taken:
        match = pattern.match(code)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{base}{DELIMITER}{highest + 1}"
