"""
Render-pass filters.

A filter is either a predicate ``fn(sponsorship, all_sponsorships)`` (a
``False`` result drops the sponsor) or a string expression comparing the
monthly amount: ``"<5"``, ``"<=5"``, ``">10"``, ``">=10"``.
"""

from __future__ import annotations

import operator
import re
from typing import Any, Callable, Optional, Union

from sponsorwall.errors import ConfigurationError
from sponsorwall.models.sponsor import Sponsorship

SponsorFilter = Callable[[Sponsorship, list[Sponsorship]], Any]

_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_EXPRESSION_RE = re.compile(r"([<>=]+)")


def parse_filter(expression: str) -> SponsorFilter:
    """Compile a ``<op><number>`` expression into a predicate.

    Raises:
        ConfigurationError: For an unknown operator or a non-numeric operand.
    """
    parts = _EXPRESSION_RE.split(expression.strip(), maxsplit=1)
    if len(parts) != 3 or parts[0].strip() or parts[1] not in _OPERATORS:
        raise ConfigurationError(f"Unable to parse filter expression '{expression}'.")
    compare = _OPERATORS[parts[1]]
    try:
        threshold = float(parts[2])
    except ValueError:
        raise ConfigurationError(f"Unable to parse filter expression '{expression}'.") from None
    return lambda ship, _all=None: compare(ship.monthly_dollars, threshold)


def resolve_filter(rule: Union[str, SponsorFilter, None]) -> Optional[SponsorFilter]:
    if rule is None or rule == "":
        return None
    if isinstance(rule, str):
        return parse_filter(rule)
    return rule


def apply_filter(
    sponsorships: list[Sponsorship],
    rule: Union[str, SponsorFilter, None],
) -> list[Sponsorship]:
    """Drop sponsors for which the filter returns ``False``."""
    predicate = resolve_filter(rule)
    if predicate is None:
        return list(sponsorships)
    return [s for s in sponsorships if predicate(s, sponsorships) is not False]
