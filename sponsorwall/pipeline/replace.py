"""
Link and avatar replacements, applied to merged sponsorships.

A replacement is either an ``{old: new}`` mapping matched against the
current value, or a callable ``fn(sponsorship) -> str | None``. Replacements
are tried in order and the first hit wins.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Union

from sponsorwall.models.sponsor import Sponsorship

Replacement = Union[dict[str, str], Callable[..., Any]]


def _first_hit(replacements: Iterable[Replacement], ship: Sponsorship, current: Optional[str]) -> Optional[str]:
    for replacement in replacements:
        if callable(replacement):
            result = replacement(ship)
            if result:
                return result
        elif current is not None and current in replacement:
            return replacement[current]
    return None


def apply_replacements(
    sponsorships: list[Sponsorship],
    links: Iterable[Replacement] = (),
    avatars: Iterable[Replacement] = (),
) -> list[Sponsorship]:
    """Return ``sponsorships`` with ``link_url`` / ``avatar_url`` replaced where configured."""
    links, avatars = list(links), list(avatars)
    if not links and not avatars:
        return list(sponsorships)

    result = []
    for ship in sponsorships:
        update: dict[str, Any] = {}
        if (link := _first_hit(links, ship, ship.sponsor.link_url)) is not None:
            update["link_url"] = link
        if (avatar := _first_hit(avatars, ship, ship.sponsor.avatar_url)) is not None:
            update["avatar_url"] = avatar
        if update:
            ship = ship.model_copy(update={"sponsor": ship.sponsor.model_copy(update=update)})
        result.append(ship)
    return result
