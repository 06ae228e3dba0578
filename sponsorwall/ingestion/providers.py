"""
Provider registry and auto-detection.

``PROVIDERS`` maps each ``ProviderName`` to a shared adapter instance.
``guess_providers`` infers which platforms are configured from the
credentials present; ``resolve_providers`` turns names into adapters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Union

from sponsorwall.errors import ConfigurationError
from sponsorwall.ingestion.afdian_client import AfdianProvider
from sponsorwall.ingestion.base import SponsorProvider
from sponsorwall.ingestion.github_client import GitHubProvider
from sponsorwall.ingestion.opencollective_client import OpenCollectiveProvider
from sponsorwall.ingestion.patreon_client import PatreonProvider
from sponsorwall.ingestion.polar_client import PolarProvider
from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

PROVIDERS: dict[str, SponsorProvider] = {
    ProviderName.GITHUB:         GitHubProvider(),
    ProviderName.PATREON:        PatreonProvider(),
    ProviderName.OPENCOLLECTIVE: OpenCollectiveProvider(),
    ProviderName.AFDIAN:         AfdianProvider(),
    ProviderName.POLAR:          PolarProvider(),
}


def guess_providers(config: "AppConfig") -> list[str]:
    """Provider names whose credentials are present, or ``["github"]`` if none are."""
    names: list[str] = []
    if config.github.login:
        names.append(ProviderName.GITHUB)
    if config.patreon.token:
        names.append(ProviderName.PATREON)
    oc = config.opencollective
    if oc.id or oc.slug or oc.github_handle:
        names.append(ProviderName.OPENCOLLECTIVE)
    if config.afdian.user_id and config.afdian.token:
        names.append(ProviderName.AFDIAN)
    if config.polar.token:
        names.append(ProviderName.POLAR)
    return names or [ProviderName.GITHUB]


def resolve_providers(
    names: Iterable[Union[str, SponsorProvider]],
) -> list[SponsorProvider]:
    """De-duplicate and resolve provider names; adapter instances pass through.

    Raises:
        ConfigurationError: For a name with no registered adapter.
    """
    resolved: list[SponsorProvider] = []
    for item in dict.fromkeys(names):
        if isinstance(item, SponsorProvider):
            resolved.append(item)
            continue
        provider = PROVIDERS.get(item)
        if provider is None:
            raise ConfigurationError(
                f"Unknown provider: '{item}'. Must be one of {sorted(PROVIDERS)}."
            )
        resolved.append(provider)
    return resolved


def providers_for(config: "AppConfig") -> list[SponsorProvider]:
    """Adapters for an explicit ``providers`` list, or the guessed ones."""
    return resolve_providers(config.providers or guess_providers(config))
