"""Tests for the GitHub Sponsors adapter (offline, httpx.MockTransport)."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from sponsorwall.config import AppConfig, GitHubConfig
from sponsorwall.errors import ConfigurationError, ProviderError, UnknownAccountTypeError
from sponsorwall.ingestion.github_client import GitHubProvider, build_query
from sponsorwall.models.sponsor import PAST_SPONSOR
from sponsorwall.taxonomy.sponsor_taxonomy import SponsorKind, Visibility


def _fetch(config: AppConfig, handler) -> list:
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await GitHubProvider().fetch_sponsors(config, client)
    return asyncio.run(_go())


def _node(login, dollars=5, active=True, typename="User", one_time=False, tier=True, **extra):
    node = {
        "createdAt": "2024-02-10T08:00:00Z",
        "privacyLevel": "PUBLIC",
        "isActive": active,
        "tier": {
            "name": f"${dollars} a month",
            "isOneTime": one_time,
            "monthlyPriceInCents": dollars * 100,
            "monthlyPriceInDollars": dollars,
        } if tier else None,
        "sponsorEntity": {
            "__typename": typename,
            "login": login,
            "name": login.title(),
            "avatarUrl": f"https://avatars.example.com/{login}",
            "websiteUrl": "www.Example.com/",
        },
    }
    node.update(extra)
    return node


def _page(nodes, cursor=None):
    return {
        "data": {
            "user": {
                "sponsorshipsAsMaintainer": {
                    "totalCount": len(nodes),
                    "pageInfo": {"endCursor": cursor, "hasNextPage": cursor is not None},
                    "nodes": nodes,
                }
            }
        }
    }


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(github=GitHubConfig(login="octocat", token="ghp_test"))


class TestGitHubFetch:
    def test_paginates_with_cursor(self, config):
        queries = []
        pages = [_page([_node("alice")], cursor="CUR1"), _page([_node("bob", 10)])]

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(json.loads(request.content)["query"])
            return httpx.Response(200, json=pages[len(queries) - 1])

        ships = _fetch(config, handler)
        assert [s.sponsor.login for s in ships] == ["alice", "bob"]
        assert 'after: "CUR1"' in queries[1]
        assert "after:" not in queries[0]

    def test_bearer_token_sent(self, config):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=_page([]))

        _fetch(config, handler)
        assert seen["auth"] == "bearer ghp_test"

    def test_normalises_record(self, config):
        handler = lambda request: httpx.Response(200, json=_page([_node("alice", 25)]))
        [ship] = _fetch(config, handler)
        assert ship.monthly_dollars == 25
        assert ship.provider == "github"
        assert ship.visibility == Visibility.PUBLIC
        assert ship.sponsor.kind == SponsorKind.INDIVIDUAL
        assert ship.sponsor.website_url == "https://example.com"
        assert ship.sponsor.link_url == "https://github.com/alice"
        assert ship.created_at.year == 2024

    def test_records_without_tier_dropped(self, config):
        handler = lambda request: httpx.Response(
            200, json=_page([_node("alice"), _node("ghost", tier=False)])
        )
        assert [s.sponsor.login for s in _fetch(config, handler)] == ["alice"]

    def test_inactive_is_past_sponsor(self, config):
        handler = lambda request: httpx.Response(200, json=_page([_node("old", active=False)]))
        [ship] = _fetch(config, handler)
        assert ship.monthly_dollars == PAST_SPONSOR

    def test_organization_kind(self, config):
        handler = lambda request: httpx.Response(
            200, json=_page([_node("acme", typename="Organization")])
        )
        [ship] = _fetch(config, handler)
        assert ship.sponsor.kind == SponsorKind.ORGANIZATION

    def test_unknown_typename_is_fatal(self, config):
        handler = lambda request: httpx.Response(200, json=_page([_node("x", typename="Bot")]))
        with pytest.raises(UnknownAccountTypeError):
            _fetch(config, handler)


class TestGitHubErrors:
    def test_missing_token(self):
        with pytest.raises(ConfigurationError):
            _fetch(AppConfig(github=GitHubConfig(login="octocat")), lambda r: httpx.Response(200))

    def test_insufficient_scopes(self, config):
        payload = {"errors": [{"type": "INSUFFICIENT_SCOPES", "message": "nope"}]}
        handler = lambda request: httpx.Response(200, json=payload)
        with pytest.raises(ProviderError, match="read:user"):
            _fetch(config, handler)

    def test_graphql_error_array(self, config):
        payload = {"errors": [{"type": "NOT_FOUND", "message": "Could not resolve"}]}
        handler = lambda request: httpx.Response(200, json=payload)
        with pytest.raises(ProviderError) as exc_info:
            _fetch(config, handler)
        assert exc_info.value.detail == payload["errors"]

    def test_http_error_propagates(self, config):
        handler = lambda request: httpx.Response(401, json={"message": "Bad credentials"})
        with pytest.raises(httpx.HTTPStatusError):
            _fetch(config, handler)


class TestBuildQuery:
    def test_organization_root(self):
        assert 'organization(login: "acme")' in build_query("acme", "organization", True, None)

    def test_active_only_flag(self):
        assert "activeOnly: false" in build_query("a", "user", False, None)
        assert "activeOnly: true" in build_query("a", "user", True, None)
