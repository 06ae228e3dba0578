"""
Pipeline hooks — user transforms invoked at named checkpoints.

Each checkpoint holds an ordered list of callables. A callable receives the
current value and returns a replacement of the same shape, or ``None`` to
leave it unchanged. Coroutine functions are awaited. An empty list is a no-op.

Checkpoints:
  post_fetch_provider(sponsorships, provider_name)  after each provider fetch
  post_fetch_all(sponsorships)                      after every provider returned
  pre_render(sponsorships)                          once before the render passes
  before_render(sponsorships)                       at the start of every render pass
  post_svg(svg)                                     after each SVG is composed
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

from sponsorwall.models.sponsor import Sponsorship

Hook = Callable[..., Any]


async def _apply(hooks: list[Hook], value: Any, *extra: Any) -> Any:
    for hook in hooks:
        result = hook(value, *extra)
        if inspect.isawaitable(result):
            result = await result
        if result is not None:
            value = result
    return value


@dataclass
class PipelineHooks:
    """Ordered transform callables per checkpoint."""

    post_fetch_provider: list[Hook] = field(default_factory=list)
    post_fetch_all:      list[Hook] = field(default_factory=list)
    pre_render:          list[Hook] = field(default_factory=list)
    before_render:       list[Hook] = field(default_factory=list)
    post_svg:            list[Hook] = field(default_factory=list)

    async def on_provider_fetched(
        self, sponsorships: list[Sponsorship], provider_name: str
    ) -> list[Sponsorship]:
        return await _apply(self.post_fetch_provider, sponsorships, provider_name)

    async def on_all_fetched(self, sponsorships: list[Sponsorship]) -> list[Sponsorship]:
        return await _apply(self.post_fetch_all, sponsorships)

    async def on_ready(self, sponsorships: list[Sponsorship]) -> list[Sponsorship]:
        return await _apply(self.pre_render, sponsorships)

    async def on_before_render(self, sponsorships: list[Sponsorship]) -> list[Sponsorship]:
        return await _apply(self.before_render, sponsorships)

    async def on_svg(self, svg: str) -> str:
        return await _apply(self.post_svg, svg)
