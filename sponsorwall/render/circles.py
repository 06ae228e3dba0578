"""
Circles renderer — sponsors as packed circles sized by contribution.

Each sponsor is weighted by a monotonic function of its monthly amount:

    weight = radius_past                                        (past sponsors)
    weight = lerp(radius_min, radius_max,
                  (max(0.1, amount) / max_amount) ** weight_exponent)

The circle area is proportional to the weight. Circles are packed with the
front-chain sibling algorithm of Wang et al. ("Visualization of large
hierarchical data by circle packing"), as in d3-hierarchy's ``pack``:
placement is deterministic, and the enclosing circle uses Welzl's algorithm
over a shuffle driven by a fixed-seed linear congruential generator. The
result is scaled into a ``width`` × ``width`` square with ``width / 400``
padding between circles.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar, Optional, Sequence

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.models.tier import BadgePreset
from sponsorwall.render.base import Renderer
from sponsorwall.render.badge import INDIVIDUAL_RADIUS
from sponsorwall.render.composer import SvgComposer
from sponsorwall.render.images import ImageProcessor
from sponsorwall.taxonomy.sponsor_taxonomy import RendererName

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig, CirclesConfig


@dataclass
class Circle:
    """A circle in layout space; mutated in place while packing."""

    r: float
    x: float = 0.0
    y: float = 0.0


# ── Deterministic randomness ──────────────────────────────────────────────────

_LCG_A = 1664525
_LCG_C = 1013904223
_LCG_M = 2 ** 32


def lcg(seed: int = 1) -> Callable[[], float]:
    """Linear congruential generator yielding floats in ``[0, 1)``."""
    state = seed

    def _next() -> float:
        nonlocal state
        state = (_LCG_A * state + _LCG_C) % _LCG_M
        return state / _LCG_M

    return _next


def _shuffle(items: list, random: Callable[[], float]) -> list:
    m = len(items)
    while m:
        i = int(random() * m)
        m -= 1
        items[m], items[i] = items[i], items[m]
    return items


# ── Smallest enclosing circle ─────────────────────────────────────────────────

def _encloses_not(a: Circle, b: Circle) -> bool:
    dr = a.r - b.r
    dx, dy = b.x - a.x, b.y - a.y
    return dr < 0 or dr * dr < dx * dx + dy * dy


def _encloses_weak(a: Circle, b: Circle) -> bool:
    dr = a.r - b.r + max(a.r, b.r, 1) * 1e-9
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _encloses_weak_all(a: Circle, basis: Sequence[Circle]) -> bool:
    return all(_encloses_weak(a, b) for b in basis)


def _enclose_basis_2(a: Circle, b: Circle) -> Circle:
    x21, y21, r21 = b.x - a.x, b.y - a.y, b.r - a.r
    length = math.sqrt(x21 * x21 + y21 * y21)
    return Circle(
        x=(a.x + b.x + x21 / length * r21) / 2,
        y=(a.y + b.y + y21 / length * r21) / 2,
        r=(length + a.r + b.r) / 2,
    )


def _enclose_basis_3(a: Circle, b: Circle, c: Circle) -> Circle:
    x1, y1, r1 = a.x, a.y, a.r
    x2, y2, r2 = b.x, b.y, b.r
    x3, y3, r3 = c.x, c.y, c.r
    a2, a3 = x1 - x2, x1 - x3
    b2, b3 = y1 - y2, y1 - y3
    c2, c3 = r2 - r1, r3 - r1
    d1 = x1 * x1 + y1 * y1 - r1 * r1
    d2 = d1 - x2 * x2 - y2 * y2 + r2 * r2
    d3 = d1 - x3 * x3 - y3 * y3 + r3 * r3
    ab = a3 * b2 - a2 * b3
    xa = (b2 * d3 - b3 * d2) / (ab * 2) - x1
    xb = (b3 * c2 - b2 * c3) / ab
    ya = (a3 * d2 - a2 * d3) / (ab * 2) - y1
    yb = (a2 * c3 - a3 * c2) / ab
    qa = xb * xb + yb * yb - 1
    qb = 2 * (r1 + xa * xb + ya * yb)
    qc = xa * xa + ya * ya - r1 * r1
    if abs(qa) > 1e-6:
        r = -(qb + math.sqrt(max(0.0, qb * qb - 4 * qa * qc))) / (2 * qa)
    else:
        r = -(qc / qb)
    return Circle(x=x1 + xa + xb * r, y=y1 + ya + yb * r, r=r)


def _enclose_basis(basis: Sequence[Circle]) -> Circle:
    if len(basis) == 1:
        return Circle(x=basis[0].x, y=basis[0].y, r=basis[0].r)
    if len(basis) == 2:
        return _enclose_basis_2(basis[0], basis[1])
    return _enclose_basis_3(basis[0], basis[1], basis[2])


def _extend_basis(basis: list[Circle], p: Circle) -> list[Circle]:
    if _encloses_weak_all(p, basis):
        return [p]

    for b in basis:
        if _encloses_not(p, b) and _encloses_weak_all(_enclose_basis_2(b, p), basis):
            return [b, p]

    for i in range(len(basis) - 1):
        for j in range(i + 1, len(basis)):
            bi, bj = basis[i], basis[j]
            if (
                _encloses_not(_enclose_basis_2(bi, bj), p)
                and _encloses_not(_enclose_basis_2(bi, p), bj)
                and _encloses_not(_enclose_basis_2(bj, p), bi)
                and _encloses_weak_all(_enclose_basis_3(bi, bj, p), basis)
            ):
                return [bi, bj, p]

    raise RuntimeError("Unable to extend the enclosing-circle basis.")


def enclose(circles: Sequence[Circle], random: Callable[[], float]) -> Optional[Circle]:
    """Smallest circle enclosing every circle in ``circles``."""
    items = _shuffle(list(circles), random)
    basis: list[Circle] = []
    e: Optional[Circle] = None
    i = 0
    while i < len(items):
        p = items[i]
        if e is not None and _encloses_weak(e, p):
            i += 1
        else:
            basis = _extend_basis(basis, p)
            e = _enclose_basis(basis)
            i = 0
    return e


# ── Sibling packing ───────────────────────────────────────────────────────────

def _place(b: Circle, a: Circle, c: Circle) -> None:
    """Position ``c`` tangent to both ``a`` and ``b``."""
    dx, dy = b.x - a.x, b.y - a.y
    d2 = dx * dx + dy * dy
    if d2:
        a2 = (a.r + c.r) ** 2
        b2 = (b.r + c.r) ** 2
        if a2 > b2:
            x = (d2 + b2 - a2) / (2 * d2)
            y = math.sqrt(max(0.0, b2 / d2 - x * x))
            c.x = b.x - x * dx - y * dy
            c.y = b.y - x * dy + y * dx
        else:
            x = (d2 + a2 - b2) / (2 * d2)
            y = math.sqrt(max(0.0, a2 / d2 - x * x))
            c.x = a.x + x * dx - y * dy
            c.y = a.y + x * dy + y * dx
    else:
        c.x = a.x + c.r
        c.y = a.y


def _intersects(a: Circle, b: Circle) -> bool:
    dr = a.r + b.r - 1e-6
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


class _ChainNode:
    __slots__ = ("circle", "next", "previous")

    def __init__(self, circle: Circle) -> None:
        self.circle = circle
        self.next: "_ChainNode" = self
        self.previous: "_ChainNode" = self


def _score(node: _ChainNode) -> float:
    a, b = node.circle, node.next.circle
    ab = a.r + b.r
    dx = (a.x * b.r + b.x * a.r) / ab
    dy = (a.y * b.r + b.y * a.r) / ab
    return dx * dx + dy * dy


def pack_siblings(circles: Sequence[Circle], random: Callable[[], float]) -> float:
    """Pack ``circles`` tangentially around the origin.

    Positions are written onto the circles; the enclosing circle is centered
    on the origin.

    Returns:
        Radius of the enclosing circle (0 for an empty input).
    """
    n = len(circles)
    if not n:
        return 0.0

    a = circles[0]
    a.x, a.y = 0.0, 0.0
    if n == 1:
        return a.r

    b = circles[1]
    a.x, b.x, b.y = -b.r, a.r, 0.0
    if n == 2:
        return a.r + b.r

    _place(b, a, circles[2])

    na, nb, nc = _ChainNode(a), _ChainNode(b), _ChainNode(circles[2])
    na.next = nc.previous = nb
    nb.next = na.previous = nc
    nc.next = nb.previous = na

    i = 3
    while i < n:
        _place(na.circle, nb.circle, circles[i])
        nc = _ChainNode(circles[i])

        # Closest intersecting circle on the front chain, walking both ways.
        j, k = nb.next, na.previous
        sj, sk = nb.circle.r, na.circle.r
        collided = False
        while True:
            if sj <= sk:
                if _intersects(j.circle, nc.circle):
                    nb = j
                    na.next, nb.previous = nb, na
                    collided = True
                    break
                sj += j.circle.r
                j = j.next
            else:
                if _intersects(k.circle, nc.circle):
                    na = k
                    na.next, nb.previous = nb, na
                    collided = True
                    break
                sk += k.circle.r
                k = k.previous
            if j is k.next:
                break
        if collided:
            continue

        nc.previous, nc.next = na, nb
        na.next = nb.previous = nb = nc

        best = _score(na)
        node = nc.next
        while node is not nb:
            candidate = _score(node)
            if candidate < best:
                na, best = node, candidate
            node = node.next
        nb = na.next
        i += 1

    chain = [nb.circle]
    node = nb.next
    while node is not nb:
        chain.append(node.circle)
        node = node.next
    e = enclose(chain, random)

    for circle in circles:
        circle.x -= e.x
        circle.y -= e.y
    return e.r


def pack(weights: Sequence[float], size: float, padding: float = 0.0) -> list[Circle]:
    """Lay out one circle per weight inside a ``size`` × ``size`` square.

    Leaf radius is ``sqrt(weight)``; circles are packed largest first, in the
    order given (callers sort by weight descending). Returned circles are in
    the same order as ``weights``, in output coordinates.
    """
    if not weights:
        return []
    random = lcg()
    leaves = [Circle(r=math.sqrt(max(0.0, w))) for w in weights]

    root_r = pack_siblings(leaves, random)

    if padding:
        # Second pass with padding expressed in layout units.
        pad = padding * root_r / size
        for leaf in leaves:
            leaf.r += pad
        root_r = pack_siblings(leaves, random) + pad
        for leaf in leaves:
            leaf.r -= pad

    if root_r <= 0:
        return [Circle(r=0.0, x=size / 2, y=size / 2) for _ in leaves]

    k = size / (2 * root_r)
    center = size / 2
    return [Circle(r=leaf.r * k, x=center + k * leaf.x, y=center + k * leaf.y) for leaf in leaves]


# ── Renderer ──────────────────────────────────────────────────────────────────

def lerp(a: float, b: float, t: float) -> float:
    if t < 0:
        return a
    return a + (b - a) * t


def circle_weight(ship: Sponsorship, max_amount: float, circles: "CirclesConfig") -> float:
    if ship.monthly_dollars < 0:
        return circles.radius_past
    ratio = max(0.1, ship.monthly_dollars) / max_amount
    return lerp(circles.radius_min, circles.radius_max, ratio ** circles.weight_exponent)


class CirclesRenderer(Renderer):
    name: ClassVar[str] = RendererName.CIRCLES.value

    def render_svg(
        self,
        config: "AppConfig",
        sponsors: list[Sponsorship],
        images: ImageProcessor,
    ) -> str:
        composer = SvgComposer(config, images)
        max_amount = max((s.monthly_dollars for s in sponsors), default=0)
        if max_amount <= 0:
            max_amount = 1
        if not config.include_past_sponsors:
            sponsors = [s for s in sponsors if s.monthly_dollars > 0]

        weighted = sorted(
            ((circle_weight(s, max_amount, config.circles), s) for s in sponsors),
            key=lambda pair: pair[0],
            reverse=True,
        )
        layout = pack([w for w, _ in weighted], config.width, config.width / 400)

        for circle, (_, ship) in zip(layout, weighted):
            diameter = circle.r * 2
            preset = BadgePreset(avatar_size=diameter, box_width=diameter, box_height=diameter)
            composer.add_badge(
                circle.x - circle.r, circle.y - circle.r, ship, preset, INDIVIDUAL_RADIUS
            )
        composer.extend_to(config.width)
        return composer.generate_svg()
