"""Layered SVG rendering of an identity snapshot.

Layer order is fixed:
    background -> frame -> age rings -> central shape -> pattern -> symbol
    -> activity indicators -> reputation glow -> particles -> text labels
    -> tier badge -> stats line

Animation is gated by tier and cumulative: each tier adds CSS classes and
keyframes on top of everything the tiers below it emit. Dormant identities
get no <style> block at all.

Output is a pure function of the snapshot. The same snapshot always renders
to the same bytes.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Protocol

from ..core.models import IdentitySnapshot
from ..core.tiers import Tier, TierEngine
from . import templates
from .templates import CENTER_X, CENTER_Y
from .visual_config import VisualConfig, parse_visual_config


SVG_OPEN = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 500 500" '
    'width="500" height="500">'
)
SVG_CLOSE = "</svg>"

GENESIS_GOLD = "#FFD700"
BACKGROUND = "#0a0a0f"
MAX_AGE_RINGS = 8

PARTICLES: tuple[tuple[int, int], ...] = (
    (150, 400),
    (200, 420),
    (250, 410),
    (300, 425),
    (350, 405),
)
PARTICLE_DELAYS: tuple[str | None, ...] = (None, "1.5s", "3s", "4.5s", "6s")

# Rings 1-3, 4-5 and 6-8 rotate as separate groups from Tier-3 on
RING_GROUPS: tuple[tuple[str, int, int], ...] = (
    ("ring-cw", 1, 3),
    ("ring-ccw", 4, 5),
    ("ring-cw-slow", 6, 8),
)

TIER_STYLES: dict[Tier, str] = {
    Tier.COPPER: (
        "@keyframes breathe{0%,100%{transform:scale(1)}50%{transform:scale(1.04)}}"
        ".central-shape{transform-origin:250px 240px;animation:breathe 6s ease-in-out infinite}"
        "@keyframes shimmer{0%,100%{opacity:1}50%{opacity:0.55}}"
        ".symbol{animation:shimmer 4s ease-in-out infinite}"
    ),
    Tier.SILVER: (
        "@keyframes glow-pulse{0%,100%{stroke-opacity:0.35}50%{stroke-opacity:0.9}}"
        ".rep-glow{animation:glow-pulse 3s ease-in-out infinite}"
        "@keyframes node-pulse{0%,100%{opacity:1}50%{opacity:0.4}}"
        ".activity-node{animation:node-pulse 2s ease-in-out infinite}"
    ),
    Tier.GOLD: (
        "@keyframes ring-rotate{from{transform:rotate(0deg)}to{transform:rotate(360deg)}}"
        "@keyframes ring-rotate-rev{from{transform:rotate(360deg)}to{transform:rotate(0deg)}}"
        ".age-ring-group{transform-origin:250px 240px}"
        ".ring-cw{animation:ring-rotate 40s linear infinite}"
        ".ring-ccw{animation:ring-rotate-rev 60s linear infinite}"
        ".ring-cw-slow{animation:ring-rotate 90s linear infinite}"
    ),
    Tier.DIAMOND: (
        "@keyframes drift-up{0%{transform:translateY(0);opacity:0}20%{opacity:1}"
        "100%{transform:translateY(-320px);opacity:0}}"
        ".particle{animation:drift-up 7.5s linear infinite}"
        "@keyframes badge-glow{0%,100%{opacity:0.7}50%{opacity:1}}"
        ".tier-badge{animation:badge-glow 2.5s ease-in-out infinite}"
    ),
}


class Renderer(Protocol):
    """Anything that turns a snapshot into an SVG document."""

    def render(self, snapshot: IdentitySnapshot) -> str:
        ...


@dataclass(frozen=True)
class _Frame:
    """Per-render values shared by every layer."""

    snapshot: IdentitySnapshot
    visual: VisualConfig
    tier: Tier
    age_rings: int

    @property
    def primary(self) -> str:
        return self.visual.primary_hex

    @property
    def secondary(self) -> str:
        return self.visual.secondary_hex


@dataclass(frozen=True)
class RenderingPipeline:
    """Deterministic layered renderer.

    With ``animated=False`` every identity renders at the Dormant layer set
    (no animation classes, no <style>), regardless of activity.
    """

    ring_period: int = 43200
    tier_engine: TierEngine = field(default_factory=TierEngine)
    animated: bool = True

    def age_rings(self, snapshot: IdentitySnapshot) -> int:
        return min(MAX_AGE_RINGS, snapshot.age // self.ring_period)

    def tier_for(self, snapshot: IdentitySnapshot) -> Tier:
        if not self.animated:
            return Tier.DORMANT
        return self.tier_engine.tier(
            snapshot.messages_sent,
            snapshot.storage_writes,
            snapshot.modules_active,
            snapshot.privileged,
        )

    def render(self, snapshot: IdentitySnapshot) -> str:
        frame = _Frame(
            snapshot=snapshot,
            visual=parse_visual_config(snapshot.visual_config, snapshot.privileged),
            tier=self.tier_for(snapshot),
            age_rings=self.age_rings(snapshot),
        )
        layers = [
            SVG_OPEN,
            _defs(frame),
            _background(frame),
            _border(frame),
            _age_rings(frame),
            _central_shape(frame),
            templates.pattern_svg(frame.visual.pattern, frame.primary, frame.tier.complexity),
            _symbol(frame),
            _activity(frame),
            _reputation_glow(frame),
            _particles(frame),
            _labels(frame),
            _tier_badge(frame),
            _stats(frame),
            SVG_CLOSE,
        ]
        return "".join(layers)


# =============================================================================
# LAYERS
# =============================================================================

def _style(tier: Tier) -> str:
    rules = "".join(TIER_STYLES[t] for t in Tier if Tier.DORMANT < t <= tier)
    if not rules:
        return ""
    return f"<style>{rules}</style>"


def _defs(frame: _Frame) -> str:
    if frame.tier >= Tier.GOLD:
        deviation, flood = "6", "0.7"
    else:
        deviation, flood = "4", "0.5"
    return (
        "<defs>"
        f"{_style(frame.tier)}"
        '<radialGradient id="bg" cx="50%" cy="48%" r="60%">'
        f'<stop offset="0%" stop-color="{frame.secondary}" stop-opacity="0.9"/>'
        f'<stop offset="100%" stop-color="{BACKGROUND}"/>'
        "</radialGradient>"
        '<filter id="glow" x="-50%" y="-50%" width="200%" height="200%">'
        f'<feGaussianBlur stdDeviation="{deviation}" result="blur"/>'
        f'<feFlood flood-color="{frame.primary}" flood-opacity="{flood}"/>'
        '<feComposite in2="blur" operator="in"/>'
        '<feMerge><feMergeNode/><feMergeNode in="SourceGraphic"/></feMerge>'
        "</filter>"
        "</defs>"
    )


def _background(frame: _Frame) -> str:
    return (
        f'<rect width="500" height="500" fill="{BACKGROUND}"/>'
        '<rect width="500" height="500" fill="url(#bg)"/>'
    )


def _border(frame: _Frame) -> str:
    if frame.snapshot.privileged:
        return (
            f'<rect x="8" y="8" width="484" height="484" rx="14" fill="none" '
            f'stroke="{GENESIS_GOLD}" stroke-width="3"/>'
            f'<rect x="16" y="16" width="468" height="468" rx="10" fill="none" '
            f'stroke="{GENESIS_GOLD}" stroke-opacity="0.5" stroke-width="1"/>'
        )
    return (
        f'<rect x="12" y="12" width="476" height="476" rx="12" fill="none" '
        f'stroke="{frame.primary}" stroke-opacity="0.6" stroke-width="2"/>'
    )


def _ring(frame: _Frame, index: int) -> str:
    opacity = max(2, 9 - index)
    return (
        f'<circle cx="{CENTER_X}" cy="{CENTER_Y}" r="{96 + index * 12}" fill="none" '
        f'stroke="{frame.primary}" stroke-opacity="0.{opacity}" stroke-width="1" '
        f'stroke-dasharray="4 {index + 2}"/>'
    )


def _age_rings(frame: _Frame) -> str:
    if frame.tier < Tier.GOLD:
        return "".join(_ring(frame, i) for i in range(1, frame.age_rings + 1))
    groups = []
    for css_class, first, last in RING_GROUPS:
        rings = "".join(
            _ring(frame, i) for i in range(first, min(last, frame.age_rings) + 1)
        )
        groups.append(f'<g class="age-ring-group {css_class}">{rings}</g>')
    return "".join(groups)


def _central_shape(frame: _Frame) -> str:
    shape = templates.shape_svg(frame.visual.shape, frame.primary)
    if frame.tier >= Tier.COPPER:
        return f'<g class="central-shape">{shape}</g>'
    return shape


def _symbol(frame: _Frame) -> str:
    symbol = templates.symbol_svg(frame.visual.symbol, frame.primary)
    if frame.tier >= Tier.COPPER:
        return f'<g class="symbol">{symbol}</g>'
    return symbol


def _activity(frame: _Frame) -> str:
    snapshot = frame.snapshot
    node_class = ' class="activity-node"' if frame.tier >= Tier.SILVER else ""
    markers = "".join(
        f'<circle{node_class} cx="{x}" cy="{y}" r="6" fill="{frame.primary}"/>'
        for x, y in templates.compass_positions(snapshot.modules_active)
    )
    return (
        f"{markers}"
        f"{templates.tick_marks(snapshot.messages_sent, 40, 52, frame.primary)}"
        f"{templates.tick_marks(snapshot.storage_writes, 448, 460, frame.primary)}"
    )


def _reputation_glow(frame: _Frame) -> str:
    score = frame.snapshot.reputation_score
    opacity = min(9, 1 + score // 50)
    width = 2 + min(4, score // 500)
    css = ' class="rep-glow"' if frame.tier >= Tier.SILVER else ""
    return (
        f'<circle{css} cx="{CENTER_X}" cy="{CENTER_Y}" r="92" fill="none" '
        f'stroke="{frame.primary}" stroke-width="{width}" stroke-opacity="0.{opacity}" '
        'filter="url(#glow)"/>'
    )


def _particles(frame: _Frame) -> str:
    if frame.tier < Tier.DIAMOND:
        return ""
    parts = []
    for (x, y), delay in zip(PARTICLES, PARTICLE_DELAYS):
        style = f' style="animation-delay:{delay}"' if delay else ""
        parts.append(
            f'<circle class="particle" cx="{x}" cy="{y}" r="3" fill="{frame.primary}"{style}/>'
        )
    return "".join(parts)


def _text(x: int, y: int, size: int, fill: str, body: str, extra: str = "") -> str:
    return (
        f'<text x="{x}" y="{y}" text-anchor="middle" font-family="monospace" '
        f'font-size="{size}" fill="{fill}"{extra}>{body}</text>'
    )


def _labels(frame: _Frame) -> str:
    snapshot = frame.snapshot
    parts = [_text(250, 52, 16, frame.primary, "EXOSKELETON", ' letter-spacing="6"')]
    if snapshot.privileged:
        parts.append(_text(250, 76, 11, GENESIS_GOLD, "GENESIS", ' letter-spacing="4"'))
    if snapshot.name:
        parts.append(_text(250, 380, 22, "#ffffff", html.escape(snapshot.name)))
    parts.append(_text(250, 405, 14, frame.primary, f"#{snapshot.identity_id}"))
    return "".join(parts)


def _tier_badge(frame: _Frame) -> str:
    if frame.tier == Tier.DORMANT:
        return ""
    color = frame.tier.color
    css = ' class="tier-badge"' if frame.tier >= Tier.DIAMOND else ""
    return (
        f"<g{css}>"
        f'<rect x="400" y="30" width="72" height="20" rx="10" fill="none" stroke="{color}"/>'
        f"{_text(436, 44, 10, color, frame.tier.label.upper())}"
        "</g>"
    )


def _stats(frame: _Frame) -> str:
    s = frame.snapshot
    line = (
        f"MSG:{s.messages_sent} STO:{s.storage_writes} MOD:{s.modules_active} "
        f"AGE:{s.age} REP:{s.reputation_score}"
    )
    return _text(250, 470, 12, "#8a8a8a", line)


# =============================================================================
# FACTORY
# =============================================================================

def build_renderer(
    name: str,
    ring_period: int = 43200,
    tier_engine: TierEngine | None = None,
) -> Renderer | None:
    """Renderer for a config name. 'none' means fallback-only."""
    engine = tier_engine or TierEngine()
    if name == "tiered":
        return RenderingPipeline(ring_period=ring_period, tier_engine=engine)
    if name == "static":
        return RenderingPipeline(ring_period=ring_period, tier_engine=engine, animated=False)
    if name == "none":
        return None
    raise ValueError(f"Unknown renderer: {name}")
