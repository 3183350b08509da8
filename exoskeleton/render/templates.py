"""Fixed SVG templates for shapes, symbols, patterns and marker placement.

All geometry is integer arithmetic around a fixed composition center.
No trigonometry: compass offsets use the integer ratio 7071/10000 for the
diagonals, so output is identical on every platform.
"""

from __future__ import annotations

CANVAS = 500
CENTER_X = 250
# Static and tiered renderers share this center; they once used y=250 and y=240.
CENTER_Y = 240

MARKER_RADIUS = 120
MAX_MARKERS = 8
MAX_TICKS = 20

# Inner area covered by pattern overlays
AREA_LEFT = 60
AREA_RIGHT = 440
AREA_TOP = 50
AREA_BOTTOM = 430


# =============================================================================
# SHAPES
# =============================================================================

def shape_svg(shape: int, color: str) -> str:
    """Central shape: hexagon, circle, diamond, shield, octagon, triangle."""
    paint = f'fill="{color}" fill-opacity="0.12" stroke="{color}" stroke-width="3"'
    if shape == 0:
        return f'<polygon points="250,160 319,200 319,280 250,320 181,280 181,200" {paint}/>'
    if shape == 1:
        return f'<circle cx="250" cy="240" r="80" {paint}/>'
    if shape == 2:
        return f'<polygon points="250,155 340,240 250,325 160,240" {paint}/>'
    if shape == 3:
        return (
            '<path d="M250,160 L320,185 L320,250 Q320,300 250,330 '
            f'Q180,300 180,250 L180,185 Z" {paint}/>'
        )
    if shape == 4:
        return (
            '<polygon points="217,160 283,160 330,207 330,273 '
            f'283,320 217,320 170,273 170,207" {paint}/>'
        )
    if shape == 5:
        return f'<polygon points="250,155 345,325 155,325" {paint}/>'
    raise ValueError(f"Unknown shape index: {shape}")


# =============================================================================
# SYMBOLS
# =============================================================================

def symbol_svg(symbol: int, color: str) -> str:
    """Center symbol: core, eye, gear, bolt, star, wave, node, diamond."""
    if symbol == 0:
        return (
            f'<circle cx="250" cy="240" r="10" fill="none" stroke="{color}" stroke-width="2"/>'
            f'<circle cx="250" cy="240" r="3" fill="{color}"/>'
        )
    if symbol == 1:
        return (
            f'<ellipse cx="250" cy="240" rx="24" ry="12" fill="none" stroke="{color}" stroke-width="2"/>'
            f'<circle cx="250" cy="240" r="6" fill="{color}"/>'
        )
    if symbol == 2:
        return (
            f'<circle cx="250" cy="240" r="12" fill="none" stroke="{color}" stroke-width="4"/>'
            '<path d="M250,222 V230 M250,250 V258 M232,240 H240 M260,240 H268" '
            f'stroke="{color}" stroke-width="4"/>'
        )
    if symbol == 3:
        return f'<polygon points="255,225 245,238 258,238 243,258" fill="{color}" stroke="{color}" stroke-linejoin="round"/>'
    if symbol == 4:
        return (
            '<polygon points="250,225 254,237 267,237 256,244 260,257 '
            f'250,249 240,257 244,244 233,237 246,237" fill="{color}"/>'
        )
    if symbol == 5:
        return f'<path d="M230,240 Q240,228 250,240 T270,240" fill="none" stroke="{color}" stroke-width="3"/>'
    if symbol == 6:
        return (
            f'<circle cx="250" cy="240" r="4" fill="{color}"/>'
            f'<path d="M250,236 V226 M254,240 H264 M250,244 V254 M246,240 H236" stroke="{color}" stroke-width="1.5"/>'
            f'<circle cx="250" cy="224" r="2" fill="{color}"/>'
            f'<circle cx="266" cy="240" r="2" fill="{color}"/>'
            f'<circle cx="250" cy="256" r="2" fill="{color}"/>'
            f'<circle cx="234" cy="240" r="2" fill="{color}"/>'
        )
    if symbol == 7:
        return f'<polygon points="250,228 260,240 250,252 240,240" fill="{color}"/>'
    raise ValueError(f"Unknown symbol index: {symbol}")


# =============================================================================
# PATTERNS
# =============================================================================

def pattern_svg(pattern: int, color: str, complexity: int) -> str:
    """Pattern overlay with ``complexity`` repeating elements.

    Returns an empty string when complexity is 0.
    """
    if complexity <= 0:
        return ""
    if pattern == 0:
        body = _grid(complexity)
    elif pattern == 1:
        body = _dots(complexity, color)
    elif pattern == 2:
        body = _lines(complexity)
    elif pattern == 3:
        body = _rings(complexity)
    elif pattern == 4:
        body = _circuits(complexity, color)
    elif pattern == 5:
        body = _waves(complexity)
    else:
        raise ValueError(f"Unknown pattern index: {pattern}")
    return (
        f'<g class="pattern" opacity="0.25" fill="none" stroke="{color}" stroke-width="1">'
        f"{body}</g>"
    )


def _grid(complexity: int) -> str:
    step_x = (AREA_RIGHT - AREA_LEFT) // (complexity + 1)
    step_y = (AREA_BOTTOM - AREA_TOP) // (complexity + 1)
    parts = []
    for k in range(1, complexity + 1):
        x = AREA_LEFT + k * step_x
        y = AREA_TOP + k * step_y
        parts.append(f'<line x1="{x}" y1="{AREA_TOP}" x2="{x}" y2="{AREA_BOTTOM}"/>')
        parts.append(f'<line x1="{AREA_LEFT}" y1="{y}" x2="{AREA_RIGHT}" y2="{y}"/>')
    return "".join(parts)


def _dots(complexity: int, color: str) -> str:
    step = (AREA_RIGHT - AREA_LEFT) // (complexity + 1)
    parts = []
    for k in range(1, complexity + 1):
        x = AREA_LEFT + k * step
        parts.append(f'<circle cx="{x}" cy="90" r="2" fill="{color}"/>')
        parts.append(f'<circle cx="{x}" cy="390" r="2" fill="{color}"/>')
    return "".join(parts)


def _lines(complexity: int) -> str:
    parts = []
    for k in range(complexity):
        offset = k * 260 // complexity
        x1 = AREA_LEFT + offset
        parts.append(f'<line x1="{x1}" y1="{AREA_BOTTOM}" x2="{x1 + 120}" y2="{AREA_TOP}"/>')
    return "".join(parts)


def _rings(complexity: int) -> str:
    step = 140 // complexity
    return "".join(
        f'<circle cx="{CENTER_X}" cy="{CENTER_Y}" r="{40 + k * step}" stroke-dasharray="2 6"/>'
        for k in range(1, complexity + 1)
    )


def _circuits(complexity: int, color: str) -> str:
    step = 340 // complexity
    parts = []
    for k in range(complexity):
        y = 70 + k * step
        jog = (k % 3) * 20
        if k % 2 == 0:
            parts.append(f'<path d="M{AREA_LEFT},{y} H{120 + jog} V{y + 20} H160"/>')
            parts.append(f'<circle cx="160" cy="{y + 20}" r="3" fill="{color}"/>')
        else:
            parts.append(f'<path d="M{AREA_RIGHT},{y} H{380 - jog} V{y + 20} H340"/>')
            parts.append(f'<circle cx="340" cy="{y + 20}" r="3" fill="{color}"/>')
    return "".join(parts)


def _waves(complexity: int) -> str:
    step = 360 // complexity
    parts = []
    for k in range(complexity):
        y = 60 + k * step
        parts.append(
            f'<path d="M{AREA_LEFT},{y} Q107,{y - 8} 155,{y} T250,{y} T345,{y} T{AREA_RIGHT},{y}"/>'
        )
    return "".join(parts)


# =============================================================================
# COMPASS PLACEMENT
# =============================================================================

def compass_offsets(radius: int = MARKER_RADIUS) -> tuple[tuple[int, int], ...]:
    """(dx, dy) for N, NE, E, SE, S, SW, W, NW at ``radius``."""
    diagonal = (radius * 7071 + 5000) // 10000
    return (
        (0, -radius),
        (diagonal, -diagonal),
        (radius, 0),
        (diagonal, diagonal),
        (0, radius),
        (-diagonal, diagonal),
        (-radius, 0),
        (-diagonal, -diagonal),
    )


def compass_slots(count: int) -> list[int]:
    """Slot index for each of ``count`` markers: round(i * 8 / n) mod 8.

    Rounds half up in integer arithmetic. At most 8 markers are placed.
    """
    n = min(count, MAX_MARKERS)
    if n <= 0:
        return []
    return [((2 * i * MAX_MARKERS + n) // (2 * n)) % MAX_MARKERS for i in range(n)]


def compass_positions(
    count: int,
    radius: int = MARKER_RADIUS,
    center: tuple[int, int] = (CENTER_X, CENTER_Y),
) -> list[tuple[int, int]]:
    """Absolute marker coordinates for ``count`` modules."""
    offsets = compass_offsets(radius)
    cx, cy = center
    return [(cx + offsets[slot][0], cy + offsets[slot][1]) for slot in compass_slots(count)]


# =============================================================================
# TICKS
# =============================================================================

def tick_marks(count: int, x1: int, x2: int, color: str) -> str:
    """Up to MAX_TICKS horizontal ticks stacked downward from y=140."""
    return "".join(
        f'<line x1="{x1}" y1="{140 + k * 10}" x2="{x2}" y2="{140 + k * 10}" '
        f'stroke="{color}" stroke-width="2" stroke-opacity="0.7"/>'
        for k in range(min(count, MAX_TICKS))
    )
