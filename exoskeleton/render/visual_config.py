"""The 9-byte visual configuration.

Byte layout: [shape, R1, G1, B1, R2, G2, B2, symbol, pattern]

Template indices wrap modulo the number of templates, so every byte value
selects a valid template. Configs shorter than 9 bytes fall back to a
fixed palette that still distinguishes genesis from standard identities.
"""

from __future__ import annotations

from dataclasses import dataclass

RGB = tuple[int, int, int]

CONFIG_LENGTH = 9

SHAPE_NAMES: tuple[str, ...] = ("hexagon", "circle", "diamond", "shield", "octagon", "triangle")
SYMBOL_NAMES: tuple[str, ...] = ("core", "eye", "gear", "bolt", "star", "wave", "node", "diamond")
PATTERN_NAMES: tuple[str, ...] = ("grid", "dots", "lines", "rings", "circuits", "waves")

GENESIS_PRIMARY: RGB = (255, 215, 0)
GENESIS_SECONDARY: RGB = (30, 30, 30)
STANDARD_PRIMARY: RGB = (74, 158, 255)
STANDARD_SECONDARY: RGB = (20, 20, 42)


@dataclass(frozen=True)
class VisualConfig:
    """Decoded visual configuration."""

    shape: int
    primary: RGB
    secondary: RGB
    symbol: int
    pattern: int

    @property
    def primary_hex(self) -> str:
        return to_hex(self.primary)

    @property
    def secondary_hex(self) -> str:
        return to_hex(self.secondary)

    @property
    def shape_name(self) -> str:
        return SHAPE_NAMES[self.shape]

    @property
    def symbol_name(self) -> str:
        return SYMBOL_NAMES[self.symbol]

    @property
    def pattern_name(self) -> str:
        return PATTERN_NAMES[self.pattern]


def to_hex(rgb: RGB) -> str:
    """Lowercase #rrggbb."""
    r, g, b = rgb
    return f"#{r:02x}{g:02x}{b:02x}"


def default_config(privileged: bool) -> VisualConfig:
    if privileged:
        return VisualConfig(0, GENESIS_PRIMARY, GENESIS_SECONDARY, 0, 0)
    return VisualConfig(0, STANDARD_PRIMARY, STANDARD_SECONDARY, 0, 0)


def parse_visual_config(raw: bytes, privileged: bool) -> VisualConfig:
    """Decode config bytes; bytes past the ninth are ignored."""
    if len(raw) < CONFIG_LENGTH:
        return default_config(privileged)
    return VisualConfig(
        shape=raw[0] % len(SHAPE_NAMES),
        primary=(raw[1], raw[2], raw[3]),
        secondary=(raw[4], raw[5], raw[6]),
        symbol=raw[7] % len(SYMBOL_NAMES),
        pattern=raw[8] % len(PATTERN_NAMES),
    )


def build_config(
    shape: int,
    primary: RGB,
    secondary: RGB,
    symbol: int,
    pattern: int,
) -> bytes:
    """Encode a visual configuration into its 9-byte form."""
    return bytes([shape, *primary, *secondary, symbol, pattern])
