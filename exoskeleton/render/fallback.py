"""Built-in minimal image used when no renderer is available.

Background, frame, label and (for genesis identities) a badge. Touches
nothing but the snapshot's id, name and privileged flag, so it cannot fail
on malformed visual config.
"""

from __future__ import annotations

import html

from ..core.models import IdentitySnapshot


def render_fallback(snapshot: IdentitySnapshot) -> str:
    accent = "#FFD700" if snapshot.privileged else "#4a9eff"
    label = html.escape(snapshot.name) if snapshot.name else f"#{snapshot.identity_id}"
    badge = (
        '<text x="250" y="310" text-anchor="middle" font-family="monospace" '
        'font-size="12" fill="#FFD700" letter-spacing="4">GENESIS</text>'
        if snapshot.privileged
        else ""
    )
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 500 500" width="500" height="500">'
        '<rect width="500" height="500" fill="#0a0a0f"/>'
        f'<rect x="10" y="10" width="480" height="480" rx="12" fill="none" '
        f'stroke="{accent}" stroke-width="3"/>'
        '<text x="250" y="230" text-anchor="middle" font-family="monospace" '
        f'font-size="18" fill="{accent}" letter-spacing="6">EXOSKELETON</text>'
        '<text x="250" y="270" text-anchor="middle" font-family="monospace" '
        f'font-size="22" fill="#ffffff">{label}</text>'
        f"{badge}"
        "</svg>"
    )
