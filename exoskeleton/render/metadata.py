"""Token metadata: the rendered image bundled with computed traits.

render_image() is the renderer call boundary. A renderer that raises or
returns nothing degrades to the built-in fallback, logged at WARNING;
metadata queries never fail because of the renderer.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any

from ..core.models import IdentitySnapshot
from ..core.tiers import Tier
from .fallback import render_fallback
from .pipeline import Renderer
from .visual_config import parse_visual_config


logger = logging.getLogger(__name__)

SVG_DATA_PREFIX = "data:image/svg+xml;base64,"
JSON_DATA_PREFIX = "data:application/json;base64,"


def render_image(snapshot: IdentitySnapshot, renderer: Renderer | None) -> str:
    """Render through ``renderer``, falling back to the minimal image."""
    if renderer is None:
        return render_fallback(snapshot)
    try:
        svg = renderer.render(snapshot)
    except Exception:
        logger.warning(
            "Renderer %s failed for identity %d, using fallback",
            type(renderer).__name__,
            snapshot.identity_id,
            exc_info=True,
        )
        return render_fallback(snapshot)
    if not isinstance(svg, str) or not svg.strip():
        logger.warning(
            "Renderer %s returned no output for identity %d, using fallback",
            type(renderer).__name__,
            snapshot.identity_id,
        )
        return render_fallback(snapshot)
    return svg


def svg_data_uri(svg: str) -> str:
    return SVG_DATA_PREFIX + base64.b64encode(svg.encode("utf-8")).decode("ascii")


def build_metadata(
    snapshot: IdentitySnapshot,
    image_svg: str,
    tier: Tier,
    description: str,
) -> dict[str, Any]:
    """Marketplace metadata: {name, description, image, attributes}."""
    visual = parse_visual_config(snapshot.visual_config, snapshot.privileged)
    attributes: list[dict[str, Any]] = [
        {"trait_type": "Genesis", "value": "true" if snapshot.privileged else "false"},
        {"trait_type": "Phase", "value": snapshot.phase},
        {"trait_type": "Age", "value": snapshot.age, "display_type": "number"},
        {"trait_type": "Messages Sent", "value": snapshot.messages_sent, "display_type": "number"},
        {"trait_type": "Storage Writes", "value": snapshot.storage_writes, "display_type": "number"},
        {"trait_type": "Modules Active", "value": snapshot.modules_active, "display_type": "number"},
        {"trait_type": "Reputation", "value": snapshot.reputation_score, "display_type": "number"},
        {"trait_type": "Tier", "value": tier.label},
        {"trait_type": "Shape", "value": visual.shape_name.capitalize()},
        {"trait_type": "Symbol", "value": visual.symbol_name.capitalize()},
        {"trait_type": "Pattern", "value": visual.pattern_name.capitalize()},
    ]
    return {
        "name": snapshot.name or f"Exoskeleton #{snapshot.identity_id}",
        "description": description,
        "image": svg_data_uri(image_svg),
        "attributes": attributes,
    }


def encode_token_uri(metadata: dict[str, Any]) -> str:
    """Wrap metadata JSON as a base64 data URI."""
    payload = json.dumps(metadata, separators=(",", ":"))
    return JSON_DATA_PREFIX + base64.b64encode(payload.encode("utf-8")).decode("ascii")
