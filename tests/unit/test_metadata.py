"""Unit tests for the fallback image, renderer isolation and token metadata."""

from __future__ import annotations

import base64
import json
import logging

import pytest

from exoskeleton.core.ledger import IdentityLedger
from exoskeleton.core.models import IdentitySnapshot
from exoskeleton.core.tiers import Tier
from exoskeleton.render.fallback import render_fallback
from exoskeleton.render.metadata import (
    JSON_DATA_PREFIX,
    SVG_DATA_PREFIX,
    build_metadata,
    encode_token_uri,
    render_image,
    svg_data_uri,
)
from exoskeleton.render.pipeline import RenderingPipeline
from tests.testing_utils import ADMIN, ALICE, GOLD_EYE_CIRCUITS, make_snapshot


class BrokenRenderer:
    def render(self, snapshot: IdentitySnapshot) -> str:
        raise RuntimeError("template missing")


class EmptyRenderer:
    def render(self, snapshot: IdentitySnapshot) -> str:
        return ""


def _decode_data_uri(uri: str, prefix: str) -> str:
    assert uri.startswith(prefix)
    return base64.b64decode(uri[len(prefix):]).decode("utf-8")


class TestFallback:
    """Tests for the built-in fallback image."""

    def test_standard(self) -> None:
        svg = render_fallback(make_snapshot())
        assert "EXOSKELETON" in svg
        assert ">#7<" in svg
        assert "GENESIS" not in svg
        assert 'stroke="#4a9eff"' in svg

    def test_privileged(self) -> None:
        svg = render_fallback(make_snapshot(privileged=True))
        assert "GENESIS" in svg
        assert 'stroke="#FFD700"' in svg

    def test_name_replaces_id(self) -> None:
        svg = render_fallback(make_snapshot(name="Ada & co"))
        assert "Ada &amp; co" in svg
        assert ">#7<" not in svg

    def test_ignores_malformed_config(self) -> None:
        assert render_fallback(make_snapshot(visual_config=b"\xff")).endswith("</svg>")


class TestRenderImage:
    """A failing renderer never breaks an image query."""

    def test_uses_renderer(self) -> None:
        snapshot = make_snapshot()
        assert render_image(snapshot, RenderingPipeline()) == RenderingPipeline().render(snapshot)

    def test_no_renderer(self) -> None:
        snapshot = make_snapshot()
        assert render_image(snapshot, None) == render_fallback(snapshot)

    @pytest.mark.parametrize("renderer", [BrokenRenderer(), EmptyRenderer()])
    def test_failure_falls_back(self, renderer, caplog: pytest.LogCaptureFixture) -> None:  # type: ignore[no-untyped-def]
        snapshot = make_snapshot()
        with caplog.at_level(logging.WARNING, logger="exoskeleton.render.metadata"):
            svg = render_image(snapshot, renderer)
        assert svg == render_fallback(snapshot)
        assert any(r.levelno == logging.WARNING for r in caplog.records)
        assert type(renderer).__name__ in caplog.text


class TestMetadata:
    """Tests for metadata assembly and encoding."""

    def test_attributes(self) -> None:
        snapshot = make_snapshot(
            visual_config=GOLD_EYE_CIRCUITS,
            messages_sent=3,
            storage_writes=1,
            current_height=12,
            reputation_score=17,
        )
        metadata = build_metadata(snapshot, "<svg/>", Tier.DORMANT, "desc")
        attributes = {a["trait_type"]: a["value"] for a in metadata["attributes"]}

        assert metadata["name"] == "Exoskeleton #7"
        assert metadata["description"] == "desc"
        assert attributes == {
            "Genesis": "false",
            "Phase": "growth",
            "Age": 12,
            "Messages Sent": 3,
            "Storage Writes": 1,
            "Modules Active": 0,
            "Reputation": 17,
            "Tier": "Dormant",
            "Shape": "Hexagon",
            "Symbol": "Eye",
            "Pattern": "Circuits",
        }

    def test_named_identity(self) -> None:
        metadata = build_metadata(make_snapshot(name="Ada"), "<svg/>", Tier.COPPER, "")
        assert metadata["name"] == "Ada"

    def test_image_is_svg_data_uri(self) -> None:
        metadata = build_metadata(make_snapshot(), "<svg>x</svg>", Tier.DORMANT, "")
        assert _decode_data_uri(metadata["image"], SVG_DATA_PREFIX) == "<svg>x</svg>"
        assert svg_data_uri("<svg/>") == SVG_DATA_PREFIX + base64.b64encode(b"<svg/>").decode()

    def test_token_uri_round_trip(self) -> None:
        metadata = build_metadata(make_snapshot(), "<svg/>", Tier.DORMANT, "d")
        uri = encode_token_uri(metadata)
        assert json.loads(_decode_data_uri(uri, JSON_DATA_PREFIX)) == metadata


class TestLedgerRendering:
    """Rendering reads through the ledger's installed renderer."""

    def test_render_matches_pipeline(self, ledger: IdentityLedger, alice_identity: int) -> None:
        expected = RenderingPipeline().render(ledger.snapshot(alice_identity))
        assert ledger.render(alice_identity) == expected

    def test_unset_renderer_uses_fallback(
        self, ledger: IdentityLedger, alice_identity: int
    ) -> None:
        ledger.set_renderer(ADMIN, None)
        assert ledger.render(alice_identity) == render_fallback(ledger.snapshot(alice_identity))
        assert ledger.event_log.events("renderer_updated")[-1]["renderer"] == "none"

    def test_broken_renderer_still_serves_metadata(
        self, ledger: IdentityLedger, alice_identity: int
    ) -> None:
        ledger.set_renderer(ADMIN, BrokenRenderer())
        metadata = ledger.metadata(alice_identity)
        image = _decode_data_uri(metadata["image"], SVG_DATA_PREFIX)
        assert image == render_fallback(ledger.snapshot(alice_identity))

    def test_token_uri(self, ledger: IdentityLedger, alice_identity: int) -> None:
        ledger.set_name(ALICE, alice_identity, "Ada")
        decoded = json.loads(_decode_data_uri(ledger.token_uri(alice_identity), JSON_DATA_PREFIX))
        attributes = {a["trait_type"]: a["value"] for a in decoded["attributes"]}
        assert decoded["name"] == "Ada"
        assert attributes["Genesis"] == "true"
        assert attributes["Phase"] == "genesis"
        assert decoded["description"] == "An onchain exoskeleton for AI agents."

    def test_snapshot_phase_is_identity_phase(self, small_ledger: IdentityLedger) -> None:
        small_ledger.admin_create(ADMIN, b"", ALICE, count=6)
        assert small_ledger.snapshot(1).phase == "genesis"
        assert small_ledger.snapshot(3).phase == "growth"
        assert small_ledger.snapshot(6).phase == "open"
