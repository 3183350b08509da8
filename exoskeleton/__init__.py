"""Exoskeleton identity ledger.

This package contains:
- config: Configuration loading and management
- core: The ledger, pricing, reputation, tiers, modules and events
- render: Deterministic SVG rendering and token metadata
- api: Read-only FastAPI surface
"""

from __future__ import annotations

__all__: list[str] = []
