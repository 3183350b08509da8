"""FastAPI read surface over an identity ledger.

Read-only: every route goes through ledger read queries. Ledger errors map
to the structured error body, with 404 for missing records and 400 for
everything else.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from ..config import get_validated_config
from ..core.errors import ErrorCode, LedgerError, not_found
from ..core.ledger import IdentityLedger
from .models import (
    IdentityInfo,
    LedgerEvent,
    MetadataAttribute,
    ModuleInfo,
    PricingInfo,
    ReputationInfo,
    TokenMetadata,
)


logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {ErrorCode.NOT_FOUND, ErrorCode.MODULE_NOT_FOUND}
EVENT_ENVELOPE = {"sequence", "timestamp", "event_type"}


def _register_identity_routes(app: FastAPI, ledger: IdentityLedger) -> None:
    @app.get("/api/identities/{identity_id}", response_model=IdentityInfo)
    def get_identity(identity_id: int) -> IdentityInfo:
        identity = ledger.get_identity(identity_id)
        return IdentityInfo(
            identity_id=identity.identity_id,
            owner=identity.owner,
            name=identity.name,
            bio=identity.bio,
            visual_config=identity.visual_config.hex(),
            custom_visual=identity.custom_visual,
            storage_operator=ledger.storage_operator(identity_id),
            created_at=identity.created_at,
            privileged=identity.privileged,
            phase=ledger.pricing.phase(identity_id),
            tier=ledger.get_tier(identity_id).label,
            active_modules=ledger.active_modules(identity_id),
        )

    @app.get("/api/identities/{identity_id}/reputation", response_model=ReputationInfo)
    def get_reputation(identity_id: int) -> ReputationInfo:
        snapshot = ledger.snapshot(identity_id)
        return ReputationInfo(
            identity_id=identity_id,
            messages_sent=snapshot.messages_sent,
            storage_writes=snapshot.storage_writes,
            modules_active=snapshot.modules_active,
            age=snapshot.age,
            reputation_score=snapshot.reputation_score,
            activity_score=ledger.get_activity_score(identity_id),
            tier=ledger.get_tier(identity_id).label,
        )

    @app.get("/api/identities/{identity_id}/image.svg", response_model=None)
    def get_image(identity_id: int) -> Response:
        return Response(content=ledger.render(identity_id), media_type="image/svg+xml")

    @app.get("/api/identities/{identity_id}/metadata", response_model=TokenMetadata)
    def get_metadata(identity_id: int) -> TokenMetadata:
        metadata = ledger.metadata(identity_id)
        return TokenMetadata(
            name=metadata["name"],
            description=metadata["description"],
            image=metadata["image"],
            attributes=[MetadataAttribute(**a) for a in metadata["attributes"]],
        )


def create_app(ledger: IdentityLedger) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Exoskeleton Ledger",
        description="Read API for identities, modules, pricing and events",
        version="0.1.0",
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        status = 404 if exc.code in NOT_FOUND_CODES else 400
        logger.debug("%s %s -> %d %s", request.method, request.url.path, status, exc.code.value)
        return JSONResponse(status_code=status, content=exc.to_response().to_dict())

    _register_identity_routes(app, ledger)

    @app.get("/api/modules/{key}", response_model=ModuleInfo)
    def get_module(key: str) -> ModuleInfo:
        descriptor = ledger.get_module(key)
        if descriptor is None:
            raise not_found("Module", key)
        return ModuleInfo(**descriptor.to_dict())

    @app.get("/api/pricing", response_model=PricingInfo)
    def get_pricing() -> PricingInfo:
        return PricingInfo(
            next_id=ledger.next_id,
            price=ledger.mint_price(),
            phase=ledger.mint_phase(),
            paused=ledger.paused,
            whitelist_only=ledger.whitelist_only,
            royalty_bps=ledger.state.royalty_bps,
        )

    @app.get("/api/events", response_model=list[LedgerEvent])
    def get_events(
        limit: int = Query(default=100, ge=1, le=10000),
        event_type: str | None = None,
    ) -> list[LedgerEvent]:
        events: list[dict[str, Any]] = ledger.event_log.events(event_type)[-limit:]
        return [
            LedgerEvent(
                sequence=e["sequence"],
                timestamp=e["timestamp"],
                event_type=e["event_type"],
                data={k: v for k, v in e.items() if k not in EVENT_ENVELOPE},
            )
            for e in events
        ]

    return app


def run_api(ledger: IdentityLedger, host: str | None = None, port: int | None = None) -> None:
    """Serve the read API for ``ledger`` until interrupted.

    Host and port default to the api section of the active configuration.
    """
    import uvicorn

    settings = get_validated_config().api
    host = host or settings.host
    port = port or settings.port
    app = create_app(ledger)
    logger.info("Serving read API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)
