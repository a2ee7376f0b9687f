"""Service wiring: built once per app, reached by routes via ``Depends``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from roomrevive.config import Settings
from roomrevive.handlers.analyze_room import RoomAnalysisOrchestrator
from roomrevive.handlers.credit_gate import CreditGate
from roomrevive.handlers.redesign import RedesignOrchestrator
from roomrevive.models.contracts import Tier
from roomrevive.stores.credits import (
    CreditDefaults,
    CreditLedger,
    InMemoryCreditLedger,
    SqlCreditLedger,
)
from roomrevive.stores.history import HistoryStore, InMemoryHistoryStore, SqlHistoryStore
from roomrevive.utils.auth import (
    AuthServiceResolver,
    IdentityResolver,
    MockIdentityResolver,
    parse_bearer,
)
from roomrevive.utils.gateway import AIGatewayClient, GatewayConfig

logger = structlog.get_logger()


@dataclass
class Services:
    gateway: AIGatewayClient
    identity: IdentityResolver
    ledger: CreditLedger
    history: HistoryStore
    max_image_bytes: int
    # None when running on in-memory stores
    engine: AsyncEngine | None = None
    # engine / http clients to dispose on shutdown
    closers: list[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.gate = CreditGate(self.identity, self.ledger)
        self.redesign = RedesignOrchestrator(self.gateway, self.gate, self.max_image_bytes)
        self.analysis = RoomAnalysisOrchestrator(self.gateway, self.gate, self.max_image_bytes)

    async def aclose(self) -> None:
        for resource in self.closers:
            if hasattr(resource, "aclose"):
                await resource.aclose()
            elif hasattr(resource, "dispose"):
                await resource.dispose()


def build_services(s: Settings) -> Services:
    """Assemble production or development collaborators from settings."""
    gateway = AIGatewayClient(GatewayConfig.from_settings(s))
    closers: list[Any] = [gateway]

    identity: IdentityResolver
    if s.use_mock_auth:
        identity = MockIdentityResolver()
    else:
        resolver = AuthServiceResolver(s.auth_url, s.auth_api_key)
        closers.append(resolver)
        identity = resolver

    defaults = CreditDefaults(
        tier=Tier(s.default_tier),
        credits=s.default_credits,
        monthly_limit=s.default_monthly_limit,
    )
    ledger: CreditLedger
    history: HistoryStore
    engine: AsyncEngine | None = None
    if s.use_database:
        from roomrevive.utils.database import build_engine, build_sessionmaker

        engine = build_engine(s.database_url)
        sessions = build_sessionmaker(engine)
        closers.append(engine)
        ledger = SqlCreditLedger(sessions, defaults)
        history = SqlHistoryStore(sessions)
    else:
        ledger = InMemoryCreditLedger(defaults)
        history = InMemoryHistoryStore()

    logger.info(
        "services_built",
        use_database=s.use_database,
        use_mock_auth=s.use_mock_auth,
        gateway_configured=bool(s.ai_gateway_api_key),
    )
    return Services(
        gateway=gateway,
        identity=identity,
        ledger=ledger,
        history=history,
        max_image_bytes=s.max_image_bytes,
        engine=engine,
        closers=closers,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_token(request: Request) -> str | None:
    return parse_bearer(request.headers.get("authorization"))
