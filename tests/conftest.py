"""Shared fixtures: fake collaborators wired into a real app instance.

No network: the AI gateway and auth service are replaced with
``httpx.MockTransport`` handlers, the ledger and history are in-memory.
"""

from __future__ import annotations

import base64
import io
import json
from collections import Counter
from typing import Any

import httpx
import pytest
from PIL import Image

from roomrevive.api.deps import Services
from roomrevive.errors import UnauthorizedError
from roomrevive.main import create_app
from roomrevive.models.contracts import Tier, UsageCredits
from roomrevive.stores.credits import InMemoryCreditLedger
from roomrevive.stores.history import InMemoryHistoryStore
from roomrevive.utils.gateway import AIGatewayClient, GatewayConfig

USER_TOKEN = "token-free-user"
PRO_TOKEN = "token-pro-user"
BROKE_TOKEN = "token-broke-user"
GENERATED_IMAGE = "data:image/png;base64,R0VORVJBVEVE"


def make_data_url(width: int = 16, height: int = 16, fmt: str = "PNG") -> str:
    """A real, decodable image encoded as a data URL."""
    img = Image.new("RGB", (width, height), color=(180, 150, 120))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    subtype = "jpeg" if fmt == "JPEG" else fmt.lower()
    return f"data:image/{subtype};base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def completion(image_url: str | None = None, text: str = "") -> dict[str, Any]:
    """Chat-completions payload as the gateway returns it."""
    message: dict[str, Any] = {"role": "assistant", "content": text}
    if image_url is not None:
        message["images"] = [{"type": "image_url", "image_url": {"url": image_url}}]
    return {"choices": [{"index": 0, "message": message}]}


class FakeGateway:
    """MockTransport handler: records request bodies, replays queued replies."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self._queue: list[httpx.Response | Exception] = []
        self.default = httpx.Response(
            200, json=completion(GENERATED_IMAGE, "Here's your redesigned room!")
        )

    def reply(self, status: int = 200, payload: Any = None, text: str | None = None) -> None:
        if text is not None:
            self._queue.append(httpx.Response(status, text=text))
        else:
            self._queue.append(httpx.Response(status, json=payload if payload is not None else {}))

    def fail(self, exc: Exception) -> None:
        self._queue.append(exc)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if not self._queue:
            return self.default
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingLedger(InMemoryCreditLedger):
    """In-memory ledger that counts every call, for "never touched" assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: Counter[str] = Counter()

    async def get_or_create(self, user_id: str) -> UsageCredits:
        self.calls["get_or_create"] += 1
        return await super().get_or_create(user_id)

    async def try_consume_one(self, user_id: str) -> bool:
        self.calls["try_consume_one"] += 1
        return await super().try_consume_one(user_id)

    async def refund_one(self, user_id: str) -> None:
        self.calls["refund_one"] += 1
        await super().refund_one(user_id)

    async def increment_total_redesigns(self, user_id: str) -> None:
        self.calls["increment_total_redesigns"] += 1
        await super().increment_total_redesigns(user_id)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


class StaticIdentityResolver:
    def __init__(self, tokens: dict[str, str]) -> None:
        self.tokens = tokens

    async def resolve(self, token: str) -> str:
        user_id = self.tokens.get(token)
        if user_id is None:
            raise UnauthorizedError()
        return user_id


@pytest.fixture
def data_url() -> str:
    return make_data_url()


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        url="https://gateway.test/v1/chat/completions",
        api_key="test-key",
        redesign_model="test/image-model",
        analysis_model="test/vision-model",
        timeout_seconds=5.0,
    )


@pytest.fixture
def gateway(fake_gateway: FakeGateway, gateway_config: GatewayConfig) -> AIGatewayClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_gateway))
    return AIGatewayClient(gateway_config, http=http)


@pytest.fixture
def ledger() -> RecordingLedger:
    ledger = RecordingLedger()
    ledger.put(UsageCredits(user_id="user-free", tier=Tier.FREE, credits_remaining=3))
    ledger.put(UsageCredits(user_id="user-pro", tier=Tier.PRO, credits_remaining=0))
    ledger.put(UsageCredits(user_id="user-broke", tier=Tier.BASIC, credits_remaining=0))
    ledger.calls.clear()
    return ledger


@pytest.fixture
def identity() -> StaticIdentityResolver:
    return StaticIdentityResolver(
        {USER_TOKEN: "user-free", PRO_TOKEN: "user-pro", BROKE_TOKEN: "user-broke"}
    )


@pytest.fixture
def services(
    gateway: AIGatewayClient,
    identity: StaticIdentityResolver,
    ledger: RecordingLedger,
) -> Services:
    return Services(
        gateway=gateway,
        identity=identity,
        ledger=ledger,
        history=InMemoryHistoryStore(),
        max_image_bytes=10 * 1024 * 1024,
    )


@pytest.fixture
async def client(services: Services):
    app = create_app(services)
    # raise_app_exceptions=False: let the catch-all handler's 500 reach the test
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {USER_TOKEN}"}
