"""AI gateway client (OpenAI-compatible chat completions over httpx).

One request per call, no retries. Every HTTP response, including 4xx/5xx,
comes back as a ``GatewayResult`` so the caller's classifier sees the
status code; only transport failures (timeout, connection errors) raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from roomrevive.config import Settings

logger = structlog.get_logger()

REDESIGN_MODALITIES = ["image", "text"]
_ERROR_BODY_LIMIT = 2000


class GatewayUnavailableError(Exception):
    """The gateway could not be reached or did not answer in time."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


@dataclass(frozen=True)
class GatewayConfig:
    """Provider configuration, resolved once at startup."""

    url: str
    api_key: str
    redesign_model: str
    analysis_model: str
    timeout_seconds: float

    @classmethod
    def from_settings(cls, s: Settings) -> GatewayConfig:
        return cls(
            url=s.ai_gateway_url,
            api_key=s.ai_gateway_api_key,
            redesign_model=s.redesign_model,
            analysis_model=s.analysis_model,
            timeout_seconds=s.gateway_timeout_seconds,
        )


@dataclass(frozen=True)
class GatewayResult:
    status_code: int
    image_url: str | None = None
    text: str = ""
    error_body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def build_messages(prompt: str, image: str) -> list[dict[str, Any]]:
    """Single user turn: instruction text followed by the embedded image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image}},
            ],
        }
    ]


def extract_image(data: dict[str, Any]) -> str | None:
    """First generated image reference in a completions payload, if any."""
    message = _first_message(data)
    images = message.get("images") or []
    if not isinstance(images, list):
        return None
    for entry in images:
        if not isinstance(entry, dict):
            continue
        url = (entry.get("image_url") or {}).get("url")
        if isinstance(url, str) and url:
            return url
    return None


def extract_text(data: dict[str, Any]) -> str:
    """Assistant text in a completions payload ("" when absent)."""
    content = _first_message(data).get("content")
    if isinstance(content, str):
        return content
    # Some providers return content as a list of typed parts
    if isinstance(content, list):
        texts = [
            p["text"] for p in content if isinstance(p, dict) and isinstance(p.get("text"), str)
        ]
        return "\n".join(texts)
    return ""


def _first_message(data: dict[str, Any]) -> dict[str, Any]:
    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return {}
    message = choices[0].get("message")
    return message if isinstance(message, dict) else {}


class AIGatewayClient:
    def __init__(self, config: GatewayConfig, http: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._http = http or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def generate_image(self, prompt: str, image: str) -> GatewayResult:
        """Image+text generation call used by the redesign flow."""
        return await self._complete(
            {
                "model": self.config.redesign_model,
                "messages": build_messages(prompt, image),
                "modalities": REDESIGN_MODALITIES,
            }
        )

    async def describe_image(self, prompt: str, image: str) -> GatewayResult:
        """Vision call with text output, used by room analysis."""
        return await self._complete(
            {
                "model": self.config.analysis_model,
                "messages": build_messages(prompt, image),
            }
        )

    async def _complete(self, payload: dict[str, Any]) -> GatewayResult:
        if not self.config.api_key:
            raise RuntimeError("AI_GATEWAY_API_KEY is not configured")

        logger.info("gateway_request_start", model=payload["model"])
        try:
            response = await self._http.post(
                self.config.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                timeout=self.config.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            logger.warning("gateway_timeout", timeout_seconds=self.config.timeout_seconds)
            raise GatewayUnavailableError(
                f"AI gateway timed out after {self.config.timeout_seconds:.0f}s",
                timed_out=True,
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("gateway_network_error", error_type=type(exc).__name__)
            raise GatewayUnavailableError(
                f"Network error reaching AI gateway: {type(exc).__name__}"
            ) from exc

        if response.status_code >= 400:
            body = response.text[:_ERROR_BODY_LIMIT]
            logger.error("gateway_http_error", status=response.status_code, body=body[:300])
            return GatewayResult(status_code=response.status_code, error_body=body)

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("gateway_invalid_json", status=response.status_code)
            raise GatewayUnavailableError("AI gateway returned a non-JSON response") from exc
        if not isinstance(data, dict):
            data = {}

        result = GatewayResult(
            status_code=response.status_code,
            image_url=extract_image(data),
            text=extract_text(data),
        )
        logger.info(
            "gateway_request_done",
            model=payload["model"],
            has_image=result.image_url is not None,
            text_len=len(result.text),
        )
        return result
