from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from overthinkr.config.settings import DEFAULT_GEMINI_BASE_URL
from overthinkr.utils.error_taxonomy import MalformedEnvelopeError, TransportFailure

logger = logging.getLogger(__name__)


class GeminiAnalysisClient:
    """Single-shot client for the Gemini ``generateContent`` REST endpoint.

    The client makes exactly one request per ``invoke`` call and never retries.
    It returns the inner text of the first candidate unparsed; interpreting that
    text is the validator's job.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = "gemini-3-flash-preview",
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self._http_client: httpx.Client | None = None

    @property
    def endpoint_url(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def invoke(self, prompt: str) -> str:
        client = self._resolve_http_client()
        payload = self.build_request_payload(prompt=prompt)

        start_time = time.perf_counter()
        try:
            response = client.post(self.endpoint_url, json=payload)
        except httpx.HTTPError as error:
            raise TransportFailure(
                f"Request to Gemini failed: {error.__class__.__name__}"
            ) from error
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            logger.warning(
                "Gemini responded with HTTP %s",
                response.status_code,
                extra={"duration_ms": round(elapsed_ms, 1)},
            )
            raise TransportFailure(
                f"Gemini request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(
            "Gemini responded with HTTP %s",
            response.status_code,
            extra={"duration_ms": round(elapsed_ms, 1)},
        )
        try:
            envelope = response.json()
        except ValueError as error:
            raise MalformedEnvelopeError("Gemini response body is not JSON") from error

        return extract_candidate_text(envelope)

    @staticmethod
    def build_request_payload(*, prompt: str) -> dict[str, Any]:
        return {"contents": [{"parts": [{"text": prompt}]}]}

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _resolve_http_client(self) -> httpx.Client:
        if self._http_client is not None:
            return self._http_client

        if not self._api_key:
            raise TransportFailure("Gemini API key is not configured")

        self._http_client = httpx.Client(
            headers={"x-goog-api-key": self._api_key},
            transport=self._transport,
            timeout=self._timeout,
        )
        return self._http_client


def extract_candidate_text(envelope: Any) -> str:
    """Return the first candidate part text or raise MalformedEnvelopeError."""

    if not isinstance(envelope, dict):
        raise MalformedEnvelopeError("Gemini envelope must be a JSON object")

    candidates = envelope.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise MalformedEnvelopeError("Gemini envelope missing candidates")

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise MalformedEnvelopeError("Gemini candidate must be an object")

    content = candidate.get("content")
    if not isinstance(content, dict):
        raise MalformedEnvelopeError("Gemini candidate missing content")

    parts = content.get("parts")
    if not isinstance(parts, list) or not parts:
        raise MalformedEnvelopeError("Gemini content missing parts")

    part = parts[0]
    if not isinstance(part, dict):
        raise MalformedEnvelopeError("Gemini part must be an object")

    text = part.get("text")
    if not isinstance(text, str):
        raise MalformedEnvelopeError("Gemini part missing text")

    return text
