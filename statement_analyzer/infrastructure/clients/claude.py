"""Claude Messages API HTTP client for document understanding"""

import logging
import httpx
from typing import Any, Dict
from statement_analyzer.config import settings
from statement_analyzer.domain.models import Document
from statement_analyzer.domain.exceptions import ConfigurationError, MalformedResponseError, UpstreamError
from statement_analyzer.infrastructure.observability.metrics import upstream_latency_histogram, upstream_failure_counter

logger = logging.getLogger(__name__)

ERROR_BODY_PREVIEW_CHARS = 1000


class ClaudeClient:
    """Client for the Claude Messages API; one request per call, no retries"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.claude_api_key
        if not self.api_key:
            raise ConfigurationError("CLAUDE_API_KEY is not configured")

        self.base_url = (base_url or settings.claude_api_base).rstrip("/")
        self.model = model or settings.claude_model
        self.api_version = api_version or settings.claude_api_version
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def build_payload(self, document: Document, prompt: str, max_tokens: int) -> Dict[str, Any]:
        """Messages API body: the document attachment followed by the instruction text"""
        return {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "document",
                            "source": {
                                "type": "base64",
                                "media_type": document.media_type,
                                "data": document.as_base64(),
                            },
                        },
                        {
                            "type": "text",
                            "text": prompt,
                        },
                    ],
                }
            ],
        }

    async def complete(self, document: Document, prompt: str, max_tokens: int, stage: str = "extraction") -> str:
        """
        Send the document and prompt, return the text of the first content block.

        Raises:
            UpstreamError: On timeout, transport failure or non-success status
            MalformedResponseError: If a successful response carries no text
        """
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with upstream_latency_histogram.labels(stage=stage).time():
                    response = await client.post(
                        f"{self.base_url}/v1/messages",
                        headers=headers,
                        json=self.build_payload(document, prompt, max_tokens),
                    )
                response.raise_for_status()
                data = response.json()

            except httpx.TimeoutException as e:
                upstream_failure_counter.labels(reason="timeout").inc()
                raise UpstreamError(f"Claude API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                upstream_failure_counter.labels(reason="status").inc()
                body = e.response.text[:ERROR_BODY_PREVIEW_CHARS]
                logger.error(f"Claude API error: {e.response.status_code}", extra={"stage": stage, "body": body})
                raise UpstreamError(
                    f"Claude API error: {e.response.status_code} - {body}",
                    status_code=e.response.status_code,
                    body=body,
                ) from e
            except httpx.RequestError as e:
                upstream_failure_counter.labels(reason="transport").inc()
                raise UpstreamError(f"Claude API request failed: {e!r}") from e
            except ValueError as e:
                raise MalformedResponseError("Claude API returned a non-JSON body", response.text) from e

        try:
            text = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError("Claude API response has no text content", str(data)) from e

        if not isinstance(text, str) or not text:
            raise MalformedResponseError("Claude API response has no text content", str(data))

        logger.debug("Claude response received", extra={"stage": stage, "chars": len(text)})
        return text
