"""
LLM provider clients.

Each client exposes ``complete(api_key, model, prompt) -> text``. They differ
only in request and response shape.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog

from estimator.exceptions import ProviderError
from estimator.models import LLMProvider

logger = structlog.get_logger(__name__)


class LLMClient(ABC):
    """Abstract chat/completion client."""

    def __init__(
        self,
        timeout: float = 120.0,
        max_tokens: int = 4096,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            timeout: HTTP timeout in seconds.
            max_tokens: Completion token limit sent to the provider.
            transport: Optional httpx transport (used by tests).
        """
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._transport = transport

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name used in error messages."""
        pass

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Completion endpoint URL."""
        pass

    @abstractmethod
    def build_headers(self, api_key: str) -> Dict[str, str]:
        pass

    @abstractmethod
    def build_payload(self, model: str, prompt: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> str:
        """Pull the completion text out of a response body."""
        pass

    async def complete(self, api_key: str, model: str, prompt: str) -> str:
        """
        Send ``prompt`` to the provider and return the raw completion text.

        Raises:
            ProviderError: On transport failure, non-2xx status or an
                unexpected response body.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json=self.build_payload(model, prompt),
                    headers=self.build_headers(api_key),
                )
        except httpx.TimeoutException:
            logger.warning("llm_request_timeout", provider=self.provider_name, model=model)
            raise ProviderError(self.provider_name, f"{self.provider_name} API error: request timed out")
        except httpx.RequestError as e:
            logger.error("llm_request_failed", provider=self.provider_name, model=model, error=str(e))
            raise ProviderError(self.provider_name, f"{self.provider_name} API error: {e}")

        if not 200 <= response.status_code < 300:
            logger.warning(
                "llm_request_rejected",
                provider=self.provider_name,
                model=model,
                status_code=response.status_code,
            )
            raise ProviderError(
                self.provider_name,
                f"{self.provider_name} API error: {response.status_code} {response.reason_phrase}",
                details={"status_code": response.status_code, "body": response.text[:500]},
            )

        try:
            text = self.extract_text(response.json())
            if not isinstance(text, str):
                raise TypeError(f"completion text is {type(text).__name__}, not str")
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("llm_response_malformed", provider=self.provider_name, error=str(e))
            raise ProviderError(
                self.provider_name,
                f"{self.provider_name} API error: malformed response",
                details={"reason": str(e), "body": response.text[:500]},
            )

        logger.info("llm_request_complete", provider=self.provider_name, model=model, chars=len(text))
        return text


class ClaudeClient(LLMClient):
    """Anthropic Messages API."""

    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    @property
    def provider_name(self) -> str:
        return "Claude"

    @property
    def endpoint(self) -> str:
        return self.API_URL

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.API_VERSION,
        }

    def build_payload(self, model: str, prompt: str) -> Dict[str, Any]:
        return {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["content"][0]["text"]


class OpenAIClient(LLMClient):
    """OpenAI Chat Completions API."""

    API_URL = "https://api.openai.com/v1/chat/completions"
    TEMPERATURE = 0.7

    @property
    def provider_name(self) -> str:
        return "OpenAI"

    @property
    def endpoint(self) -> str:
        return self.API_URL

    def build_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def build_payload(self, model: str, prompt: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.TEMPERATURE,
        }

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


CLIENTS = {
    LLMProvider.CLAUDE: ClaudeClient,
    LLMProvider.OPENAI: OpenAIClient,
}


def get_llm_client(
    provider: LLMProvider,
    timeout: float = 120.0,
    max_tokens: int = 4096,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> LLMClient:
    """Return the client implementation for ``provider``."""
    return CLIENTS[LLMProvider(provider)](timeout=timeout, max_tokens=max_tokens, transport=transport)
