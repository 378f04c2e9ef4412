from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING
import time
import logging

from docplan.errors import GenerationError

if TYPE_CHECKING:
    import anthropic

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """Configuration for Claude API client."""
    api_key: str
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2048
    temperature: float = 0.3  # Low temp for consistent edits
    max_retries: int = 3  # Max retries for rate limit errors
    min_request_interval: float = 0.3  # Min seconds between requests per worker
    backoff_base: float = 2.0


def _is_rate_limit(error: Exception) -> bool:
    error_str = str(error).lower()
    return (
        "rate" in error_str or
        "429" in error_str or
        "too many requests" in error_str or
        "overloaded" in error_str
    )


class ClaudeClient:
    """Thin wrapper around Anthropic's Claude API; owns the retry policy."""

    def __init__(self, config: LLMConfig, client: Optional[Any] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> "anthropic.Anthropic":
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.config.api_key)
        return self._client

    def complete(self, system: str, user_prompt: str, label: str = "request") -> str:
        """
        Send one prompt, retrying rate-limit errors with exponential backoff.

        Raises:
            GenerationError: non-retryable error, retries exhausted, or an
                empty reply
        """
        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retries + 1):
            try:
                if self.config.min_request_interval:
                    time.sleep(self.config.min_request_interval)

                message = self.client.messages.create(
                    model=self.config.model,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                    system=system,
                    messages=[{"role": "user", "content": user_prompt}],
                )

                result = ""
                for block in message.content:
                    if hasattr(block, "text"):
                        result += block.text
                result = result.strip()
                if not result:
                    raise GenerationError(f"Empty response for {label}")
                return result

            except GenerationError:
                raise
            except Exception as e:
                last_error = e
                if _is_rate_limit(e) and attempt < self.config.max_retries:
                    # Exponential backoff: 2s, 4s, 8s
                    backoff = self.config.backoff_base ** (attempt + 1)
                    logger.warning(f"Rate limit hit for {label}, retry {attempt+1}/{self.config.max_retries} in {backoff}s")
                    time.sleep(backoff)
                    continue
                break

        logger.warning(f"Claude call failed for {label}: {type(last_error).__name__}: {last_error}")
        raise GenerationError(f"{type(last_error).__name__}: {last_error}") from last_error
