"""Text generation HTTP client (Ollama-compatible /api/generate)"""

from typing import List, Optional

import httpx

from donation_gateway.config import settings
from donation_gateway.domain.exceptions import TextGenerationError
from donation_gateway.infrastructure.observability.metrics import text_generation_failures_counter


class TextGenerationClient:
    """Client for the external text generation model"""

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = base_url or settings.llm_api_url
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.llm_timeout_seconds

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
    ) -> str:
        """
        Generate free text for a prompt within a token budget.

        Raises:
            TextGenerationError: On timeout, HTTP errors, or invalid response
        """
        options = {"num_predict": max_tokens, "temperature": temperature}
        if stop:
            options["stop"] = stop

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/api/generate",
                    json={
                        "model": self.model,
                        "prompt": prompt,
                        "stream": False,
                        "options": options,
                    },
                )
                response.raise_for_status()
                text = response.json()["response"]
                if not isinstance(text, str):
                    raise TypeError(f"expected text, got {type(text).__name__}")
                return text

            except httpx.TimeoutException as e:
                text_generation_failures_counter.labels(reason="timeout").inc()
                raise TextGenerationError(f"Text generation timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                text_generation_failures_counter.labels(reason="http_status").inc()
                raise TextGenerationError(f"Text generation error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                text_generation_failures_counter.labels(reason="unreachable").inc()
                raise TextGenerationError(f"Text generation service unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                text_generation_failures_counter.labels(reason="malformed").inc()
                raise TextGenerationError(f"Invalid response from text generation: {e}") from e
