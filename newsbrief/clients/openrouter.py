"""OpenRouter API client used as the generative fallback for article extraction."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from newsbrief.clients.interfaces import TextGenerator

logger = logging.getLogger(__name__)


class OpenRouterClient(TextGenerator):
    """Client for the OpenRouter chat-completions API."""

    TEMPERATURE = 0.3

    # Models tried in order after the preferred one
    MODEL_FALLBACKS = [
        "google/gemini-2.0-flash-lite-001",
        "openai/gpt-4o-mini",
        "meta-llama/llama-3.3-70b-instruct:free",
    ]

    def __init__(self, api_key: str, model: Optional[str] = None, settings=None):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            model: Preferred model (defaults to the first fallback model)
            settings: Settings instance for configuration values
        """
        self.api_key = api_key
        self.base_url = "https://openrouter.ai/api/v1"
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "X-Title": "newsbrief",
        }
        self.model_fallbacks: List[str] = list(self.MODEL_FALLBACKS)
        self.default_model = model or self.model_fallbacks[0]

        # Rate limiting configuration - use settings if provided, fallback to defaults
        self.last_request_time = 0.0
        if settings:
            self.min_request_interval = settings.openrouter_min_request_interval
            self.max_backoff_multiplier = settings.openrouter_max_backoff_multiplier
            self.timeout = settings.openrouter_timeout
        else:
            self.min_request_interval = 3.2  # ~18 requests/minute
            self.max_backoff_multiplier = 8.0
            self.timeout = 30.0

        self.consecutive_failures = 0
        self.backoff_multiplier = 1.0

    @classmethod
    def from_settings(cls, settings) -> Optional["OpenRouterClient"]:
        """Build a client when an API key is configured, otherwise None."""
        if not settings.openrouter_api_key:
            return None
        return cls(
            settings.openrouter_api_key,
            model=settings.openrouter_model,
            settings=settings,
        )

    async def _rate_limit_delay(self):
        """Ensure we don't exceed rate limits by adding delays between requests."""
        current_time = time.time()
        time_since_last = current_time - self.last_request_time

        # Apply exponential backoff if we've had consecutive failures
        effective_interval = self.min_request_interval * self.backoff_multiplier

        if time_since_last < effective_interval:
            delay = effective_interval - time_since_last
            logger.debug(
                f"Rate limiting: waiting {delay:.1f}s before next OpenRouter request"
            )
            await asyncio.sleep(delay)

        self.last_request_time = time.time()

    async def _make_request(
        self, prompt: str, max_tokens: int
    ) -> Optional[Dict[str, Any]]:
        """Make a request to OpenRouter API with model fallback.

        Args:
            prompt: The prompt to send
            max_tokens: Maximum tokens to generate

        Returns:
            API response or None if failed
        """
        models_to_try = [self.default_model] + [
            m for m in self.model_fallbacks if m != self.default_model
        ]

        for attempt_model in models_to_try:
            try:
                payload = {
                    "model": attempt_model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": max_tokens,
                    "temperature": self.TEMPERATURE,
                    "stream": False,
                }

                result = await self._make_single_request(payload)
                if result:
                    if attempt_model != self.default_model:
                        logger.info(f"Using fallback model: {attempt_model}")
                    return result
            except Exception as e:
                logger.warning(f"Model {attempt_model} failed: {e}")
                continue

        logger.error("All models failed")
        return None

    async def _make_single_request(
        self, payload: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Make a single request to OpenRouter API.

        Args:
            payload: Request payload

        Returns:
            API response or None if failed
        """
        try:
            # Rate limiting to avoid 429 errors
            await self._rate_limit_delay()

            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/chat/completions",
                    headers=self.headers,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status == 200:
                        # Reset backoff on successful request
                        self.consecutive_failures = 0
                        self.backoff_multiplier = 1.0
                        return await response.json()
                    elif response.status == 429:
                        # Rate limit hit - increase backoff
                        self.consecutive_failures += 1
                        self.backoff_multiplier = min(
                            self.max_backoff_multiplier, 2.0**self.consecutive_failures
                        )
                        logger.warning(
                            f"Rate limit hit, backing off to {self.backoff_multiplier:.1f}x delay"
                        )
                        return None
                    else:
                        error_text = await response.text()
                        logger.error(
                            f"OpenRouter API error: {response.status} - {error_text[:200]}"
                        )
                        return None

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error in OpenRouter API request: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Data parsing error in OpenRouter API response: {e}")
            return None

    async def generate_text(self, prompt: str, max_tokens: int = 2000) -> str:
        """Generate text using OpenRouter API.

        Args:
            prompt: Input prompt for text generation
            max_tokens: Maximum tokens to generate

        Returns:
            Generated text response

        Raises:
            ValueError: If the key is missing or no model produced text
        """
        if not self.api_key:
            raise ValueError("OpenRouter API key not configured")

        response = await self._make_request(prompt, max_tokens=max_tokens)

        if response and response.get("choices"):
            content = response["choices"][0].get("message", {}).get("content", "")
            if content:
                return content.strip()
            raise ValueError("Empty response from OpenRouter API")

        raise ValueError("Invalid response format from OpenRouter API")

    async def test_connection(self) -> bool:
        """Test the OpenRouter API connection.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            response = await self._make_request("Hello, world!", max_tokens=5)
            if response and "choices" in response:
                logger.info("OpenRouter API connection successful")
                return True

            logger.error("OpenRouter API connection failed - no valid response")
            return False

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error testing OpenRouter connection: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error testing OpenRouter connection: {e}")
            return False
