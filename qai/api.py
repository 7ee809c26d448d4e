"""OpenAI-compatible chat completions client.

Uses httpx with a fixed timeout. Two calls matter to the CLI:
- query(): POST /chat/completions, returns the first choice's text
- validate_api_key(): GET /models, which authenticates without using tokens
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .config import QaiSettings
from .errors import (
    AccessDenied,
    ApiError,
    ApiKeyNotConfigured,
    InvalidApiKey,
    NetworkError,
    UnexpectedResponse,
)

logger = logging.getLogger(__name__)

# Request parameters for command generation
TEMPERATURE = 0.0
MAX_TOKENS = 500

VALIDATION_TIMEOUT = 10.0


class OpenAIClient:
    """Minimal client for /chat/completions and /models.

    Args:
        api_key: Bearer token (None for endpoints without auth)
        api_base: Base URL, e.g. https://api.openai.com/v1
        model: Model identifier sent with every request
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_base: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_config(
        cls,
        config: QaiSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "OpenAIClient":
        """Create a client from settings.

        Raises:
            ApiKeyNotConfigured: If there is no key and allow_no_api_key is off
        """
        api_key = config.get_api_key()
        if api_key is None and not config.allow_no_api_key:
            raise ApiKeyNotConfigured(
                "No API key found. Set QAI_API_KEY environment variable "
                "or add api_key to ~/.config/qai/qai.yml"
            )
        return cls(
            api_key=api_key,
            api_base=config.api_base,
            model=config.model,
            timeout=config.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OpenAIClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def query(self, system_prompt: str, user_query: str) -> str:
        """Ask the model for a single shell command.

        Raises:
            ApiError: On transport errors, non-2xx responses or empty replies
        """
        return self._complete(system_prompt, user_query)

    def query_multi(self, system_prompt: str, user_query: str, count: int) -> str:
        """Ask the model for up to `count` commands.

        The count is carried by the system prompt (see render_prompt); the
        raw reply is returned for DualCommandList.parse().
        """
        logger.debug(f"Requesting up to {count} commands")
        return self._complete(system_prompt, user_query)

    def _complete(self, system_prompt: str, user_query: str) -> str:
        url = f"{self.api_base}/chat/completions"
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_query},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

        logger.debug(f"Sending request to: {url}")
        logger.debug(f"Model: {self.model}")
        logger.debug(f"User query: {user_query}")

        try:
            response = self._client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ApiError(f"Failed to send request to OpenAI API: {e}") from e

        logger.debug(f"Response status: {response.status_code}")
        logger.debug(f"Response body: {response.text}")

        if not response.is_success:
            raise ApiError(_format_api_error(response))

        try:
            data = response.json()
            choices = data["choices"]
        except (ValueError, KeyError, TypeError) as e:
            raise ApiError(f"Failed to parse OpenAI response: {e}") from e

        if not choices:
            raise ApiError("No response from OpenAI")

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError) as e:
            raise ApiError(f"Failed to parse OpenAI response: {e}") from e

        return (content or "").strip()

    def validate_api_key(self) -> None:
        """Validate the key by listing models (no token usage).

        Raises:
            InvalidApiKey: 401
            AccessDenied: 403
            UnexpectedResponse: Any other non-200 status
            NetworkError: Transport failure
        """
        url = f"{self.api_base}/models"
        try:
            response = self._client.get(url, headers=self._headers(), timeout=VALIDATION_TIMEOUT)
        except httpx.HTTPError as e:
            raise NetworkError(str(e)) from e

        status = response.status_code
        if status == 200:
            return
        if status == 401:
            raise InvalidApiKey()
        if status == 403:
            raise AccessDenied()
        raise UnexpectedResponse(f"Unexpected response: {status}")


def _format_api_error(response: httpx.Response) -> str:
    """Build an error message, preferring the API's own error text."""
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"OpenAI API error ({response.status_code}): {response.text}"
    return f"OpenAI API error: {message}"


def validate_api_key_from_config(
    config: QaiSettings,
    transport: Optional[httpx.BaseTransport] = None,
) -> None:
    """Validate the configured API key.

    Raises:
        ApiKeyNotConfigured: If no key is configured
        ApiValidationError: As raised by OpenAIClient.validate_api_key()
    """
    if config.get_api_key() is None:
        raise ApiKeyNotConfigured()

    with OpenAIClient.from_config(config, transport=transport) as client:
        client.validate_api_key()
