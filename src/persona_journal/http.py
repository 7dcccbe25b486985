"""Shared JSON-over-HTTP call used by the httpx-based provider adapters."""

import logging
from typing import Any, Dict, Optional

import httpx

from persona_journal.exceptions import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


async def post_json(
    provider: str,
    url: str,
    api_key: str,
    payload: Dict[str, Any],
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """
    POST a JSON payload with bearer auth and return the decoded JSON body.

    Args:
        provider: Provider name, used in errors
        url: Endpoint URL
        api_key: Bearer token
        payload: JSON request body
        client: Optional shared client; a short-lived one is created otherwise
        timeout: Request timeout in seconds

    Raises:
        ProviderError: On transport errors, non-2xx status, or a non-JSON body
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    try:
        if client is not None:
            response = await client.post(url, json=payload, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                response = await owned_client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        raise ProviderError(provider, f"request failed: {e}") from e

    if response.status_code >= 400:
        raise ProviderError(
            provider, f"API returned {response.status_code}: {response.text[:200]}"
        )

    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(provider, f"invalid JSON response: {e}") from e
