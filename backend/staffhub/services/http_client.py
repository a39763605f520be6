"""
Outbound HTTP helper shared by the LLM and email integrations.

Adds retry logic, timeout handling, and structured logging around a single
JSON POST.
"""

from typing import Any, Dict, Optional

import httpx
from httpx import HTTPError, TimeoutException

from staffhub.core.exceptions import ExternalServiceError
from staffhub.core.logging import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3
REQUEST_TIMEOUT = 10.0


def _decode(service: str, response: httpx.Response) -> Dict[str, Any]:
    """JSON object body of a successful reply; an empty body decodes to {}."""
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError as e:
        logger.error(
            "Outbound response is not JSON",
            extra={"service": service, "status_code": response.status_code}
        )
        raise ExternalServiceError(service, f"{service} returned a non-JSON response") from e
    if not isinstance(data, dict):
        logger.error(
            "Outbound response is not a JSON object",
            extra={"service": service, "type": type(data).__name__}
        )
        raise ExternalServiceError(service, f"{service} returned an unexpected response")
    return data


async def post_json(
    service: str,
    url: str,
    payload: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
    timeout: float = REQUEST_TIMEOUT,
    max_retries: int = MAX_RETRIES,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    POST a JSON payload and return the decoded JSON response.

    Raises:
        ExternalServiceError: when every attempt failed, or the reply body
            is not a JSON object
    """
    attempt = 0
    last_error = "no attempt made"

    while attempt < max_retries:
        attempt += 1
        try:
            logger.info(
                "Outbound request attempt",
                extra={"service": service, "attempt": attempt, "endpoint": url}
            )

            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                response = await client.post(url, json=payload, headers=headers or {})
                response.raise_for_status()

            logger.info(
                "Outbound request successful",
                extra={"service": service, "attempt": attempt}
            )
            return _decode(service, response)

        except TimeoutException:
            last_error = "timeout"
            logger.warning(
                "Outbound request timeout",
                extra={"service": service, "attempt": attempt}
            )

        except HTTPError as e:
            last_error = str(e)
            logger.error(
                "Outbound request HTTP error",
                extra={"service": service, "attempt": attempt, "error": last_error}
            )

    logger.critical(
        "Outbound request failed after retries",
        extra={"service": service, "attempts": attempt}
    )
    raise ExternalServiceError(service, f"{service} unavailable after {attempt} attempt(s): {last_error}")
