"""
LLM Client
==========

Calls an OpenAI-compatible chat completions endpoint and extracts the
first JSON object from the reply.
"""

import json
import re
from typing import Any, Dict, Optional

import httpx

from staffhub.core.config import settings
from staffhub.core.exceptions import ExternalServiceError
from staffhub.core.logging import get_logger
from staffhub.services.http_client import post_json

logger = get_logger(__name__)

JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_json_block(text: str) -> Optional[Dict[str, Any]]:
    """
    Return the first {...} block of the text parsed as JSON, or None.

    The match is greedy from the first "{" to the last "}", which tolerates
    prose or code fences around the object.
    """
    if not text:
        return None
    match = JSON_BLOCK.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class LLMClient:
    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.LLM_API_URL
        self.api_key = settings.LLM_API_KEY if api_key is None else api_key
        self.model = model or settings.LLM_MODEL
        self.transport = transport

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> str:
        """
        Return the assistant message content.

        Raises:
            ExternalServiceError: on transport failure or an empty reply
        """
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        data = await post_json(
            "llm",
            self.api_url,
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            headers=headers,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            transport=self.transport,
        )

        choices = data.get("choices") or []
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not content:
            raise ExternalServiceError("llm", "Empty response from language model")
        return content
