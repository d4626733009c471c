"""
HTTP client for the chat-completion text generation endpoint.
Every failure mode collapses into a None result so pipelines can apply fallbacks uniformly.
"""

import httpx
import logging
import json
from typing import Any, Dict, Optional

from memory_processing.core.config import GenerationConfig

logger = logging.getLogger(__name__)


class GenerationClient:
    """Client for generating text from a prompt."""

    def __init__(self, generation_config: GenerationConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the generation client.

        Args:
            generation_config: Endpoint URL, credential, model and timeout
            transport: Optional httpx transport (used to stub the endpoint)
        """
        self.config = generation_config
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(generation_config.timeout),
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def generate(self, prompt: str, max_tokens: int, system_prompt: Optional[str] = None) -> Optional[str]:
        """
        Generate text for a prompt.

        Args:
            prompt: User prompt
            max_tokens: Completion token budget
            system_prompt: Optional system message

        Returns:
            Generated text (trimmed) if any was produced, None otherwise
        """
        if not self.is_configured:
            logger.warning("OPENAI_API_KEY not configured, skipping text generation")
            return None

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request_body = {
            "model": self.config.model,
            "messages": messages,
            "max_completion_tokens": max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

        logger.info(
            f"🔄 Generation request: model={self.config.model}, "
            f"prompt_length={len(prompt)}, max_tokens={max_tokens}"
        )

        try:
            response = await self.client.post(self.config.api_url, json=request_body, headers=headers)

            if response.status_code < 200 or response.status_code >= 300:
                logger.error(f"❌ Generation call failed: {response.status_code} - {response.text[:500]}")
                return None

            data = response.json()
            text = self._extract_text(data)

            if not text:
                choice = (data.get("choices") or [{}])[0] if isinstance(data, dict) else {}
                logger.warning(
                    f"Generation returned no text (finish_reason={choice.get('finish_reason')}, "
                    f"usage={data.get('usage') if isinstance(data, dict) else None})"
                )
                return None

            logger.info(f"✅ Generation succeeded: {len(text)} characters")
            return text

        except json.JSONDecodeError as e:
            logger.error(f"❌ Failed to parse generation response JSON: {e}")
            return None
        except httpx.TimeoutException:
            logger.error(f"❌ Generation call timed out after {self.config.timeout}s")
            return None
        except httpx.RequestError as e:
            logger.error(f"❌ Generation request error: {e}")
            return None
        except Exception as e:
            logger.error(f"❌ Unexpected error calling generation endpoint: {e}", exc_info=True)
            return None

    @staticmethod
    def _extract_text(data: Any) -> Optional[str]:
        """Pull choices[0].message.content out of a completion payload."""
        if not isinstance(data, dict):
            return None
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None
        message: Dict[str, Any] = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            return None
        return content.strip() or None

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
        logger.debug("Generation client closed")
