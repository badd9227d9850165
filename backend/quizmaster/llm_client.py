from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional
from .errors import TransportError
from .settings import settings

logger = logging.getLogger(__name__)


class OpenRouterClient:
	"""Thin async transport to the OpenRouter chat-completions endpoint."""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.openrouter_api_key
		self.base_url = base_url or settings.openrouter_base_url
		self.model = model or settings.openrouter_model
		self._headers = {
			"Authorization": f"Bearer {self.api_key}",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		self._client = httpx.AsyncClient(
			timeout=timeout if timeout is not None else settings.llm_timeout_seconds,
			transport=transport,
		)

	def resolve_model(self, model: Optional[str]) -> str:
		if model is not None and model.strip():
			return model
		return self.model

	async def complete(self, messages: List[Dict[str, str]], model: Optional[str] = None) -> str:
		"""Send ``messages`` and return the assistant text.

		Failures of the call or its response raise TransportError.
		The call is made once; no retry.
		"""
		if not self.api_key:
			raise TransportError("OPENROUTER_API_KEY is not configured")
		use_model = self.resolve_model(model)
		payload: Dict[str, Any] = {
			"model": use_model,
			"messages": messages,
			"temperature": settings.llm_temperature,
			"max_tokens": settings.llm_max_tokens,
		}
		try:
			r = await self._client.post(self.base_url, headers=self._headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			logger.warning("OpenRouter returned %s for model %s", http_err.response.status_code, use_model)
			raise TransportError(f"Failed to call OpenRouter API: HTTP {http_err.response.status_code}") from http_err
		except httpx.RequestError as net_err:
			logger.warning("OpenRouter request failed for model %s: %s", use_model, net_err)
			raise TransportError(f"Failed to call OpenRouter API: {net_err}") from net_err
		try:
			data = r.json()
			content = data["choices"][0]["message"]["content"]
		except (ValueError, KeyError, IndexError, TypeError) as shape_err:
			raise TransportError(f"Unexpected OpenRouter response: {r.text[:200]}") from shape_err
		if not isinstance(content, str):
			raise TransportError("Unexpected OpenRouter response: missing message content")
		return content

	async def aclose(self) -> None:
		await self._client.aclose()


async def get_llm_client():
	client = OpenRouterClient()
	try:
		yield client
	finally:
		await client.aclose()
