"""Generative outfit advice through the OpenRouter chat completions API."""
from __future__ import annotations

import logging
from typing import Optional

from .base import HttpProvider, ProviderError, RequestConfig
from ..entities import OutfitAdvice
from ..outfit import HEADLINE


SYSTEM_PROMPT = "You are a concise, friendly weather stylist. Answer with a single sentence."


class OpenRouterAdvisor(HttpProvider):
    base_url = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: Optional[str],
        base_url: Optional[str] = None,
        app_name: Optional[str] = None,
        app_url: Optional[str] = None,
        timeout: float = 15.0,
        **kwargs,
    ) -> None:
        kwargs.setdefault("request_config", RequestConfig(timeout=timeout))
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url or self.base_url
        self.app_name = app_name
        self.app_url = app_url
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.model)

    def advise(self, prompt: str) -> OutfitAdvice:
        if not self.configured:
            raise ProviderError("OpenRouter credentials are not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.app_url:
            headers["HTTP-Referer"] = self.app_url
        if self.app_name:
            headers["X-Title"] = self.app_name

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.7,
            "max_tokens": 128,
        }
        response = self._request("POST", self.base_url, headers=headers, json=payload)
        data = self._json(response)
        try:
            content = data["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError("Unexpected OpenRouter response structure") from exc
        if not content:
            raise ProviderError("OpenRouter returned an empty answer")
        return OutfitAdvice(headline=HEADLINE, text=content)


__all__ = ["OpenRouterAdvisor"]
