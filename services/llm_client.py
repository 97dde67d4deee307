from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from openai import OpenAI

from config.llm_routes import ROUTES
from config.settings import get_settings
from utils.llm_logger import log_call, sha256_text


class LLMClient:
    """Minimal wrapper to centralize per-use-case routing and logging.

    OpenRouter is reached through the OpenAI SDK by pointing it at the
    OpenRouter base URL.
    """

    def __init__(self) -> None:
        self.settings = get_settings()
        self._clients: Dict[str, OpenAI] = {}

    def _client_for(self, provider: str) -> OpenAI:
        if provider not in self._clients:
            if provider == "openrouter":
                self._clients[provider] = OpenAI(
                    api_key=self.settings.openrouter_api_key,
                    base_url=self.settings.openrouter_base_url,
                )
            elif provider == "openai":
                self._clients[provider] = OpenAI(api_key=self.settings.openai_api_key)
            else:
                raise NotImplementedError(f"Provider not implemented: {provider}")
        return self._clients[provider]

    def chat(
        self,
        *,
        use_case: str,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, Any]] = None,
        prompt_name: Optional[str] = None,
        prompt_text: Optional[str] = None,
        extras: Optional[Dict[str, Any]] = None,
    ) -> Any:
        route = ROUTES.get(use_case, {})
        provider = (route.get("provider") or self.settings.ai_provider or "openrouter").lower()
        model = route.get("model") or self.settings.llm_model
        op = route.get("operation", "chat")
        temp = temperature if temperature is not None else route.get("temperature")

        client = self._client_for(provider)
        kwargs: Dict[str, Any] = {"model": model, "messages": messages}
        # Only pass temperature if explicitly provided (some models only accept default)
        if temp is not None:
            kwargs["temperature"] = temp
        if response_format is not None:
            kwargs["response_format"] = response_format

        def _log(status: str, duration_ms: int, error: Optional[str] = None, usage: Optional[Dict[str, Any]] = None) -> None:
            log_call(
                caller=f"llm_client.chat:{use_case}",
                provider=provider,
                model=model,
                operation=op,
                prompt_name=prompt_name,
                prompt_hash=sha256_text(prompt_text),
                duration_ms=duration_ms,
                status=status,
                error=error,
                usage=usage,
                extras=extras,
            )

        t0 = time.time()
        try:
            resp = client.chat.completions.create(**kwargs)
        except Exception as e:
            _log("error", int((time.time() - t0) * 1000), error=str(e))
            raise
        dt_ms = int((time.time() - t0) * 1000)

        usage_obj = None
        usage = getattr(resp, "usage", None)
        if usage:
            usage_obj = {
                "prompt_tokens": getattr(usage, "prompt_tokens", None),
                "completion_tokens": getattr(usage, "completion_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            }
        _log("ok", dt_ms, usage=usage_obj)
        return resp
