from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class LLMClientPort(Protocol):
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
        ...
