from __future__ import annotations

import os


# Central routing for LLM use-cases. Edit here to change per-operation defaults.
# You can also override per-route model via env vars for quick testing.
#
# Keys are use_case identifiers consumed by services/llm_client.py
ROUTES: dict[str, dict] = {
    # Stargazer profile extraction (OpenAI-compatible chat; default OpenRouter)
    "profile_extraction": {
        "provider": os.getenv("LLM_PROFILE_PROVIDER"),  # falls back to settings.ai_provider
        "model": os.getenv("LLM_MODEL_PROFILE"),  # falls back to global LLM_MODEL
        "temperature": 0,
        # Logical operation name for logging (not a vendor API name)
        "operation": "profile_extraction",
    },
}
