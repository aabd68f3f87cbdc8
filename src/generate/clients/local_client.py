# AI INSTRUCTION:
# Define a client for the local GPT4All server (OpenAI-compatible /v1/completions).
# It must expose attempt(prompt, params, cfg) and never retry.

from typing import Callable, Optional

from openai import OpenAI

from ..config import BackendConfig
from ..types import BackendError, BackendUnavailable, ModelParams


def base_url_for(endpoint: str) -> str:
    """http://host:4891/v1/completions -> http://host:4891/v1"""
    url = endpoint.rstrip("/")
    if url.endswith("/completions"):
        url = url[: -len("/completions")]
    return url


class LocalClient:
    def __init__(self, client_factory: Callable[..., OpenAI] = OpenAI):
        self.client_factory = client_factory
    def attempt(self, prompt: str, params: Optional[ModelParams], cfg: BackendConfig) -> str:
        params = params or ModelParams()
        temperature = params.temperature if params.temperature is not None else cfg.temperature
        try:
            client = self.client_factory(
                base_url=base_url_for(cfg.endpoint),
                api_key="not-needed",
                timeout=cfg.timeout_s,
                max_retries=0,
            )
            resp = client.completions.create(
                model=cfg.model_id,
                prompt=prompt,
                max_tokens=params.max_tokens or cfg.max_tokens,
                temperature=0.7 if temperature is None else temperature,
            )
            choices = getattr(resp, "choices", None)
            text = getattr(choices[0], "text", None) if isinstance(choices, list) and choices else None
        except Exception as e:
            raise BackendUnavailable(BackendError.UNREACHABLE, str(e) or type(e).__name__) from e

        if not isinstance(text, str) or not text.strip():
            raise BackendUnavailable(BackendError.UNREACHABLE, "local response had no choices[0].text")
        return text.strip()
