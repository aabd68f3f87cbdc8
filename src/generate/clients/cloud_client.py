# AI INSTRUCTION:
# Define a client for the HuggingFace inference API.
# One attempt() call issues exactly one HTTP request; retries live in the dispatcher.

import requests
from typing import Any, Optional

from ..config import BackendConfig
from ..types import BackendError, BackendUnavailable, ModelParams

_STATUS_ERRORS = {
    401: BackendError.UNAUTHORIZED,
    403: BackendError.UNAUTHORIZED,
    429: BackendError.RATE_LIMITED,
}


def _error_message(data: Any) -> str:
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return "Unknown error"


class CloudClient:
    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def attempt(self, prompt: str, params: Optional[ModelParams], cfg: BackendConfig) -> str:
        # params are accepted for interface parity; no token limit is sent to this tier
        headers = {"Authorization": f"Bearer {cfg.api_key}"}
        try:
            resp = self.session.post(
                cfg.endpoint,
                headers=headers,
                json={"inputs": prompt},
                timeout=cfg.timeout_s,
            )
        except requests.Timeout as e:
            raise BackendUnavailable(BackendError.TIMEOUT, str(e)) from e
        except requests.RequestException as e:
            raise BackendUnavailable(BackendError.UNREACHABLE, str(e)) from e
        except Exception as e:
            # e.g. a key that cannot be encoded into the header
            raise BackendUnavailable(BackendError.UNREACHABLE, f"{type(e).__name__}: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            kind = _STATUS_ERRORS.get(resp.status_code, BackendError.UNREACHABLE)
            raise BackendUnavailable(kind, f"HTTP {resp.status_code}: {_error_message(data)}")

        if isinstance(data, list) and data and isinstance(data[0], dict):
            text = data[0].get("generated_text")
            if isinstance(text, str) and text:
                return text
        raise BackendUnavailable(BackendError.MALFORMED_RESPONSE, _error_message(data))
