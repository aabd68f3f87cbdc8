# AI INSTRUCTION:
# Hold backend configuration as immutable objects.
# The dispatcher reads one snapshot per call; updates swap the whole config.

from __future__ import annotations

import threading
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BackendConfig(BaseModel):
    """Connection and generation settings for one tier."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    endpoint: str = ""
    model_id: str = ""
    timeout_ms: int = Field(default=30000, gt=0)
    max_tokens: int = Field(default=300, gt=0)
    temperature: Optional[float] = None
    api_key: Optional[str] = None

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0


class DispatchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    local: BackendConfig = BackendConfig()
    on_device: BackendConfig = BackendConfig(enabled=False)
    cloud: BackendConfig = BackendConfig()
    max_retries: int = Field(default=2, ge=1)
    backoff_ms: int = Field(default=2000, ge=0)

    @classmethod
    def from_settings(cls, s) -> "DispatchConfig":
        return cls(
            local=BackendConfig(
                enabled=s.USE_LOCAL_FIRST,
                endpoint=s.LOCAL_SERVER_URL,
                model_id=s.LOCAL_MODEL,
                timeout_ms=s.TIMEOUT_MS,
                max_tokens=s.LOCAL_MAX_TOKENS,
                temperature=s.LOCAL_TEMPERATURE,
            ),
            on_device=BackendConfig(
                enabled=s.USE_ON_DEVICE_MODEL,
                model_id=s.ON_DEVICE_RUNTIME,
                timeout_ms=s.TIMEOUT_MS,
            ),
            cloud=BackendConfig(
                enabled=s.USE_CLOUD,
                endpoint=s.HF_API_URL,
                model_id=s.HF_MODEL_ID,
                timeout_ms=s.TIMEOUT_MS,
                api_key=s.HF_API_KEY or None,
            ),
            max_retries=s.MAX_RETRIES,
            backoff_ms=s.BACKOFF_MS,
        )


class ConfigStore:
    """Current DispatchConfig plus the settings-update operation."""

    def __init__(self, config: Optional[DispatchConfig] = None):
        self._config = config or DispatchConfig()
        self._lock = threading.Lock()

    def snapshot(self) -> DispatchConfig:
        with self._lock:
            return self._config

    def update(
        self,
        api_key: Optional[str] = None,
        prefer_local_first: Optional[bool] = None,
        use_on_device_model: Optional[bool] = None,
        max_retries: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        backoff_ms: Optional[int] = None,
    ) -> DispatchConfig:
        """Validate and install a new config. Raises pydantic.ValidationError on bad values."""
        with self._lock:
            data = self._config.model_dump()
            if api_key is not None:
                data["cloud"]["api_key"] = api_key.strip() or None
            if prefer_local_first is not None:
                data["local"]["enabled"] = prefer_local_first
            if use_on_device_model is not None:
                data["on_device"]["enabled"] = use_on_device_model
            if timeout_ms is not None:
                for tier in ("local", "on_device", "cloud"):
                    data[tier]["timeout_ms"] = timeout_ms
            if max_retries is not None:
                data["max_retries"] = max_retries
            if backoff_ms is not None:
                data["backoff_ms"] = backoff_ms
            self._config = DispatchConfig.model_validate(data)
            return self._config
