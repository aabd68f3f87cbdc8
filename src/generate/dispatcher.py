# AI INSTRUCTION:
# Provide a Dispatcher that turns a conversation into one completion string by
# trying backends in priority order: local -> on-device -> cloud.
# - tiers 1-2 are tried once each and fall through on any failure
# - only the cloud tier retries (bounded attempts, fixed backoff between them)
# - complete() never raises; total failure returns a sentinel string

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .clients.cloud_client import CloudClient
from .clients.local_client import LocalClient
from .clients.on_device_client import OnDeviceClient
from .config import BackendConfig, ConfigStore, DispatchConfig
from .prompts import build_prompt
from .types import (
    Backend,
    BackendUnavailable,
    DispatchResult,
    Failure,
    FailureReason,
    ModelParams,
    Success,
)

logger = logging.getLogger(__name__)

ERROR_MARKER = "[ERROR]"
NO_API_KEY_MESSAGE = f"{ERROR_MARKER} No Cloud API key. Set it in Settings."
ALL_FAILED_MESSAGE = (
    f"{ERROR_MARKER} All AI backends failed. Try enabling local GPT4All or add cloud API key."
)


def is_error(text: str) -> bool:
    return isinstance(text, str) and text.startswith(ERROR_MARKER)


def render(result: DispatchResult) -> str:
    """Map a DispatchResult to the text shown to the user."""
    if isinstance(result, Success):
        return result.text
    if result.reason is FailureReason.UNAUTHORIZED:
        return NO_API_KEY_MESSAGE
    return ALL_FAILED_MESSAGE


class Dispatcher:
    def __init__(
        self,
        config_store: ConfigStore,
        local: Optional[LocalClient] = None,
        on_device: Optional[OnDeviceClient] = None,
        cloud: Optional[CloudClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config_store = config_store
        self.local = local or LocalClient()
        self.on_device = on_device or OnDeviceClient()
        self.cloud = cloud or CloudClient()
        self.sleep = sleep

    def _fallback_chain(self, cfg: DispatchConfig) -> List[Tuple[Backend, Any, BackendConfig]]:
        """Eligible non-terminal tiers, in priority order."""
        chain = []
        if cfg.local.enabled:
            chain.append((Backend.LOCAL, self.local, cfg.local))
        if cfg.on_device.enabled and self.on_device.is_available():
            chain.append((Backend.ON_DEVICE, self.on_device, cfg.on_device))
        return chain

    def _call_cloud(self, prompt: str, params: Optional[ModelParams], cfg: DispatchConfig) -> DispatchResult:
        cloud_cfg = cfg.cloud
        if not cloud_cfg.enabled:
            return Failure(FailureReason.EXHAUSTED, "cloud backend disabled")
        if not (cloud_cfg.api_key or "").strip():
            logger.error("Cloud backend has no API key; not sending a request")
            return Failure(FailureReason.UNAUTHORIZED, "missing API key")

        retrying = Retrying(
            stop=stop_after_attempt(cfg.max_retries),
            wait=wait_fixed(cfg.backoff_ms / 1000.0),
            retry=retry_if_exception_type(Exception),
            sleep=self.sleep,
            after=_log_cloud_failure,
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    text = self.cloud.attempt(prompt, params, cloud_cfg)
                    logger.info("Cloud response received")
                    return Success(text, Backend.CLOUD)
        except BackendUnavailable as e:
            return Failure(FailureReason.EXHAUSTED, e.message)
        except Exception as e:
            return Failure(FailureReason.EXHAUSTED, f"{type(e).__name__}: {e}")
        return Failure(FailureReason.EXHAUSTED, "cloud attempts exhausted")

    def dispatch(self, conversation, params: Optional[ModelParams] = None) -> DispatchResult:
        cfg = self.config_store.snapshot()
        prompt = build_prompt(conversation)

        for backend, client, backend_cfg in self._fallback_chain(cfg):
            logger.info("Trying %s backend", backend.value)
            try:
                text = client.attempt(prompt, params, backend_cfg)
            except BackendUnavailable as e:
                logger.warning("%s backend failed (%s: %s), falling through", backend.value, e.kind.value, e.message)
                continue
            except Exception:
                logger.exception("%s backend raised unexpectedly, falling through", backend.value)
                continue
            logger.info("%s backend responded", backend.value)
            return Success(text, backend)

        logger.info("Using cloud backend")
        result = self._call_cloud(prompt, params, cfg)
        if isinstance(result, Failure):
            logger.error("All backends failed: %s (%s)", result.reason.value, result.last_error)
        return result

    def complete(self, conversation, params: Optional[ModelParams] = None) -> str:
        """Generated text, or a sentinel string starting with ERROR_MARKER."""
        return render(self.dispatch(conversation, params))

    async def acomplete(self, conversation, params: Optional[ModelParams] = None) -> str:
        return await run_in_threadpool(self.complete, conversation, params)


def _log_cloud_failure(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if exc is not None:
        logger.error("Cloud attempt %d failed: %s", retry_state.attempt_number, exc)
