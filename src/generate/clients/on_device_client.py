# AI INSTRUCTION:
# Define a client for an optional in-process (on-device) model runtime.
# The runtime is capability-gated: no runtime, or runtime.available() false,
# means the tier is skipped. Each attempt uses a fresh single-use session.

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional, Protocol

from ..config import BackendConfig
from ..types import BackendError, BackendUnavailable, ModelParams


class Session(Protocol):
    def prompt(self, text: str) -> str:
        ...


class OnDeviceRuntime(Protocol):
    def available(self) -> bool:
        ...

    def create_session(self) -> Session:
        ...


class OnDeviceClient:
    def __init__(self, runtime: Optional[OnDeviceRuntime] = None):
        self.runtime = runtime

    def is_available(self) -> bool:
        if self.runtime is None:
            return False
        try:
            return bool(self.runtime.available())
        except Exception:
            return False

    def _run(self, prompt: str) -> str:
        session = self.runtime.create_session()
        return session.prompt(prompt)

    def attempt(self, prompt: str, params: Optional[ModelParams], cfg: BackendConfig) -> str:
        if not self.is_available():
            raise BackendUnavailable(BackendError.UNREACHABLE, "on-device runtime not present")
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="on-device")
        future = pool.submit(self._run, prompt)
        try:
            result = future.result(timeout=cfg.timeout_s)
        except FutureTimeout as e:
            # the session keeps running; its result is dropped
            raise BackendUnavailable(BackendError.UNREACHABLE, "on-device prompt timed out") from e
        except Exception as e:
            raise BackendUnavailable(BackendError.UNREACHABLE, str(e)) from e
        finally:
            pool.shutdown(wait=False)
        if not isinstance(result, str) or not result:
            raise BackendUnavailable(BackendError.UNREACHABLE, "on-device session returned no text")
        return result
