# ===============================================
# tests/conftest.py
# Shared fakes: no test touches the network.
# ===============================================

import pytest

from src.generate.config import BackendConfig, ConfigStore, DispatchConfig
from src.generate.dispatcher import Dispatcher
from src.generate.types import BackendError, BackendUnavailable


class FakeTier:
    """Scripted backend: each item is a str (success), a BackendError, or an exception to raise."""

    def __init__(self, *outcomes, available=True):
        self.outcomes = list(outcomes)
        self.calls = []
        self.available = available

    def is_available(self):
        return self.available

    def attempt(self, prompt, params, cfg):
        self.calls.append((prompt, params, cfg))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BackendError):
            raise BackendUnavailable(outcome, f"scripted {outcome.value}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, raw=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self._raw = raw

    def json(self):
        if self._raw is not None:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; items are FakeResponse or exceptions to raise."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_config(local_enabled=True, on_device_enabled=False, api_key="abc", max_retries=2, backoff_ms=2000):
    return DispatchConfig(
        local=BackendConfig(enabled=local_enabled, endpoint="http://localhost:4891/v1/completions",
                            model_id="llama-3-8b-instruct", temperature=0.7),
        on_device=BackendConfig(enabled=on_device_enabled),
        cloud=BackendConfig(endpoint="https://hf.example/models/qwen", model_id="qwen", api_key=api_key),
        max_retries=max_retries,
        backoff_ms=backoff_ms,
    )


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def build_dispatcher(sleeper):
    def _build(local=None, on_device=None, cloud=None, **cfg_kwargs):
        store = ConfigStore(make_config(**cfg_kwargs))
        return Dispatcher(
            store,
            local=local or FakeTier(BackendError.UNREACHABLE),
            on_device=on_device or FakeTier(BackendError.UNREACHABLE, available=False),
            cloud=cloud or FakeTier(BackendError.UNREACHABLE),
            sleep=sleeper,
        )
    return _build
