# ===============================================
# tests/test_dispatcher.py
# Tier ordering, fall-through and cloud retry policy.
# ===============================================

import asyncio

from conftest import FakeResponse, FakeSession, FakeTier

from src.generate.clients.cloud_client import CloudClient
from src.generate.dispatcher import ALL_FAILED_MESSAGE, NO_API_KEY_MESSAGE, is_error
from src.generate.types import Backend, BackendError, Failure, FailureReason, Message, Success

HELLO = [Message(role="user", content="Hello")]


def test_local_success_short_circuits(build_dispatcher):
    on_device = FakeTier("device text")
    cloud = FakeTier("cloud text")
    d = build_dispatcher(local=FakeTier("local text"), on_device=on_device, cloud=cloud, on_device_enabled=True)
    assert d.complete(HELLO) == "local text"
    assert on_device.calls == []
    assert cloud.calls == []


def test_local_disabled_is_never_called(build_dispatcher):
    local = FakeTier("local text")
    d = build_dispatcher(local=local, cloud=FakeTier("cloud text"), local_enabled=False)
    assert d.complete(HELLO) == "cloud text"
    assert local.calls == []


def test_local_failure_falls_through_without_retry(build_dispatcher, sleeper):
    local = FakeTier(BackendError.UNREACHABLE)
    cloud = FakeTier("cloud text")
    d = build_dispatcher(local=local, cloud=cloud)
    result = d.dispatch(HELLO)
    assert result == Success("cloud text", Backend.CLOUD)
    assert len(local.calls) == 1
    assert sleeper.delays == []


def test_on_device_used_when_enabled_and_available(build_dispatcher):
    cloud = FakeTier("cloud text")
    d = build_dispatcher(on_device=FakeTier("device text"), cloud=cloud, on_device_enabled=True)
    assert d.dispatch(HELLO) == Success("device text", Backend.ON_DEVICE)
    assert cloud.calls == []


def test_on_device_skipped_when_capability_absent(build_dispatcher):
    on_device = FakeTier("device text", available=False)
    d = build_dispatcher(on_device=on_device, cloud=FakeTier("cloud text"), on_device_enabled=True)
    assert d.complete(HELLO) == "cloud text"
    assert on_device.calls == []


def test_on_device_skipped_when_flag_off(build_dispatcher):
    on_device = FakeTier("device text")
    d = build_dispatcher(on_device=on_device, cloud=FakeTier("cloud text"))
    assert d.complete(HELLO) == "cloud text"
    assert on_device.calls == []


def test_missing_api_key_sends_no_cloud_request(build_dispatcher, sleeper):
    cloud = FakeTier("cloud text")
    d = build_dispatcher(cloud=cloud, api_key=None)
    text = d.complete(HELLO)
    assert text == NO_API_KEY_MESSAGE
    assert is_error(text)
    assert cloud.calls == []
    assert sleeper.delays == []


def test_blank_api_key_is_treated_as_missing(build_dispatcher):
    cloud = FakeTier("cloud text")
    d = build_dispatcher(cloud=cloud, api_key="   ")
    assert d.dispatch(HELLO) == Failure(FailureReason.UNAUTHORIZED, "missing API key")
    assert cloud.calls == []


def test_cloud_succeeds_on_nth_attempt(build_dispatcher, sleeper):
    cloud = FakeTier(BackendError.UNREACHABLE, BackendError.TIMEOUT, "third time")
    d = build_dispatcher(cloud=cloud, max_retries=4, backoff_ms=500)
    assert d.complete(HELLO) == "third time"
    assert len(cloud.calls) == 3
    assert sleeper.delays == [0.5, 0.5]


def test_cloud_exhausts_all_attempts(build_dispatcher, sleeper):
    cloud = FakeTier(BackendError.RATE_LIMITED)
    d = build_dispatcher(cloud=cloud, max_retries=3, backoff_ms=2000)
    result = d.dispatch(HELLO)
    assert isinstance(result, Failure)
    assert result.reason is FailureReason.EXHAUSTED
    assert result.last_error == "scripted rate_limited"
    assert len(cloud.calls) == 3
    # one wait between each pair of attempts, none after the last
    assert sleeper.delays == [2.0, 2.0]
    assert d.complete(HELLO) == ALL_FAILED_MESSAGE


def test_single_attempt_never_sleeps(build_dispatcher, sleeper):
    cloud = FakeTier(BackendError.UNREACHABLE)
    d = build_dispatcher(cloud=cloud, max_retries=1)
    assert is_error(d.complete(HELLO))
    assert len(cloud.calls) == 1
    assert sleeper.delays == []


def test_round_trip_503_then_success(build_dispatcher, sleeper):
    session = FakeSession(
        FakeResponse(503, {"error": "Model is currently loading"}),
        FakeResponse(200, [{"generated_text": "Hi there"}]),
    )
    d = build_dispatcher(cloud=CloudClient(session=session), local_enabled=False, api_key="abc")
    assert d.complete([{"role": "user", "content": "Hello"}]) == "Hi there"
    assert len(session.calls) == 2
    assert sleeper.delays == [2.0]
    url, kwargs = session.calls[0]
    assert kwargs["headers"]["Authorization"] == "Bearer abc"
    assert kwargs["json"] == {"inputs": "Hello"}


def test_prompt_is_flattened_once_for_every_tier(build_dispatcher):
    local = FakeTier(BackendError.UNREACHABLE)
    cloud = FakeTier("ok")
    d = build_dispatcher(local=local, cloud=cloud)
    convo = [Message("system", "Be brief"), Message("user", "Hi")]
    d.complete(convo)
    assert local.calls[0][0] == "Be brief\nHi"
    assert cloud.calls[0][0] == "Be brief\nHi"


def test_conversation_is_not_mutated(build_dispatcher):
    convo = [{"role": "user", "content": "Hello"}, {"role": "assistant"}]
    before = [dict(m) for m in convo]
    build_dispatcher(cloud=FakeTier("ok")).complete(convo)
    assert convo == before


def test_settings_update_applies_to_next_dispatch(build_dispatcher):
    cloud = FakeTier("cloud text")
    d = build_dispatcher(cloud=cloud, api_key=None)
    assert d.complete(HELLO) == NO_API_KEY_MESSAGE
    d.config_store.update(api_key="new-key")
    assert d.complete(HELLO) == "cloud text"
    assert cloud.calls[0][2].api_key == "new-key"


def test_acomplete_resolves_to_text(build_dispatcher):
    d = build_dispatcher(local=FakeTier("local text"))
    assert asyncio.run(d.acomplete(HELLO)) == "local text"


def test_unexpected_error_in_fallback_tier_falls_through(build_dispatcher):
    local = FakeTier(RuntimeError("driver crashed"))
    on_device = FakeTier(ValueError("bad session"))
    d = build_dispatcher(local=local, on_device=on_device, cloud=FakeTier("cloud text"), on_device_enabled=True)
    assert d.dispatch(HELLO) == Success("cloud text", Backend.CLOUD)
    assert len(local.calls) == 1
    assert len(on_device.calls) == 1


def test_unexpected_cloud_error_counts_as_failed_attempt(build_dispatcher, sleeper):
    cloud = FakeTier(RuntimeError("boom"), "recovered")
    d = build_dispatcher(cloud=cloud, local_enabled=False)
    assert d.complete(HELLO) == "recovered"
    assert len(cloud.calls) == 2
    assert sleeper.delays == [2.0]


def test_unexpected_cloud_error_on_every_attempt_returns_sentinel(build_dispatcher, sleeper):
    cloud = FakeTier(RuntimeError("boom"))
    d = build_dispatcher(cloud=cloud, local_enabled=False)
    result = d.dispatch(HELLO)
    assert result == Failure(FailureReason.EXHAUSTED, "RuntimeError: boom")
    assert d.complete(HELLO) == ALL_FAILED_MESSAGE
    assert len(cloud.calls) == 4


class Latin1HeaderSession:
    """Encodes headers the way http.client does before anything is sent."""

    def __init__(self):
        self.calls = 0

    def post(self, url, headers=None, **kwargs):
        self.calls += 1
        for value in (headers or {}).values():
            value.encode("latin-1")
        return FakeResponse(200, [{"generated_text": "unreachable"}])


def test_api_key_that_cannot_be_sent_returns_sentinel(build_dispatcher, sleeper):
    session = Latin1HeaderSession()
    d = build_dispatcher(cloud=CloudClient(session=session), local_enabled=False)
    d.config_store.update(api_key="ключ")
    assert is_error(d.complete([{"role": "user", "content": "Hello"}]))
    assert session.calls == 2
    assert sleeper.delays == [2.0]
