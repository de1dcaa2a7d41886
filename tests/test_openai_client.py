import asyncio
from types import SimpleNamespace

import openai
import pytest

from sqlgate.errors import UpstreamMalformed, UpstreamRejected, UpstreamTimeout, UpstreamUnavailable
from sqlgate.llm.openai_client import ModelClient, OpenAIConfig

PAYLOAD = [{"role": "system", "content": "rules"}, {"role": "user", "content": "how many users?"}]


class FakeResponses:
    def __init__(self, result=None, exc=None, delay=0.0):
        self.result = result
        self.exc = exc
        self.delay = delay
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.result


def make_client(responses, timeout=1.0):
    cfg = OpenAIConfig(api_key="sk-test", model="test-model", timeout=timeout, max_output_tokens=64)
    return ModelClient(cfg, client=SimpleNamespace(responses=responses))


def sdk_error(cls, **attrs):
    # SDK constructors need transport objects; only the type and attributes matter here.
    err = cls.__new__(cls)
    for k, v in attrs.items():
        setattr(err, k, v)
    return err


@pytest.mark.asyncio
async def test_returns_output_text():
    responses = FakeResponses(result=SimpleNamespace(output_text='{"needsQuery": false, "response": "hi"}'))
    text = await make_client(responses).complete(PAYLOAD)
    assert text == '{"needsQuery": false, "response": "hi"}'
    call = responses.calls[0]
    assert call["model"] == "test-model"
    assert call["input"] == PAYLOAD
    assert call["max_output_tokens"] == 64


@pytest.mark.asyncio
async def test_slow_upstream_times_out():
    responses = FakeResponses(result=SimpleNamespace(output_text="late"), delay=1.0)
    with pytest.raises(UpstreamTimeout) as exc_info:
        await make_client(responses, timeout=0.05).complete(PAYLOAD)
    assert exc_info.value.status_code == 504
    assert isinstance(exc_info.value, UpstreamUnavailable)


@pytest.mark.asyncio
async def test_sdk_timeout():
    responses = FakeResponses(exc=sdk_error(openai.APITimeoutError))
    with pytest.raises(UpstreamTimeout):
        await make_client(responses).complete(PAYLOAD)


@pytest.mark.asyncio
async def test_connection_error():
    responses = FakeResponses(exc=sdk_error(openai.APIConnectionError))
    with pytest.raises(UpstreamUnavailable) as exc_info:
        await make_client(responses).complete(PAYLOAD)
    assert not isinstance(exc_info.value, UpstreamTimeout)
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
@pytest.mark.parametrize("cls,status", [(openai.AuthenticationError, 401), (openai.RateLimitError, 429)])
async def test_rejected(cls, status):
    responses = FakeResponses(exc=sdk_error(cls, status_code=status))
    with pytest.raises(UpstreamRejected) as exc_info:
        await make_client(responses).complete(PAYLOAD)
    assert exc_info.value.status == status
    assert "sk-test" not in exc_info.value.client_message()


@pytest.mark.asyncio
@pytest.mark.parametrize("result", [SimpleNamespace(output_text=""), SimpleNamespace(output_text="  "), SimpleNamespace()])
async def test_malformed(result):
    with pytest.raises(UpstreamMalformed):
        await make_client(FakeResponses(result=result)).complete(PAYLOAD)


@pytest.mark.asyncio
@pytest.mark.parametrize("cls", [openai.APIResponseValidationError, openai.APIError])
async def test_unreadable_sdk_response_is_malformed(cls):
    responses = FakeResponses(exc=sdk_error(cls))
    with pytest.raises(UpstreamMalformed) as exc_info:
        await make_client(responses).complete(PAYLOAD)
    assert exc_info.value.status_code == 502


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        ModelClient()
