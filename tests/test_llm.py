"""Tests for solo_trpg.llm — HttpLLM and EchoLLM."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from solo_trpg.llm import EchoLLM, HttpLLM, LLMError, TransientLLMError


# ---------------------------------------------------------------------------
# EchoLLM
# ---------------------------------------------------------------------------

class TestEchoLLM:
    async def test_returns_prompt_unchanged(self) -> None:
        llm = EchoLLM()
        assert await llm("turn", "You enter the hall.") == "You enter the hall."

    async def test_stage_name_ignored(self) -> None:
        llm = EchoLLM()
        assert await llm("scenario", "x") == await llm("turn", "x")


# ---------------------------------------------------------------------------
# HttpLLM — KoboldCpp format
# ---------------------------------------------------------------------------

def _mock_response(body: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


class TestHttpLLMKoboldCpp:
    @pytest.fixture
    def llm(self) -> HttpLLM:
        return HttpLLM(provider_url="http://localhost:5001", api_key="", backoff=0)

    async def test_happy_path(self, llm: HttpLLM) -> None:
        body = {"results": [{"text": '{"playerFacingText": "Fog rolls in."}'}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("turn", "Describe the hall.")
        assert result == '{"playerFacingText": "Fog rolls in."}'

    async def test_posts_to_correct_url(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "prompt")
        assert mock_post.call_args[0][0] == "http://localhost:5001/api/v1/generate"

    async def test_sends_prompt_and_length_in_body(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:5001", max_tokens=512)
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "my prompt")
        assert mock_post.call_args.kwargs["json"] == {"prompt": "my prompt", "max_length": 512}

    async def test_bearer_token_sent_when_api_key_set(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:5001", api_key="secret")
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "prompt")
        assert mock_post.call_args.kwargs["headers"].get("Authorization") == "Bearer secret"

    async def test_no_auth_header_when_no_api_key(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "prompt")
        assert "Authorization" not in mock_post.call_args.kwargs["headers"]

    async def test_trailing_slash_stripped_from_url(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:5001/")
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "prompt")
        assert mock_post.call_args[0][0] == "http://localhost:5001/api/v1/generate"

    async def test_malformed_response_raises_llm_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"unexpected": "format"}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Unexpected response format"):
                await llm("turn", "prompt")

    async def test_non_json_body_raises_llm_error(self, llm: HttpLLM) -> None:
        resp = _mock_response({})
        resp.json.side_effect = ValueError("Expecting value")
        mock_post = AsyncMock(return_value=resp)
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Invalid JSON body"):
                await llm("turn", "prompt")
        assert mock_post.await_count == 1

    async def test_non_object_body_raises_llm_error(self, llm: HttpLLM) -> None:
        resp = _mock_response({})
        resp.json.return_value = [{"text": "a list, not an object"}]
        mock_post = AsyncMock(return_value=resp)
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="expected an object"):
                await llm("turn", "prompt")

    async def test_non_dict_result_entry_raises_llm_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"results": ["just text"]}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Unexpected response format"):
                await llm("turn", "prompt")


# ---------------------------------------------------------------------------
# HttpLLM — transport failures and retries
# ---------------------------------------------------------------------------

class TestHttpLLMRetries:
    @pytest.fixture
    def llm(self) -> HttpLLM:
        return HttpLLM(provider_url="http://localhost:5001", max_retries=2, backoff=0)

    async def test_connect_error_retried_then_raised(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(TransientLLMError, match="Cannot connect"):
                await llm("turn", "prompt")
        assert mock_post.await_count == 3

    async def test_timeout_raises_llm_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.TimeoutException("timeout"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="timed out"):
                await llm("turn", "prompt")

    async def test_server_error_recovers_on_retry(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(side_effect=[
            _mock_response({}, status=503),
            _mock_response({"results": [{"text": "second time lucky"}]}),
        ])
        with patch("httpx.AsyncClient.post", mock_post):
            assert await llm("turn", "prompt") == "second time lucky"
        assert mock_post.await_count == 2

    async def test_server_error_reports_status(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=503))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="HTTP 503"):
                await llm("turn", "prompt")

    async def test_client_error_not_retried(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=401))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="HTTP 401") as exc_info:
                await llm("turn", "prompt")
        assert not isinstance(exc_info.value, TransientLLMError)
        assert mock_post.await_count == 1

    async def test_no_retries_configured(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:5001", max_retries=0, backoff=0)
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError):
                await llm("turn", "prompt")
        assert mock_post.await_count == 1


# ---------------------------------------------------------------------------
# HttpLLM — OpenAI format
# ---------------------------------------------------------------------------

class TestHttpLLMOpenAI:
    @pytest.fixture
    def llm(self) -> HttpLLM:
        return HttpLLM(
            provider_url="http://localhost:8080",
            provider_format="openai",
            model="mistral-7b",
        )

    async def test_posts_to_correct_url(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"choices": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "prompt")
        assert mock_post.call_args[0][0] == "http://localhost:8080/v1/completions"

    async def test_sends_model_in_body(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"choices": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("turn", "prompt")
        sent_body = mock_post.call_args.kwargs["json"]
        assert sent_body["model"] == "mistral-7b"
        assert sent_body["max_tokens"] == 2000

    async def test_happy_path(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"choices": [{"text": "A stormy night."}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            assert await llm("scenario", "prompt") == "A stormy night."

    async def test_malformed_response_raises_llm_error(self, llm: HttpLLM) -> None:
        body = {"results": [{"text": "kobold format accidentally"}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Unexpected response format"):
                await llm("turn", "prompt")
