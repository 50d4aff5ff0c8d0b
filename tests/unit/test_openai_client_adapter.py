import base64
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from labintake.extraction.exceptions import ExtractionNetworkError
from labintake.extraction.models import ExtractionRequest, ImageBlock, TextBlock
from labintake.extraction.openai_client_adapter import OpenAIClientAdapter, build_user_content

_REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _chunk(content: str | None) -> MagicMock:
    chunk = MagicMock()
    chunk.choices = [MagicMock()]
    chunk.choices[0].delta.content = content
    return chunk


class _ChunkStream:
    """Stands in for the SDK's ``AsyncStream``: async-iterable and closable."""

    def __init__(self, chunks: AsyncIterator[MagicMock]) -> None:
        self._chunks = chunks
        self.closed = False

    async def __aenter__(self) -> "_ChunkStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    def __aiter__(self) -> AsyncIterator[MagicMock]:
        return self._chunks


async def _chunks(*contents: str | None) -> AsyncIterator[MagicMock]:
    for content in contents:
        yield _chunk(content)


def _stream(*contents: str | None) -> _ChunkStream:
    return _ChunkStream(_chunks(*contents))


def _make_adapter(create: AsyncMock) -> tuple[OpenAIClientAdapter, MagicMock]:
    mock_client = MagicMock()
    mock_client.chat.completions.create = create
    with patch(
        "labintake.extraction.openai_client_adapter.openai.AsyncOpenAI",
        return_value=mock_client,
    ) as mock_cls:
        adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
    return adapter, mock_cls


async def _collect(adapter: OpenAIClientAdapter) -> list[str]:
    request = ExtractionRequest(content=[TextBlock("hello")], file_names=["a.txt"])
    return [
        chunk
        async for chunk in adapter.stream_completion(
            model="m", temperature=0.0, max_tokens=100, prompt="system", request=request
        )
    ]


class TestOpenAIClientAdapter:
    def test_disables_sdk_retries(self) -> None:
        _, mock_cls = _make_adapter(AsyncMock())
        mock_cls.assert_called_once_with(
            api_key="k", timeout=30, base_url=None, max_retries=0
        )

    @pytest.mark.asyncio
    async def test_yields_delta_content(self) -> None:
        create = AsyncMock(return_value=_stream('{"bio', None, 'markers": []}'))
        adapter, _ = _make_adapter(create)
        assert await _collect(adapter) == ['{"bio', 'markers": []}']
        kwargs = create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_status_error_keeps_status_code(self) -> None:
        response = httpx.Response(429, request=_REQUEST)
        create = AsyncMock(
            side_effect=openai.APIStatusError("rate limited", response=response, body=None)
        )
        adapter, _ = _make_adapter(create)
        with pytest.raises(ExtractionNetworkError) as exc_info:
            await _collect(adapter)
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_timeout_is_reported_as_timeout(self) -> None:
        create = AsyncMock(side_effect=openai.APITimeoutError(request=_REQUEST))
        adapter, _ = _make_adapter(create)
        with pytest.raises(ExtractionNetworkError, match="timed out"):
            await _collect(adapter)

    @pytest.mark.asyncio
    async def test_connection_error_is_network_error(self) -> None:
        create = AsyncMock(side_effect=openai.APIConnectionError(request=_REQUEST))
        adapter, _ = _make_adapter(create)
        with pytest.raises(ExtractionNetworkError, match="network error"):
            await _collect(adapter)

    @pytest.mark.asyncio
    async def test_error_during_stream_is_wrapped(self) -> None:
        async def broken_stream() -> AsyncIterator[MagicMock]:
            yield _chunk("partial")
            raise httpx.ReadTimeout("read timed out", request=_REQUEST)

        adapter, _ = _make_adapter(AsyncMock(return_value=_ChunkStream(broken_stream())))
        with pytest.raises(ExtractionNetworkError):
            await _collect(adapter)

    @pytest.mark.asyncio
    async def test_connection_dropped_mid_stream_is_wrapped(self) -> None:
        async def dropped_stream() -> AsyncIterator[MagicMock]:
            yield _chunk("{\"biomarkers\": [")
            raise httpx.ReadError("connection reset by peer", request=_REQUEST)

        adapter, _ = _make_adapter(AsyncMock(return_value=_ChunkStream(dropped_stream())))
        with pytest.raises(ExtractionNetworkError, match="network error") as exc_info:
            await _collect(adapter)
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ReadError)

    @pytest.mark.asyncio
    async def test_stopping_early_closes_the_sdk_stream(self) -> None:
        sdk_stream = _stream("a", "b", "c")
        adapter, _ = _make_adapter(AsyncMock(return_value=sdk_stream))
        request = ExtractionRequest(content=[TextBlock("hello")], file_names=["a.txt"])
        chunks = adapter.stream_completion(
            model="m", temperature=0.0, max_tokens=100, prompt="system", request=request
        )
        assert await chunks.__anext__() == "a"
        await chunks.aclose()
        assert sdk_stream.closed


class TestBuildUserContent:
    def test_images_become_data_urls(self) -> None:
        request = ExtractionRequest(
            content=[TextBlock("=== DOCUMENT 1: a.png ==="), ImageBlock("image/png", b"abc")],
            file_names=["a.png"],
        )
        parts = build_user_content(request)
        assert parts[0] == {"type": "text", "text": "=== DOCUMENT 1: a.png ==="}
        encoded = base64.b64encode(b"abc").decode("ascii")
        assert parts[1] == {
            "type": "image_url",
            "image_url": {"url": f"data:image/png;base64,{encoded}"},
        }
