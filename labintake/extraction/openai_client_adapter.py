import base64
from collections.abc import AsyncGenerator

import httpx
import openai

from labintake.extraction.client_base import BaseExtractionClient
from labintake.extraction.exceptions import ExtractionNetworkError
from labintake.extraction.models import ExtractionRequest, ImageBlock, TextBlock


class OpenAIClientAdapter(BaseExtractionClient):
    """Extraction AI client adapter built on the OpenAI-compatible chat API.

    Responses are always streamed so that long extractions are not cut off
    by intermediate gateways; the SDK's own retries are disabled because
    retrying is decided per batch by the processor.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    async def stream_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        prompt: str,
        request: ExtractionRequest,
    ) -> AsyncGenerator[str, None]:
        try:
            stream = await self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": build_user_content(request)},
                ],
            )
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        yield delta
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise ExtractionNetworkError(f"AI provider request timed out: {exc}") from exc
        except openai.APIStatusError as exc:
            raise ExtractionNetworkError(
                f"AI provider returned HTTP {exc.status_code}: {exc.message}",
                status_code=exc.status_code,
            ) from exc
        except (openai.APIConnectionError, httpx.TransportError) as exc:
            raise ExtractionNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ExtractionNetworkError(f"AI provider API error: {exc}") from exc


def build_user_content(request: ExtractionRequest) -> list[dict[str, object]]:
    """Translate provider-neutral blocks into chat ``content`` parts."""
    parts: list[dict[str, object]] = []
    for block in request.content:
        if isinstance(block, TextBlock):
            parts.append({"type": "text", "text": block.text})
        elif isinstance(block, ImageBlock):
            encoded = base64.b64encode(block.data).decode("ascii")
            parts.append(
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{block.mime_type};base64,{encoded}"},
                }
            )
    return parts
