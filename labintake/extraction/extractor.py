"""AI-powered biomarker extractor."""

from collections.abc import Sequence
from contextlib import aclosing
from pathlib import Path

from labintake.documents.models import ProcessedDocument
from labintake.extraction.base import BaseExtractor
from labintake.extraction.client_base import BaseExtractionClient
from labintake.extraction.exceptions import ExtractionError, ExtractionValidationError
from labintake.extraction.models import (
    ContentBlock,
    EmptyFindings,
    ExtractionRequest,
    ExtractionResult,
    ImageBlock,
    ParseFailure,
    TextBlock,
)
from labintake.extraction.prompt_loader import load_batch_prompt_template, load_prompt_template
from labintake.extraction.validator import empty_result, parse_response
from labintake.logging.logger import Log

SINGLE_TEXT_HEADER = "=== EXTRACTED TEXT ==="
DEFAULT_MAX_RESPONSE_CHARS = 2_000_000


def document_header(index: int, file_name: str) -> str:
    return f"=== DOCUMENT {index}: {file_name} ==="


class ExtractionClient(BaseExtractor):
    """Extracts biomarkers and patient info from documents via an AI provider.

    One request is sent per call. The streamed reply is reassembled in full
    before the JSON payload is located and validated.
    """

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        temperature: float = 0.0,
        max_output_tokens: int = 8192,
        max_response_chars: int = DEFAULT_MAX_RESPONSE_CHARS,
        prompt_template_path: Path | None = None,
        batch_prompt_template_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._max_output_tokens = max_output_tokens
        self._max_response_chars = max_response_chars
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._batch_prompt_template = load_batch_prompt_template(batch_prompt_template_path)

    async def extract_documents(
        self, documents: Sequence[ProcessedDocument]
    ) -> list[ExtractionResult]:
        if not documents:
            raise ExtractionError("Cannot extract an empty document list")

        prompt, request = self.build_request(documents)
        if Log.is_debug():
            Log.debug(f"Extraction prompt:\n{prompt}")

        raw_response = await self._collect(prompt, request)
        if Log.is_debug():
            Log.debug(f"AI raw response ({len(raw_response)} chars):\n{raw_response}")

        outcome = parse_response(raw_response, request.file_names)
        if isinstance(outcome, ParseFailure):
            if outcome.invalid_shape:
                raise ExtractionValidationError(outcome.reason)
            raise ExtractionError(outcome.reason)
        if isinstance(outcome, EmptyFindings):
            Log.warning(
                f"No JSON in response for {', '.join(request.file_names)}; "
                "treating as no findings"
            )
            return [empty_result(name, outcome.diagnostic) for name in request.file_names]

        total = sum(len(result.biomarkers) for result in outcome.results)
        Log.info(
            f"Extraction complete: {total} biomarkers from {len(outcome.results)} document(s)"
        )
        return outcome.results

    def build_request(
        self, documents: Sequence[ProcessedDocument]
    ) -> tuple[str, ExtractionRequest]:
        """Return the instruction prompt and the labelled document content."""
        content: list[ContentBlock] = []
        if len(documents) == 1:
            document = documents[0]
            prompt = self._prompt_template.format()
            if document.text.strip():
                content.append(TextBlock(f"{SINGLE_TEXT_HEADER}\n{document.text}"))
            content.extend(_image_blocks(document))
        else:
            prompt = self._batch_prompt_template.format(document_count=len(documents))
            for index, document in enumerate(documents, start=1):
                header = document_header(index, document.file_name)
                if document.text.strip():
                    content.append(TextBlock(f"{header}\n{document.text}"))
                else:
                    content.append(TextBlock(header))
                content.extend(_image_blocks(document))

        request = ExtractionRequest(
            content=content,
            file_names=[document.file_name for document in documents],
        )
        return prompt, request

    async def _collect(self, prompt: str, request: ExtractionRequest) -> str:
        chunks: list[str] = []
        size = 0
        stream = self._client.stream_completion(
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_output_tokens,
            prompt=prompt,
            request=request,
        )
        async with aclosing(stream):
            async for chunk in stream:
                size += len(chunk)
                if size > self._max_response_chars:
                    raise ExtractionError(
                        f"AI response exceeded {self._max_response_chars} characters"
                    )
                chunks.append(chunk)

        if not size:
            raise ExtractionError("AI returned empty response")
        return "".join(chunks)


def _image_blocks(document: ProcessedDocument) -> list[ImageBlock]:
    mime_type = document.mime_type if document.mime_type.startswith("image/") else "image/png"
    return [ImageBlock(mime_type=mime_type, data=payload) for payload in document.images]
