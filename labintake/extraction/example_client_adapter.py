"""Example extraction client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseExtractionClient and register the provider in ExtractorFactory.
"""

import json
from collections.abc import AsyncGenerator
from typing import ClassVar

from labintake.extraction.client_base import BaseExtractionClient
from labintake.extraction.models import ExtractionRequest


class ExampleClientAdapter(BaseExtractionClient):
    """Example adapter that streams a fixed, valid extraction payload.

    No network calls. A single-document request gets one object, a
    multi-document request gets an array with one object per document.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "patientInfo": {
            "name": None,
            "dateOfBirth": None,
            "gender": None,
            "testDate": None,
        },
        "panelName": None,
        "biomarkers": [],
    }

    def __init__(self, chunk_size: int = 64) -> None:
        self._chunk_size = chunk_size

    async def stream_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        prompt: str,
        request: ExtractionRequest,
    ) -> AsyncGenerator[str, None]:
        _ = model, temperature, max_tokens, prompt
        if request.document_count == 1:
            payload: object = self.DEFAULT_RESPONSE
        else:
            payload = [self.DEFAULT_RESPONSE] * request.document_count
        text = json.dumps(payload)
        for start in range(0, len(text), self._chunk_size):
            yield text[start : start + self._chunk_size]
