from labintake.extraction.base import BaseExtractor
from labintake.extraction.extractor import ExtractionClient
from labintake.extraction.factory import ExtractorFactory

__all__ = ["BaseExtractor", "ExtractionClient", "ExtractorFactory"]
