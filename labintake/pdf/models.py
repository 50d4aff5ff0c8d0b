from dataclasses import dataclass, field


@dataclass(frozen=True)
class PdfText:
    """Text layer of a PDF, one entry per page."""

    pages: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.pages).strip()

    @property
    def page_count(self) -> int:
        return len(self.pages)
