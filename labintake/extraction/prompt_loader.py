from pathlib import Path

from labintake.extraction.exceptions import ExtractionError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the single-document extraction prompt.

    Args:
        path: Path to the prompt template file.
              Defaults to the bundled extraction_prompt.txt.

    Returns:
        The raw template string. Literal braces are doubled for ``str.format``.

    Raises:
        ExtractionError: if the file cannot be read.
    """
    return _read(path or _DEFAULT_PROMPT_DIR / "extraction_prompt.txt")


def load_batch_prompt_template(path: Path | None = None) -> str:
    """Load the multi-document prompt; it has a ``{document_count}`` placeholder."""
    return _read(path or _DEFAULT_PROMPT_DIR / "batch_extraction_prompt.txt")


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ExtractionError(f"Failed to load prompt template: {exc}") from exc
