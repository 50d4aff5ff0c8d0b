"""Isolates the JSON payload from a free-text model response."""

_OPENERS = {"{": "}", "[": "]"}
_CLOSERS = {"}", "]"}


class JsonSpanError(ValueError):
    """Raised when a JSON opening character is found but never balanced."""


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned


def find_json_span(text: str) -> str | None:
    """Return the first complete JSON object/array embedded in *text*.

    Prose before the first ``{``/``[`` and anything after its matching close
    is discarded. Nesting is tracked with a stack, and brackets inside string
    literals are ignored.

    Returns:
        The JSON substring, or None when *text* has no opening character.

    Raises:
        JsonSpanError: if the opening character is never closed, or a closing
            character does not match the innermost open one.
    """
    cleaned = strip_code_fences(text)
    start = _first_opener(cleaned)
    if start == -1:
        return None

    stack: list[str] = []
    in_string = False
    escaped = False

    for index in range(start, len(cleaned)):
        char = cleaned[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in _CLOSERS:
            if not stack or stack[-1] != char:
                raise JsonSpanError(f"Unexpected '{char}' at offset {index}")
            stack.pop()
            if not stack:
                return cleaned[start : index + 1]

    raise JsonSpanError(f"Unbalanced JSON starting at offset {start}")


def _first_opener(text: str) -> int:
    positions = [pos for pos in (text.find("{"), text.find("[")) if pos != -1]
    return min(positions) if positions else -1
