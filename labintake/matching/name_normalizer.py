import re

import icu  # type: ignore[import-untyped]

_ICU_TRANSFORM = "Any-Latin; Latin-ASCII; Lower"
_NON_LETTER_RE = re.compile(r"[^a-z\s]+")


class NameNormalizer:
    """Reduces a person name to a script- and order-independent comparison key.

    "Müller, José" and "jose muller" both become "jose muller".
    """

    def __init__(self) -> None:
        self._transliterator: icu.Transliterator = icu.Transliterator.createInstance(
            _ICU_TRANSFORM
        )

    def normalize(self, name: str) -> str:
        ascii_name = self._transliterator.transliterate(name)
        tokens = _NON_LETTER_RE.sub(" ", ascii_name).split()
        return " ".join(sorted(tokens))
