from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

ENGLISH = "en"
PORTUGUESE = "pt"


@dataclass(frozen=True)
class LanguageSettings:
    supported: tuple[str, ...]
    default: str

    def __post_init__(self) -> None:
        if not self.supported:
            raise ValueError("at least one supported language is required")
        if self.default not in self.supported:
            raise ValueError(
                f"default language {self.default!r} is not in supported languages "
                f"{','.join(self.supported)}"
            )

    def is_supported(self, code: str | None) -> bool:
        return bool(code) and code in self.supported

    def require(self, code: str | None) -> str:
        if not self.is_supported(code):
            raise ValueError(f"unsupported language code: {code!r}")
        return code  # type: ignore[return-value]

    def sort_languages(self, codes: Iterable[str]) -> list[str]:
        """Default language first, then configured order, then unknown codes A-Z."""
        order = {code: idx for idx, code in enumerate(self.supported)}

        def key(code: str) -> tuple[int, int, str]:
            if code == self.default:
                return (0, 0, code)
            if code in order:
                return (1, order[code], code)
            return (2, 0, code)

        return sorted(codes, key=key)


DEFAULT_LANGUAGES = LanguageSettings(supported=(ENGLISH, PORTUGUESE), default=ENGLISH)


def parse_languages(raw: str) -> tuple[str, ...]:
    seen: list[str] = []
    for part in raw.split(","):
        code = part.strip()
        if code and code not in seen:
            seen.append(code)
    return tuple(seen)
