"""Derived-view provider contracts and registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol

from fmtlens.mapping.intervals import IntervalList

ViewKind = Literal["formatted", "ast", "tokens"]
VIEW_KINDS: tuple[ViewKind, ...] = ("formatted", "ast", "tokens")
VIEW_TITLES: dict[str, str] = {
    "formatted": "Formatted",
    "ast": "AST",
    "tokens": "Tokens",
}

QUOTE_STYLES = ("double", "single", "preserve")


def normalize_view_kind(value: object, default: ViewKind = "formatted") -> ViewKind:
    key = str(value or "").strip().lower()
    if key in VIEW_KINDS:
        return key  # type: ignore[return-value]
    return default


@dataclass(slots=True, frozen=True)
class FormatOptions:
    line_length: int = 88
    indent_width: int = 4
    quote_style: str = "double"
    skip_magic_trailing_comma: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "FormatOptions":
        raw = data if isinstance(data, Mapping) else {}
        quote_style = str(raw.get("quote_style") or "double").strip().lower()
        if quote_style not in QUOTE_STYLES:
            quote_style = "double"
        try:
            line_length = int(raw.get("line_length", 88))
        except (TypeError, ValueError):
            line_length = 88
        try:
            indent_width = int(raw.get("indent_width", 4))
        except (TypeError, ValueError):
            indent_width = 4
        return cls(
            line_length=max(1, min(320, line_length)),
            indent_width=max(1, min(16, indent_width)),
            quote_style=quote_style,
            skip_magic_trailing_comma=bool(raw.get("skip_magic_trailing_comma", False)),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "line_length": self.line_length,
            "indent_width": self.indent_width,
            "quote_style": self.quote_style,
            "skip_magic_trailing_comma": self.skip_magic_trailing_comma,
        }


@dataclass(slots=True)
class FormatRequest:
    source_text: str
    options: FormatOptions = field(default_factory=FormatOptions)
    interpreter: str = ""
    filename: str = "playground.py"


@dataclass(slots=True)
class FormatResult:
    status: str  # ok | error
    output_text: str = ""
    message: str = ""
    stderr: str = ""
    warnings: list[str] = field(default_factory=list)
    debug_lines: list[str] = field(default_factory=list)
    intervals: IntervalList | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class ViewProvider(Protocol):
    def can_render(self, view_kind: str) -> bool:
        ...

    def render(self, request: FormatRequest) -> FormatResult:
        ...


class ViewProviderRegistry:
    """Maps view kinds to the providers that render them."""

    def __init__(self) -> None:
        self._by_view: dict[str, ViewProvider] = {}

    def register_provider(
        self,
        provider: ViewProvider,
        *,
        view_kinds: set[str] | tuple[str, ...] | list[str] | None = None,
    ) -> None:
        if provider is None:
            return
        for raw in list(view_kinds or []):
            key = str(raw or "").strip().lower()
            if key:
                self._by_view[key] = provider

    def provider_for(self, view_kind: str) -> ViewProvider | None:
        key = str(view_kind or "").strip().lower()
        return self._by_view.get(key)

    def can_render(self, view_kind: str) -> bool:
        provider = self.provider_for(view_kind)
        if provider is None:
            return False
        return bool(provider.can_render(view_kind))

    def render(self, view_kind: str, request: FormatRequest) -> FormatResult:
        provider = self.provider_for(view_kind)
        if provider is None:
            raise ValueError(f"No provider registered for view '{view_kind}'.")
        return provider.render(request)
