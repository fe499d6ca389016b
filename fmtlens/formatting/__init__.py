from .code_formatting import (
    VIEW_KINDS,
    VIEW_TITLES,
    FormatOptions,
    FormatRequest,
    FormatResult,
    ViewKind,
    ViewProvider,
    ViewProviderRegistry,
    normalize_view_kind,
)


def default_registry() -> ViewProviderRegistry:
    from .providers import (
        AST_VIEW_KINDS,
        RUFF_VIEW_KINDS,
        TOKEN_VIEW_KINDS,
        AstDumpProvider,
        RuffFormatProvider,
        TokenDumpProvider,
    )

    registry = ViewProviderRegistry()
    registry.register_provider(RuffFormatProvider(), view_kinds=RUFF_VIEW_KINDS)
    registry.register_provider(AstDumpProvider(), view_kinds=AST_VIEW_KINDS)
    registry.register_provider(TokenDumpProvider(), view_kinds=TOKEN_VIEW_KINDS)
    return registry


__all__ = [
    "VIEW_KINDS",
    "VIEW_TITLES",
    "FormatOptions",
    "FormatRequest",
    "FormatResult",
    "ViewKind",
    "ViewProvider",
    "ViewProviderRegistry",
    "default_registry",
    "normalize_view_kind",
]
