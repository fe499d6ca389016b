from .ast_dump_provider import AST_VIEW_KINDS, AstDumpProvider, dump_ast_with_intervals
from .ruff_format_provider import RUFF_VIEW_KINDS, RuffFormatProvider
from .token_dump_provider import TOKEN_VIEW_KINDS, TokenDumpProvider, dump_tokens_with_intervals

__all__ = [
    "AST_VIEW_KINDS",
    "AstDumpProvider",
    "dump_ast_with_intervals",
    "RUFF_VIEW_KINDS",
    "RuffFormatProvider",
    "TOKEN_VIEW_KINDS",
    "TokenDumpProvider",
    "dump_tokens_with_intervals",
]
