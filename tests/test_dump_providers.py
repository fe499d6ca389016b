from fmtlens.formatting import FormatRequest
from fmtlens.formatting.providers import (
    AstDumpProvider,
    TokenDumpProvider,
    dump_ast_with_intervals,
    dump_tokens_with_intervals,
)
from fmtlens.formatting.providers.ast_dump_provider import drop_enclosing_intervals
from fmtlens.mapping import Interval, find_containing


def test_ast_dump_maps_leaves_to_source():
    source = "x = 1\n"
    text, intervals = dump_ast_with_intervals(source)
    assert text.startswith("Module\n")
    assert [item.source_range for item in intervals] == [(0, 1), (4, 5)]
    name, const = intervals
    assert text[name.out_start:name.out_end].startswith("Name(id='x'")
    assert text[const.out_start:const.out_end].startswith("Constant(value=1")


def test_ast_dump_converts_byte_columns():
    source = 'é = "ü"\n'
    _text, intervals = dump_ast_with_intervals(source)
    assert [item.source_range for item in intervals] == [(0, 1), (4, 7)]


def test_ast_dump_nests_children_under_field_labels():
    text, _intervals = dump_ast_with_intervals("def f(a):\n    return a\n")
    lines = text.splitlines()
    assert "  body:" in lines
    assert "    FunctionDef" in lines
    assert any(line.strip().startswith("Return") for line in lines)


def test_ast_provider_reports_syntax_errors():
    provider = AstDumpProvider()
    assert provider.can_render("ast")
    assert not provider.can_render("tokens")
    result = provider.render(FormatRequest(source_text="def (:\n"))
    assert not result.ok
    assert result.message.startswith("SyntaxError")
    assert result.intervals is None


def test_token_dump_points_at_quoted_token_text():
    source = "x = 'é'  # note\n"
    text, intervals = dump_tokens_with_intervals(source)
    assert len(intervals) >= 4
    for item in intervals:
        assert text[item.out_start:item.out_end] == repr(source[item.src_start:item.src_end])
    assert "NAME" in text and "EQUAL" in text and "COMMENT" in text


def test_token_provider_renders_intervals():
    result = TokenDumpProvider().render(FormatRequest(source_text="a+b\n"))
    assert result.ok
    assert result.intervals is not None and len(result.intervals) == 4


def test_token_provider_reports_unterminated_input():
    result = TokenDumpProvider().render(FormatRequest(source_text="x = (1,\n"))
    assert not result.ok
    assert result.message


def test_enclosing_intervals_are_dropped():
    whole = Interval(4, 18, 0, 12)
    rows = [whole, Interval(8, 9, 20, 30), whole, Interval(12, 13, 40, 50), Interval(20, 21, 60, 70)]
    kept = drop_enclosing_intervals(rows)
    assert [item.source_range for item in kept] == [(8, 9), (12, 13), (20, 21)]


def test_identical_ranges_are_not_treated_as_nested():
    rows = [Interval(0, 3, 0, 5), Interval(0, 3, 10, 15)]
    assert drop_enclosing_intervals(rows) == rows


def test_fstring_offsets_resolve_to_a_containing_leaf():
    source = 'x = f"a{y}b{y!r}c"\n'
    _text, intervals = dump_ast_with_intervals(source)
    for outer in intervals:
        for inner in intervals:
            nested = outer.src_start <= inner.src_start and inner.src_end <= outer.src_end
            assert not nested or inner.source_range == outer.source_range
    for offset in range(len(source)):
        containing = [item for item in intervals if item.src_start <= offset < item.src_end]
        if containing:
            assert find_containing(intervals, offset) in containing
