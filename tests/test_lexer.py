import pytest

from abaptidy.core.errors import UpstreamObjectMissing, UpstreamParseFailure
from abaptidy.core.models import StatementKind, TokenRole


def texts(tokens):
    return [t.text for t in tokens]


def test_words_keep_component_selectors(lexer):
    tokens = lexer.tokenize_line("ls_row-field = <fs>-comp.", 1)
    assert texts(tokens) == ["ls_row-field", "=", "<fs>-comp", "."]
    assert tokens[-1].role is TokenRole.PUNCTUATION


def test_columns_are_zero_based_and_end_exclusive(lexer):
    token = lexer.tokenize_line("  CLASS-DATA x.", 3)[0]
    assert token.text == "CLASS-DATA"
    assert (token.span.start_line, token.span.start_column) == (3, 2)
    assert (token.span.end_line, token.span.end_column) == (3, 12)


def test_arrows_and_brackets(lexer):
    tokens = lexer.tokenize_line("lo_obj->method( ).", 1)
    assert texts(tokens) == ["lo_obj", "->", "method", "(", ")", "."]
    assert tokens[1].role is TokenRole.ARROW


def test_literals_and_templates(lexer):
    tokens = lexer.tokenize_line("x = 'it''s' && |a{ b }c| && `q`.", 1)
    assert [t.text for t in tokens if t.role is TokenRole.STRING] == ["'it''s'", "|a{ b }c|", "`q`"]


def test_comments_and_pragmas(lexer):
    star = lexer.tokenize_line("* full line", 1)
    assert len(star) == 1 and star[0].role is TokenRole.COMMENT

    tokens = lexer.tokenize_line('DATA x TYPE i ##NEEDED. " note  ', 1)
    assert tokens[4].role is TokenRole.PRAGMA
    assert tokens[-1].text == '" note'


def test_split_single_statements(lexer):
    raws = lexer.split("IF a = 1.\n  a = 2.\nENDIF.\n")
    assert [r.kind for r in raws] == [StatementKind.IF, StatementKind.OTHER, StatementKind.ENDIF]


def test_split_chain_members_share_prefix(lexer):
    raws = lexer.split("DATA: a TYPE i,\n      b TYPE i.")
    assert len(raws) == 2
    assert all(r.colon is raws[0].colon for r in raws)
    assert texts(raws[1].tokens) == ["DATA", ":", "b", "TYPE", "i", "."]


def test_comma_inside_brackets_does_not_end_member(lexer):
    raws = lexer.split("WRITE: meth( a = 1, b = 2 ), c.")
    assert len(raws) == 2


def test_pragmas_are_collected_apart(lexer):
    raw = lexer.split("DATA x TYPE i ##NEEDED.")[0]
    assert texts(raw.pragmas) == ["##NEEDED"]
    assert "##NEEDED" not in texts(raw.tokens)


def test_standalone_comments_become_statements(lexer):
    raws = lexer.split('* header\n" note\nx = 1.')
    assert [r.kind for r in raws[:2]] == [StatementKind.COMMENT, StatementKind.COMMENT]


@pytest.mark.parametrize("source,kind", [
    ("CASE TYPE OF lo_obj.", StatementKind.CASE_TYPE),
    ("WHEN OTHERS.", StatementKind.WHEN_OTHERS),
    ("WHEN TYPE zcl_a.", StatementKind.WHEN_TYPE),
    ("CATCH SYSTEM-EXCEPTIONS arithmetic_errors = 4.", StatementKind.CATCH_SYSTEM_EXCEPTIONS),
    ("CATCH cx_root.", StatementKind.CATCH),
    ("CLASS lcl DEFINITION.", StatementKind.CLASS_DEFINITION),
    ("CLASS lcl DEFINITION DEFERRED.", StatementKind.OTHER),
    ("AT FIRST.", StatementKind.AT),
    ("AT SELECTION-SCREEN.", StatementKind.OTHER),
    ("method m.", StatementKind.METHOD),
])
def test_classification(lexer, source, kind):
    assert lexer.split(source)[0].kind is kind


def test_missing_period_is_a_parse_failure(lexer):
    with pytest.raises(UpstreamParseFailure) as err:
        lexer.split("x = 1.\ny = 2")
    assert err.value.line == 2


def test_unterminated_literal_is_a_parse_failure(lexer):
    with pytest.raises(UpstreamParseFailure):
        lexer.split("WRITE 'abc.")


def test_blank_source_has_no_object(lexer):
    with pytest.raises(UpstreamObjectMissing):
        lexer.split("   \n\n")


def test_data_definition_has_no_object(lexer):
    with pytest.raises(UpstreamObjectMissing):
        lexer.split("x = 1.", filename="zview.DDLSRC")
    assert lexer.split("x = 1.", filename="zcl_a.clas.abap")


@pytest.mark.parametrize("filename", ["zreport.txt", "zmacros.clas.macros", "zif_a.intf.abap", "noext"])
def test_other_file_kinds_are_read_as_programs(lexer, filename):
    assert len(lexer.split("x = 1. y = 2.", filename=filename)) == 2


def test_bom_and_crlf_are_cleaned(lexer):
    raws = lexer.split("\ufeffx = 1.\r\ny = 2.\r\n")
    assert [r.start_line for r in raws] == [1, 2]
    assert raws[0].tokens[0].span.start_column == 0
