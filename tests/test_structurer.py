import pytest

from abaptidy.core.errors import InternalConsistencyError
from abaptidy.core.models import RawStatement, SourceSpan, StatementKind, Token, TokenRole
from abaptidy.layout.structurer import ChainStructurer


def texts(tokens):
    return [t.text for t in tokens]


def test_first_inline_comment_becomes_trailing_comment(build):
    _, statements = build('foo( a = 1 " note\n ).')
    statement = statements[0]
    assert statement.trailing_comment.value == '" note'
    assert texts(statement.tokens) == ["foo", "(", "a", "=", "1", ")", "."]


def test_line_break_flags_follow_source_lines(build):
    _, statements = build("foo( a = 1\n ).")
    flags = [t.has_following_line_break for t in statements[0].tokens]
    assert flags == [False, False, False, False, True, False, False]


def test_same_line_comment_after_period_attaches(build):
    _, statements = build('x = 1. " note\ny = 2.')
    assert len(statements) == 2
    assert statements[0].trailing_comment.value == '" note'
    assert statements[0].trailing_comment.inline


def test_comment_does_not_replace_existing_trailing_comment(build):
    _, statements = build('foo( a " one\n ). " two')
    assert len(statements) == 2
    assert statements[1].kind is StatementKind.COMMENT
    assert statements[1].trailing_comment.inline


def test_star_comment_after_code_stands_alone(build):
    _, statements = build("x = 1.\n* header\ny = 2.")
    assert [s.kind for s in statements] == [StatementKind.OTHER, StatementKind.COMMENT, StatementKind.OTHER]
    assert statements[1].tokens == []


def test_pragmas_move_before_terminator(build):
    _, statements = build("DATA x TYPE i ##NEEDED ##OTHER.")
    assert texts(statements[0].tokens) == ["DATA", "x", "TYPE", "i", "##NEEDED", "##OTHER", "."]


def test_chain_members_are_merged(build):
    raws, statements = build('DATA: a TYPE i, " first\n      " between\n      b TYPE i.\nx = 1.')
    chain = statements[0].chain
    assert len(statements) == 2
    assert texts(chain.prefix) == ["DATA"]
    assert [e.is_comment for e in chain.entries] == [False, True, False]
    assert chain.entries[0].trailing_comment.value == '" first'
    assert texts(statements[0].tokens) == ["a", "TYPE", "i", ",", "b", "TYPE", "i", "."]
    assert statements[1].raw_index == len(raws) - 1


def test_comment_after_chain_belongs_to_what_follows(build):
    _, statements = build("CLEAR: a, b.\n\" next\nx = 1.")
    assert statements[0].chain.entries[-1].tokens[0].text == "b"
    assert statements[1].kind is StatementKind.COMMENT


def test_same_line_comment_after_chain_period(build):
    _, statements = build('CLEAR: a, b. " done')
    assert len(statements) == 1
    assert statements[0].trailing_comment.value == '" done'
    assert statements[0].chain.entries[-1].trailing_comment is statements[0].trailing_comment


def test_chain_without_prefix_is_inconsistent(build):
    with pytest.raises(InternalConsistencyError) as err:
        build(": a.")
    assert "line 1, column 0" in str(err.value)


def test_colon_outside_its_statement_is_inconsistent():
    span = SourceSpan(1, 0, 1, 1)
    colon = Token(TokenRole.COLON, ":", SourceSpan(1, 5, 1, 6))
    raw = RawStatement(tokens=[Token(TokenRole.WORD, "x", span),
                               Token(TokenRole.PUNCTUATION, ".", SourceSpan(1, 1, 1, 2))],
                       colon=colon)
    with pytest.raises(InternalConsistencyError):
        ChainStructurer().build([raw])
