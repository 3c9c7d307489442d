#!/usr/bin/env python3
"""
ABAPTIDY STRUCTURER - Statement & Chain Builder (Phase 1.2)
-----------------------------------------------------------
Converts the flat RawStatement stream into Statement models:

* chain members sharing one colon become a single chain statement,
* the first `"` comment inside a statement becomes its trailing comment,
* a `"` comment on the line where the previous statement ends is attached
  to that statement when it has no trailing comment yet,
* pragmas move in front of the terminal period or comma.

The initial line-break flag of every token is decided here, from source
line numbers of the remaining code tokens.

Author: AbapTidy Team
Date: 2026-10-18
"""

from typing import List, Optional, Sequence, Tuple

from abaptidy.core.errors import InternalConsistencyError
from abaptidy.core.models import (
    Chain, ChainEntry, Comment, RawStatement, SourceSpan,
    Statement, StatementKind, Token, TokenRole,
)

TERMINATORS = (".", ",")


def _is_sign_comment(token: Token) -> bool:
    return token.is_comment and token.text.startswith('"')


def _index_of(tokens: Sequence[Token], target: Token) -> int:
    for i, token in enumerate(tokens):
        if token is target:
            return i
    raise InternalConsistencyError("Chain colon is not part of its statement", target.span)


def span_of(tokens: Sequence[Token]) -> Optional[SourceSpan]:
    """Smallest span covering all tokens, regardless of their order."""
    if not tokens:
        return None
    first = min(tokens, key=lambda t: (t.span.start_line, t.span.start_column))
    last = max(tokens, key=lambda t: (t.span.end_line, t.span.end_column))
    return SourceSpan(first.span.start_line, first.span.start_column,
                      last.span.end_line, last.span.end_column)


class ChainStructurer:
    """
    The Architect: rebuilds statements and chains from raw statements
    without losing a single token or comment.
    """

    def build(self, raw_statements: List[RawStatement]) -> List[Statement]:
        statements: List[Statement] = []
        i = 0
        while i < len(raw_statements):
            raw = raw_statements[i]
            if raw.colon is not None:
                end = self._collect_chain(raw_statements, i)
                statements.append(self._convert_chain(raw_statements, i, end))
                i = end
                continue
            if raw.kind is StatementKind.COMMENT:
                self._convert_comment(raw, i, statements)
            else:
                statements.append(self._convert_single(raw, i))
            i += 1
        return statements

    # --- TOKEN HELPERS ---

    def _finish_tokens(self, tokens: Sequence[Token],
                       pragmas: Sequence[Token]) -> Tuple[List[Token], Optional[Comment]]:
        """
        Extracts the trailing comment, links line breaks and places pragmas.
        """
        trailing = None
        body: List[Token] = []
        for token in tokens:
            if trailing is None and _is_sign_comment(token):
                trailing = Comment(value=token.text, inline=True, span=token.span)
                continue
            body.append(token)

        for current, following in zip(body, body[1:]):
            current.has_following_line_break = following.span.start_line > current.span.end_line
        if body:
            body[-1].has_following_line_break = False

        for pragma in pragmas:
            pragma.has_following_line_break = False
        if pragmas:
            if body and body[-1].text in TERMINATORS and body[-1].role is TokenRole.PUNCTUATION:
                body = body[:-1] + list(pragmas) + body[-1:]
            else:
                body = body + list(pragmas)
        return body, trailing

    # --- PLAIN STATEMENTS & COMMENTS ---

    def _convert_single(self, raw: RawStatement, index: int) -> Statement:
        body, trailing = self._finish_tokens(raw.tokens, raw.pragmas)
        code = [t for t in body if t.role is not TokenRole.PRAGMA] or body
        return Statement(
            tokens=body,
            kind=raw.kind,
            span=span_of(code),
            trailing_comment=trailing,
            pragmas=list(raw.pragmas),
            raw=raw.raw,
            raw_index=index,
            virtual=raw.virtual,
        )

    def _convert_comment(self, raw: RawStatement, index: int, statements: List[Statement]):
        token = raw.tokens[0]
        previous = statements[-1] if statements else None
        inline = previous is not None and previous.span.end_line == token.span.start_line
        comment = Comment(value=token.text, inline=inline, span=token.span)

        # 1. Same-line comment after a statement with a free trailing slot
        if (inline and _is_sign_comment(token) and previous.trailing_comment is None
                and previous.kind is not StatementKind.COMMENT):
            previous.attach_trailing_comment(comment)
            return

        # 2. Everything else stands on its own line
        statements.append(Statement(
            tokens=[],
            kind=StatementKind.COMMENT,
            span=token.span,
            trailing_comment=comment,
            raw=token.text,
            raw_index=index,
            virtual=raw.virtual,
        ))

    # --- CHAINS ---

    def _colon_key(self, colon: Token) -> Tuple[int, int]:
        return colon.span.start_line, colon.span.start_column

    def _ends_with_period(self, raw: RawStatement) -> bool:
        return bool(raw.tokens) and raw.tokens[-1].text == "."

    def _member_has_comment(self, raw: RawStatement) -> bool:
        at = _index_of(raw.tokens, raw.colon)
        return any(_is_sign_comment(t) for t in raw.tokens[at + 1:])

    def _collect_chain(self, raws: List[RawStatement], start: int) -> int:
        """Returns the end index (exclusive) of the chain group at `start`."""
        key = self._colon_key(raws[start].colon)
        finished = self._ends_with_period(raws[start])
        j = start + 1
        while j < len(raws) and not finished:
            candidate = raws[j]
            if candidate.colon is not None and self._colon_key(candidate.colon) == key:
                finished = self._ends_with_period(candidate)
            elif candidate.kind is not StatementKind.COMMENT:
                break
            j += 1

        # Comments after the last member belong to whatever follows
        while j - 1 > start and raws[j - 1].colon is None:
            j -= 1

        # ... except a same-line comment right after the closing period
        last = raws[j - 1]
        if (j < len(raws) and raws[j].kind is StatementKind.COMMENT
                and _is_sign_comment(raws[j].tokens[0])
                and raws[j].start_line == last.end_line
                and not self._member_has_comment(last)):
            j += 1
        return j

    def _convert_chain(self, raws: List[RawStatement], start: int, end: int) -> Statement:
        first = raws[start]
        colon = first.colon
        at = _index_of(first.tokens, colon)
        prefix = [t for t in first.tokens[:at] if not t.is_comment]
        if not prefix:
            raise InternalConsistencyError("Chain keyword statement has no tokens", colon.span)

        entries: List[ChainEntry] = []
        pragmas: List[Token] = []
        last_entry: Optional[ChainEntry] = None
        last_line = None

        for raw in raws[start:end]:
            if raw.colon is not None:
                at = _index_of(raw.tokens, raw.colon)
                body, trailing = self._finish_tokens(raw.tokens[at + 1:], raw.pragmas)
                last_entry = ChainEntry(tokens=body, trailing_comment=trailing)
                entries.append(last_entry)
                pragmas.extend(raw.pragmas)
                last_line = raw.end_line
                continue

            token = raw.tokens[0]
            same_line = last_entry is not None and token.span.start_line == last_line
            comment = Comment(value=token.text, inline=same_line, span=token.span)
            if same_line and _is_sign_comment(token) and last_entry.trailing_comment is None:
                last_entry.trailing_comment = comment
            else:
                entries.append(ChainEntry(comment=comment))

        entries.sort(key=lambda entry: entry.start_line)
        tokens = [t for entry in entries if not entry.is_comment for t in entry.tokens]
        trailing = None
        if entries and not entries[-1].is_comment:
            trailing = entries[-1].trailing_comment

        return Statement(
            tokens=tokens,
            kind=first.kind,
            span=span_of(prefix + [colon] + tokens),
            trailing_comment=trailing,
            chain=Chain(keyword=prefix[0], prefix=prefix, colon=colon, entries=entries),
            pragmas=pragmas,
            raw=" ".join(raw.raw for raw in raws[start:end]),
            raw_index=start,
            virtual=first.virtual,
        )
