#!/usr/bin/env python3
"""
ABAPTIDY CLOSING BRACKETS RULE
------------------------------
Pulls closing brackets (and a period following one) up to the end of the
preceding line, then merges the comments that the move brought onto the
same line. Pseudo comments ("#EC ...) are never merged: the second one is
kept as a post comment behind a period that is forced onto its own line.

Author: AbapTidy Team
Date: 2026-10-18
"""

from typing import List, Optional, Sequence

from abaptidy.core.models import Comment, Statement, Token, TokenRole
from abaptidy.layout.context import FormatContext

CLOSING_BRACKETS = {")", "]"}


def is_closing_bracket(token: Optional[Token]) -> bool:
    return token is not None and token.role is TokenRole.WORD and token.text in CLOSING_BRACKETS


def is_period(token: Optional[Token]) -> bool:
    return token is not None and token.role is TokenRole.PUNCTUATION and token.text == "."


def _keeps_together(token: Token) -> bool:
    """Tokens that may follow a pulled-up bracket on the same line."""
    return (is_closing_bracket(token)
            or token.role in (TokenRole.PUNCTUATION, TokenRole.PRAGMA))


def _should_attach(previous: Token) -> bool:
    return previous.has_following_line_break and not previous.is_comment


class ClosingBracketRepositioner:
    """
    The only writer of Token.has_following_line_break after the Builder.
    """

    def apply(self, statements: List[Statement], context: FormatContext):
        for statement in statements:
            if self.adjust_tokens(statement.tokens):
                context.touched.add(statement)
            if statement.chain:
                for entry in statement.chain.entries:
                    if not entry.is_comment:
                        self.adjust_tokens(entry.tokens)
        self.merge_trailing_comments(statements, context)

    def adjust_tokens(self, tokens: Sequence[Token]) -> bool:
        """
        Removes the line breaks in front of closing brackets and of a
        period that follows a closing bracket. Returns True on any move.
        """
        changed = False
        for index in range(1, len(tokens)):
            previous, current = tokens[index - 1], tokens[index]
            if not _should_attach(previous):
                continue

            if is_closing_bracket(current):
                previous.has_following_line_break = False
                changed = True
                following = tokens[index + 1] if index + 1 < len(tokens) else None
                if following is None:
                    continue
                # Code after the bracket on its source line moves to a new line
                if (following.span.start_line == current.span.start_line
                        and not _keeps_together(following)):
                    current.has_following_line_break = True
                if is_period(following) and current.has_following_line_break:
                    current.has_following_line_break = False

            elif is_period(current) and is_closing_bracket(previous):
                previous.has_following_line_break = False
                changed = True

        return changed

    def merge_trailing_comments(self, statements: List[Statement], context: FormatContext):
        for current, following in zip(statements, statements[1:]):
            if current not in context.touched:
                continue
            incoming = following.trailing_comment
            if incoming is None or not incoming.inline:
                continue
            if incoming.span.start_line != current.span.end_line:
                continue
            if not incoming.value.lstrip().startswith('"'):
                continue

            existing = current.trailing_comment
            if incoming.is_pseudo or (existing is not None and existing.is_pseudo):
                context.post_comments[current] = Comment(incoming.value, incoming.inline, incoming.span)
                self._force_period_line(current)
                following.attach_trailing_comment(None)
                continue

            text = f"{existing.body}; {incoming.body}" if existing else incoming.body
            base = existing or incoming
            current.attach_trailing_comment(Comment(f'" {text}', base.inline, base.span))
            following.attach_trailing_comment(None)

    def _force_period_line(self, statement: Statement):
        """Puts the last period of a statement on a line of its own."""
        tokens = statement.tokens
        for index in range(len(tokens) - 1, 0, -1):
            if is_period(tokens[index]):
                tokens[index - 1].has_following_line_break = True
                return
