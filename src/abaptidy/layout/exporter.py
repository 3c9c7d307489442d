#!/usr/bin/env python3
"""
ABAPTIDY EXPORTER - Line Renderer
---------------------------------
Turns the laid-out statements back into text. Line breaks come from the
token break flags, blanks from the spacing rules and the override table,
indentation from the statement level. Blank lines between statements are
preserved.

Rendering never mutates the statements, so the same layout can be taken
once without overrides (to learn where every token will land) and once
for the final text.

Author: AbapTidy Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from abaptidy.core.config import FormatterOptions
from abaptidy.core.models import KEEP_ORIGINAL_INDENT, ChainEntry, Comment, Statement, Token
from abaptidy.layout.context import FormatContext
from abaptidy.layout.shadow import CommentNormalizer
from abaptidy.rules.brackets import is_period
from abaptidy.rules.keyword_case import apply_keyword_case
from abaptidy.rules.spacing import leading_spaces

# Chains of these keywords start their members on the line below the colon
BLOCK_CHAIN_KEYWORDS = {"CLEAR", "FREE", "SORT", "CATCH", "TRY"}
LEADING_PUNCTUATION = (".", ",")


@dataclass(eq=False)
class Placement:
    token: Token
    column: int                     # Rendered start column
    width: int                      # Rendered text length


@dataclass
class RenderedLine:
    """One output line and the tokens printed on it."""
    text: str = ""
    start_line: int = 0             # Source line of the first token
    end_line: int = 0               # Source line of the last token
    ends_with_comment: bool = False
    column_zero: bool = False       # `*` comments never move
    placements: List[Placement] = field(default_factory=list)

    def put(self, token: Token, text: str, spaces: int = 0):
        """Appends a token after `spaces` blanks."""
        if self.placements:
            self.text = self.text.rstrip()
        else:
            self.start_line = token.span.start_line
        self.text += " " * spaces
        self.placements.append(Placement(token, len(self.text), len(text)))
        self.text += text
        self.end_line = token.span.start_line
        self.ends_with_comment = token.is_comment

    def indent(self, offset: int):
        self.text = " " * offset + self.text
        self.shift(offset)

    def shift(self, offset: int):
        for placement in self.placements:
            placement.column += offset

    def absorb(self, other: "RenderedLine", joiner: str):
        """Glues another line onto this one."""
        stripped = other.text.lstrip()
        other.shift(len(self.text) + len(joiner) - (len(other.text) - len(stripped)))
        self.text += joiner + stripped
        self.placements.extend(other.placements)
        self.end_line = other.end_line
        self.ends_with_comment = other.ends_with_comment


def _is_star_comment(value: str) -> bool:
    return value.startswith("*")


class LineExporter:
    """
    The Reconstructor: renders statements and joins them into a document.
    """

    def __init__(self, options: FormatterOptions):
        self.options = options
        self.comments = CommentNormalizer(options)

    def render(self, statements: Sequence[Statement], context: FormatContext) -> List[RenderedLine]:
        output: List[RenderedLine] = []
        previous: Optional[Statement] = None
        for statement in statements:
            lines = self.render_statement(statement, context)
            if not lines:
                continue
            if previous is not None:
                gap = max(1, statement.span.start_line - previous.span.end_line)
                output.extend(RenderedLine() for _ in range(gap - 1))
            output.extend(lines)
            previous = statement
        return output

    def export(self, context: FormatContext) -> str:
        context.lines = [line.text for line in self.render(context.statements, context)]
        return "\n".join(context.lines) + "\n" if context.lines else ""

    # --- SHARED HELPERS ---

    def _base_indent(self, statement: Statement) -> int:
        if statement.indent_level == KEEP_ORIGINAL_INDENT:
            return max(statement.span.start_column, 0)
        return statement.indent_level * self.options.indent_width

    def _token_text(self, token: Token, previous: Optional[Token] = None,
                    before: Optional[Token] = None) -> str:
        if token.is_comment:
            return token.text if _is_star_comment(token.text) else self.comments.normalize(token.text)
        return apply_keyword_case(token, self.options, previous, before)

    def _comment_line(self, indent: int, comment: Comment) -> str:
        if _is_star_comment(comment.value):
            return comment.value.rstrip()
        return self.comments.attach(" " * indent, comment.value)

    def _merge_leading_punctuation(self, lines: List[RenderedLine],
                                   keep_last: bool = False) -> List[RenderedLine]:
        """Glues lines that start with a period or comma to the line above."""
        joiner = " " if self.options.space_before_period else ""
        merged: List[RenderedLine] = []
        for index, line in enumerate(lines):
            is_last = index == len(lines) - 1
            if (merged and line.text.lstrip().startswith(LEADING_PUNCTUATION)
                    and not merged[-1].ends_with_comment
                    and not (keep_last and is_last)):
                merged[-1].absorb(line, joiner)
                continue
            merged.append(line)
        return merged

    # --- PLAIN STATEMENTS ---

    def render_statement(self, statement: Statement, context: FormatContext) -> List[RenderedLine]:
        if statement.is_empty:
            return []
        if statement.chain is not None:
            return self._render_chain(statement, context)

        indent = self._base_indent(statement)
        if not statement.tokens:
            return [RenderedLine(self._comment_line(indent, statement.trailing_comment))]

        lines: List[RenderedLine] = []
        current: Optional[RenderedLine] = None
        previous: Optional[Token] = None
        before: Optional[Token] = None

        for token in statement.tokens:
            text = self._token_text(token, previous, before)
            if current is None:
                current = RenderedLine()
                if token.is_comment and _is_star_comment(token.text):
                    current.column_zero = True
                    current.put(token, text)
                else:
                    relative = 0
                    if previous is not None:
                        relative = max(token.span.start_column - statement.span.start_column, 0)
                    current.put(token, text, indent + relative)
            else:
                current.put(token, text, leading_spaces(token, previous, self.options, context.overrides))
            before, previous = previous, token

            if token.has_following_line_break:
                lines.append(current)
                current = None

        if current is not None:
            lines.append(current)
        for line in lines:
            line.text = line.text.rstrip()

        post = context.post_comments.get(statement)
        lines = self._merge_leading_punctuation(lines, keep_last=post is not None)

        comment = statement.trailing_comment
        if comment is not None:
            target = lines[-1]
            for line in lines:
                if line.start_line <= comment.span.start_line <= line.end_line:
                    target = line
                    break
            target.text = self.comments.attach(target.text, comment.value)

        if post is not None:
            lines[-1].text = self.comments.attach(lines[-1].text, post.value)
        return lines

    # --- CHAINS ---

    def _render_sequence(self, tokens: Sequence[Token],
                         context: FormatContext) -> List[RenderedLine]:
        """
        Renders tokens on one line; only a comment token forces a new one.
        """
        lines: List[RenderedLine] = []
        current: Optional[RenderedLine] = None
        previous: Optional[Token] = None
        before: Optional[Token] = None
        for token in tokens:
            text = self._token_text(token, previous, before)
            if current is None or previous.is_comment:
                current = RenderedLine(column_zero=token.is_comment and _is_star_comment(token.text))
                lines.append(current)
                current.put(token, text)
            else:
                current.put(token, text, leading_spaces(token, previous, self.options, context.overrides))
            before, previous = previous, token
        return lines

    def _render_chain(self, statement: Statement, context: FormatContext) -> List[RenderedLine]:
        chain = statement.chain
        indent = self._base_indent(statement)
        keyword_line, *rest = self._render_sequence(chain.prefix, context)
        for extra in rest:
            keyword_line.absorb(extra, " ")
        keyword_line.indent(indent)
        keyword_line.put(chain.colon, ":")

        inline_first = chain.keyword.upper not in BLOCK_CHAIN_KEYWORDS
        if inline_first:
            entry_indent = len(keyword_line.text) + 1
        else:
            entry_indent = indent + self.options.indent_width

        def place(rendered: RenderedLine) -> RenderedLine:
            if not rendered.column_zero:
                rendered.indent(entry_indent)
            return rendered

        # A post comment needs the closing period on a line of its own
        post = context.post_comments.get(statement)
        closing: Optional[Token] = None
        code_entries = [entry for entry in chain.entries if not entry.is_comment]
        if post is not None and code_entries and code_entries[-1].tokens:
            if is_period(code_entries[-1].tokens[-1]):
                closing = code_entries[-1].tokens[-1]

        lines: List[RenderedLine] = [keyword_line]
        entries = list(chain.entries)

        if inline_first and entries and not entries[0].is_comment:
            first, *more = self._entry_lines(entries.pop(0), context, closing)
            keyword_line.absorb(first, " ")
            lines.extend(place(rendered) for rendered in more)

        for entry in entries:
            if entry.is_comment:
                lines.append(RenderedLine(self._comment_line(entry_indent, entry.comment),
                                          ends_with_comment=True))
                continue
            lines.extend(place(rendered) for rendered in self._entry_lines(entry, context, closing))

        if closing is not None:
            period_line = RenderedLine()
            period_line.put(closing, self._token_text(closing), entry_indent)
            lines.append(period_line)

        lines = self._merge_leading_punctuation(lines, keep_last=closing is not None)

        trailing = statement.trailing_comment
        if trailing is not None and all(e.trailing_comment is not trailing for e in chain.entries):
            lines[-1].text = self.comments.attach(lines[-1].text, trailing.value)
        if post is not None:
            lines[-1].text = self.comments.attach(lines[-1].text, post.value)
        return lines

    def _entry_lines(self, entry: ChainEntry, context: FormatContext,
                     skip: Optional[Token] = None) -> List[RenderedLine]:
        tokens = [token for token in entry.tokens if token is not skip]
        rendered = self._render_sequence(tokens, context) or [RenderedLine()]
        if entry.trailing_comment is not None:
            first = rendered[0]
            first.text = self.comments.attach(first.text, entry.trailing_comment.value)
            first.ends_with_comment = True
        return rendered
