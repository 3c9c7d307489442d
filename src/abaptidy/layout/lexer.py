#!/usr/bin/env python3
"""
ABAPTIDY LEXER - Statement Splitter (Phase 1.1)
-----------------------------------------------
Decomposes raw ABAP source into positioned tokens and groups them into
RawStatement models: one per period-terminated statement, one per chain
member and one per standalone comment line. This is only as much grammar
as the layout rules need; nothing here validates ABAP syntax.

Author: AbapTidy Team
Date: 2026-10-18
"""

import re
from typing import List, Optional

from abaptidy.core.errors import UpstreamObjectMissing, UpstreamParseFailure
from abaptidy.core.models import RawStatement, SourceSpan, StatementKind, Token, TokenRole
from abaptidy.layout.scanner import StatementScanner

# Longest operators first so that "&&=" wins over "&&" and "&"
OPERATORS = (
    "&&=", "->*", "**=", "**", "<>", "<=", ">=", "+=", "-=", "*=", "/=", "?=",
    "&&", "->", "=>", "=", "<", ">", "+", "-", "*", "/", "&", "?",
)
ARROWS = {"->", "=>", "->*"}
BRACKETS = set("()[]{}")
WORD_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_%$#/~!@")

PRAGMA_PATTERN = re.compile(r"##[A-Za-z0-9_]+(?:\[[^\]]*\])*")
FIELD_SYMBOL_PATTERN = re.compile(r"<[A-Za-z0-9_/]+>")

# Data definitions hold no ABAP object; any other file is read as a program
NO_OBJECT_SUFFIXES = (".ddlsrc",)


class AbapLexer:
    """
    Turns source text into RawStatements.
    Tracks chain state (shared `PREFIX:`) and bracket depth across lines.
    """

    def __init__(self):
        self.scanner = StatementScanner()

    def _clean_artifacts(self, text: str) -> str:
        """
        Removes invisible UTF-8 BOM markers and standardizes line endings.
        """
        text = text.lstrip('\ufeff')
        return text.replace('\r\n', '\n').replace('\r', '\n')

    def check_filename(self, filename: Optional[str]):
        """Raises UpstreamObjectMissing for files that hold no ABAP object."""
        if filename is None:
            return
        if filename.lower().endswith(NO_OBJECT_SUFFIXES):
            raise UpstreamObjectMissing(f"No ABAP object can be derived from '{filename}'")

    # --- TOKEN LEVEL ---

    def tokenize_line(self, line: str, line_no: int) -> List[Token]:
        """Splits one source line into tokens. Columns are 0-based."""
        tokens: List[Token] = []
        n = len(line)

        # Full-line comment: asterisk in the very first column
        if line.startswith('*'):
            text = line.rstrip()
            return [self._token(TokenRole.COMMENT, text, line_no, 0)]

        pos = 0
        while pos < n:
            char = line[pos]
            if char.isspace():
                pos += 1
                continue

            if char == '"':
                text = line[pos:].rstrip()
                tokens.append(self._token(TokenRole.COMMENT, text, line_no, pos))
                break

            if char in ("'", '`'):
                end = self._scan_quoted(line, pos, char, line_no)
                tokens.append(self._token(TokenRole.STRING, line[pos:end], line_no, pos))
                pos = end
                continue

            if char == '|':
                end = self._scan_template(line, pos, line_no)
                tokens.append(self._token(TokenRole.STRING, line[pos:end], line_no, pos))
                pos = end
                continue

            if line.startswith("##", pos):
                match = PRAGMA_PATTERN.match(line, pos)
                if match:
                    tokens.append(self._token(TokenRole.PRAGMA, match.group(), line_no, pos))
                    pos = match.end()
                    continue

            if char in ".,":
                tokens.append(self._token(TokenRole.PUNCTUATION, char, line_no, pos))
                pos += 1
                continue

            if char == ':':
                tokens.append(self._token(TokenRole.COLON, char, line_no, pos))
                pos += 1
                continue

            if char in BRACKETS:
                tokens.append(self._token(TokenRole.WORD, char, line_no, pos))
                pos += 1
                continue

            if char == '<':
                match = FIELD_SYMBOL_PATTERN.match(line, pos)
                if match:
                    end = self._scan_word(line, match.end(), pos)
                    tokens.append(self._token(TokenRole.WORD, line[pos:end], line_no, pos))
                    pos = end
                    continue

            if self._starts_word(line, pos):
                end = self._scan_word(line, pos + 1, pos)
                tokens.append(self._token(TokenRole.WORD, line[pos:end], line_no, pos))
                pos = end
                continue

            operator = next((op for op in OPERATORS if line.startswith(op, pos)), None)
            if operator:
                role = TokenRole.ARROW if operator in ARROWS else TokenRole.WORD
                tokens.append(self._token(role, operator, line_no, pos))
                pos += len(operator)
                continue

            # Anything else stands on its own
            tokens.append(self._token(TokenRole.WORD, char, line_no, pos))
            pos += 1

        return tokens

    def _starts_word(self, line: str, pos: int) -> bool:
        char = line[pos]
        nxt = line[pos + 1] if pos + 1 < len(line) else ""
        if char == '/':
            # "/ns/class" or "/5" are words, "a / b" and "/=" are operators
            return nxt.isalnum() or nxt == '_'
        if char == '&':
            # Macro placeholders (&1)
            return nxt.isdigit()
        return char in WORD_CHARS

    def _scan_word(self, line: str, pos: int, start: int) -> int:
        n = len(line)
        while pos < n:
            char = line[pos]
            if char in WORD_CHARS:
                pos += 1
                continue
            nxt = line[pos + 1] if pos + 1 < n else ""
            # Component selector (ls_row-field, CLASS-DATA) and offsets (text+3)
            if char == '-' and pos > start and (nxt.isalnum() or nxt in "_<"):
                pos += 1
                continue
            if char == '+' and pos > start and nxt.isdigit():
                pos += 1
                continue
            break
        return pos

    def _scan_quoted(self, line: str, pos: int, quote: str, line_no: int) -> int:
        i = pos + 1
        while i < len(line):
            if line[i] == quote:
                if i + 1 < len(line) and line[i + 1] == quote:
                    i += 2
                    continue
                return i + 1
            i += 1
        raise UpstreamParseFailure("Unterminated literal", line=line_no)

    def _scan_template(self, line: str, pos: int, line_no: int) -> int:
        i = pos + 1
        depth = 0
        while i < len(line):
            char = line[i]
            if depth == 0:
                if char == '\\':
                    i += 2
                    continue
                if char == '|':
                    return i + 1
                if char == '{':
                    depth = 1
            else:
                if char == '{':
                    depth += 1
                elif char == '}':
                    depth -= 1
                elif char == '|':
                    i = self._scan_template(line, i, line_no)
                    continue
                elif char in ("'", '`'):
                    i = self._scan_quoted(line, i, char, line_no)
                    continue
            i += 1
        raise UpstreamParseFailure("Unterminated string template", line=line_no)

    def _token(self, role: TokenRole, text: str, line_no: int, column: int) -> Token:
        span = SourceSpan(line_no, column, line_no, column + len(text))
        return Token(role=role, text=text, span=span)

    # --- STATEMENT LEVEL ---

    def split(self, source: str, filename: Optional[str] = None) -> List[RawStatement]:
        """
        Primary interface for the FormattingPipeline.
        Raises UpstreamObjectMissing / UpstreamParseFailure when the source
        cannot be turned into statements.
        """
        self.check_filename(filename)
        text = self._clean_artifacts(source)
        if not text.strip():
            raise UpstreamObjectMissing("Source contains no ABAP statements")

        statements: List[RawStatement] = []
        pending: List[Token] = []
        pragmas: List[Token] = []
        prefix: Optional[List[Token]] = None
        colon: Optional[Token] = None
        depth = 0

        for line_no, line in enumerate(text.split('\n'), 1):
            for token in self.tokenize_line(line, line_no):
                if token.role is TokenRole.COMMENT:
                    if pending:
                        pending.append(token)
                    else:
                        statements.append(RawStatement(tokens=[token], kind=StatementKind.COMMENT))
                    continue

                if token.role is TokenRole.PRAGMA:
                    pragmas.append(token)
                    continue

                # 1. Chain opener: everything so far becomes the shared prefix
                if token.role is TokenRole.COLON and prefix is None and depth == 0:
                    prefix, colon, pending = pending, token, []
                    continue

                if token.text in ("(", "["):
                    depth += 1
                elif token.text in (")", "]"):
                    depth = max(depth - 1, 0)
                pending.append(token)

                # 2. Terminators: period always, comma only between chain members
                if token.role is not TokenRole.PUNCTUATION:
                    continue
                if token.text == '.' or (prefix is not None and depth == 0):
                    statements.append(self._build(prefix, colon, pending, pragmas))
                    pending, pragmas = [], []
                    if token.text == '.':
                        prefix, colon, depth = None, None, 0

        if pending or pragmas or prefix is not None:
            leftover = pending or pragmas or [colon]
            raise UpstreamParseFailure("Statement is not terminated by a period",
                                       line=leftover[0].span.start_line)
        return statements

    def _build(self, prefix: Optional[List[Token]], colon: Optional[Token],
               member: List[Token], pragmas: List[Token]) -> RawStatement:
        tokens = member if prefix is None else prefix + [colon] + member
        return RawStatement(
            tokens=tokens,
            kind=self.scanner.classify(tokens),
            colon=colon,
            pragmas=list(pragmas),
        )
