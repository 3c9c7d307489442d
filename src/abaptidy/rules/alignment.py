#!/usr/bin/env python3
"""
ABAPTIDY ALIGNMENT COMPRESSOR - Needless Spaces
-----------------------------------------------
Removes stale padding while keeping intentional vertical alignment.

Every token is registered under one or two column signatures: its start
column (even signature) and, for operators and numeric literals, the
column of its right edge or last integer digit (odd signature). Tokens
sharing a signature on consecutive lines form runs; a run of three or
more is shifted left by the slack all of its members have in common.
Whatever is not part of such a run is condensed to a single blank.

Positions are taken from the layout the Line Renderer produces without
overrides, so a statement that moves to a line of its own or a chain
member that moves to the member column is measured where it will be
printed. The result is a table of leading space overrides keyed by token
identity.

Author: AbapTidy Team
Date: 2026-10-18
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from abaptidy.core.models import Statement, Token, TokenRole
from abaptidy.layout.context import FormatContext
from abaptidy.layout.exporter import LineExporter, Placement

ASSIGNMENT_OPERATORS = {"=", ":=", "+=", "-=", "*=", "/=", "&&=", "?="}
COMPARISON_OPERATORS = {"=", "==", "<>", "!=", "<", "<=", ">", ">="}
NUMERIC_LITERAL = re.compile(r"^[+-]?(?:\d+|'[\d.]+')(?:\.\d+)?$")

# Leading keywords of lines that may sit inside an aligned block
BRIDGE_KEYWORDS = {"ELSE", "ELSEIF", "WHEN"}
EMPTY_PAIRS = {"(": ")", "[": "]"}
MIN_RUN_LENGTH = 3


class TokenClass(str, Enum):
    COLON = "COLON"
    COMMA = "COMMA"
    PERIOD = "PERIOD"
    ASSIGNMENT_OP = "ASSIGNMENT_OP"
    COMPARISON_OP = "COMPARISON_OP"
    COMMENT = "COMMENT"
    PRAGMA = "PRAGMA"
    LITERAL = "LITERAL"
    IDENTIFIER = "IDENTIFIER"


# Classes that only ever align with themselves
EXACT_CLASSES = {
    TokenClass.COLON, TokenClass.COMMA, TokenClass.PERIOD, TokenClass.ASSIGNMENT_OP,
    TokenClass.COMPARISON_OP, TokenClass.COMMENT, TokenClass.PRAGMA,
}
# Never shifted, never condensed
SEPARATOR_CLASSES = {TokenClass.COMMA, TokenClass.PERIOD, TokenClass.COLON}


def classify(token: Token) -> TokenClass:
    text = token.text
    if token.role is TokenRole.COLON:
        return TokenClass.COLON
    if token.role is TokenRole.PUNCTUATION:
        return TokenClass.COMMA if text == "," else TokenClass.PERIOD
    if text in ASSIGNMENT_OPERATORS:
        return TokenClass.ASSIGNMENT_OP
    if text in COMPARISON_OPERATORS:
        return TokenClass.COMPARISON_OP
    if token.role is TokenRole.COMMENT:
        return TokenClass.COMMENT
    if token.role is TokenRole.PRAGMA:
        return TokenClass.PRAGMA
    if token.role is TokenRole.STRING or NUMERIC_LITERAL.match(text):
        return TokenClass.LITERAL
    return TokenClass.IDENTIFIER


def numeric_align_index(text: str) -> int:
    """Offset of the last integer digit: 1 in "'1.5'", 2 in "123"."""
    dot = text.find(".")
    if dot > 0:
        return dot - 1
    for index in range(len(text) - 1, -1, -1):
        if text[index] not in "-'":
            return index
    return 0


@dataclass(eq=False)
class TokenPosition:
    token: Token
    line: int                       # Rendered line number
    start: int                      # Rendered start column
    ordinal: int                    # Index of the owning statement
    spaces: int                     # Blanks before it (its column when leading)
    leading: bool                   # First token of its rendered line
    prev_end: int                   # End column of the previous token (0 when leading)
    token_class: TokenClass
    prev_class: Optional[TokenClass]
    previous: Optional[Token]


def _classes_match(first: TokenClass, second: TokenClass) -> bool:
    if first in EXACT_CLASSES or second in EXACT_CLASSES:
        return first is second
    return True


class AlignmentCompressor:
    """Fills FormatContext.overrides."""

    def compute(self, statements: List[Statement], context: FormatContext) -> Dict[Token, int]:
        overrides = context.overrides
        positions, occupied = self._collect(statements, context)

        first_of_line: Dict[int, TokenPosition] = {}
        signatures: Dict[int, List[TokenPosition]] = defaultdict(list)
        for position in positions:
            if position.leading:
                first_of_line.setdefault(position.line, position)
            signatures[2 * position.start].append(position)
            if position.token_class in (TokenClass.ASSIGNMENT_OP, TokenClass.COMPARISON_OP):
                right_edge = position.start + len(position.token.text) - 1
                signatures[2 * right_edge + 1].append(position)
            elif NUMERIC_LITERAL.match(position.token.text):
                digit = position.start + numeric_align_index(position.token.text)
                signatures[2 * digit + 1].append(position)
        bridges = {line for line, leader in first_of_line.items() if leader.token.upper in BRIDGE_KEYWORDS}

        grouped: Set[Token] = set()
        processed: Set[Token] = set()

        # --- PHASE 1: aligned runs, right-most columns first ---
        for key in sorted(signatures, reverse=True):
            group = sorted(signatures[key], key=lambda p: (p.line, p.ordinal, p.start))
            column = key // 2
            start = 0
            while start < len(group):
                run = [group[start]]
                index = start + 1
                while index < len(group):
                    candidate = group[index]
                    if self._gap_breaks_run(run[-1], candidate, run[0], column, first_of_line, occupied):
                        break
                    if not self._fits_run(run[0], candidate):
                        # Tokens on ELSE / WHEN lines do not interrupt a run passing through
                        if candidate.line in bridges and run[0].line not in bridges:
                            index += 1
                            continue
                        break
                    run.append(candidate)
                    index += 1
                start = index
                if len(run) < MIN_RUN_LENGTH:
                    continue
                if any(p.token in processed for p in run):
                    continue
                self._compress(run, key % 2 == 1, overrides, grouped, processed)

        # --- PHASE 2: condense everything that is not aligned ---
        for position in positions:
            if position.leading or position.token in grouped or position.token in overrides:
                continue
            if position.token_class in SEPARATOR_CLASSES:
                continue
            if position.token_class in (TokenClass.COMMENT, TokenClass.PRAGMA):
                continue
            if position.spaces > 1:
                overrides[position.token] = 1

        # --- PHASE 3: stray blanks inside empty brackets ---
        for position in positions:
            previous = position.previous
            if previous is None or position.leading or position.spaces == 0:
                continue
            if EMPTY_PAIRS.get(previous.text) == position.token.text:
                overrides[position.token] = 0

        return overrides

    def _compress(self, run: List[TokenPosition], derived: bool, overrides: Dict[Token, int],
                  grouped: Set[Token], processed: Set[Token]):
        if derived:
            if len({p.start for p in run}) == 1:
                return
            for p in run:
                grouped.add(p.token)
            anchors = [p.prev_end for p in run if not p.leading]
            if not anchors:
                return
            anchor = max(anchors)
            for p in run:
                processed.add(p.token)
            spare = min(p.start - anchor - 1 for p in run)
        else:
            for p in run:
                grouped.add(p.token)
            spare = min(p.spaces - 1 for p in run)

        if spare <= 0 or any(p.leading for p in run):
            return
        for p in run:
            if p.token_class in SEPARATOR_CLASSES or p.token_class is TokenClass.COMMENT:
                continue
            overrides[p.token] = max(0, p.spaces - spare)

    def _gap_breaks_run(self, previous: TokenPosition, candidate: TokenPosition, first: TokenPosition,
                        column: int, first_of_line: Dict[int, TokenPosition], occupied: Set[int]) -> bool:
        if (first.token_class is TokenClass.COMMENT
                or previous.ordinal == candidate.ordinal
                or candidate.line <= previous.line + 1):
            return False
        for line in range(previous.line + 1, candidate.line):
            if line not in occupied:
                return True
            leader = first_of_line.get(line)
            if leader is None:
                continue
            if leader.start < column and leader.token.upper not in BRIDGE_KEYWORDS:
                return True
        return False

    def _fits_run(self, first: TokenPosition, candidate: TokenPosition) -> bool:
        # Right-hand sides of assignments line up whatever they are
        if first.prev_class is TokenClass.ASSIGNMENT_OP and candidate.prev_class is TokenClass.ASSIGNMENT_OP:
            return True
        return _classes_match(first.token_class, candidate.token_class)

    def _collect(self, statements: List[Statement],
                 context: FormatContext) -> Tuple[List[TokenPosition], Set[int]]:
        """
        Positions as the Line Renderer will print them before any override,
        plus the rendered lines that are not blank.
        """
        owner: Dict[Token, int] = {}
        for ordinal, statement in enumerate(statements):
            sequence = statement.tokens
            if statement.chain is not None:
                sequence = statement.chain.prefix + [statement.chain.colon] + statement.tokens
            for token in sequence:
                owner[token] = ordinal

        lines = LineExporter(context.options).render(statements, context)
        positions: List[TokenPosition] = []
        occupied: Set[int] = set()
        last_class: Dict[int, TokenClass] = {}
        for number, line in enumerate(lines):
            if line.text.strip():
                occupied.add(number)
            previous: Optional[Placement] = None
            for placement in line.placements:
                token = placement.token
                ordinal = owner.get(token, -1)
                if previous is None:
                    spaces, prev_end = placement.column, 0
                else:
                    prev_end = previous.column + previous.width
                    spaces = placement.column - prev_end
                token_class = classify(token)
                positions.append(TokenPosition(
                    token=token,
                    line=number,
                    start=placement.column,
                    ordinal=ordinal,
                    spaces=spaces,
                    leading=previous is None,
                    prev_end=prev_end,
                    token_class=token_class,
                    prev_class=last_class.get(ordinal),
                    previous=previous.token if previous else None,
                ))
                last_class[ordinal] = token_class
                previous = placement
        return positions, occupied
