#!/usr/bin/env python3
"""
ABAPTIDY INDENTATION ENGINE
---------------------------
Assigns a nesting depth to every raw statement in one forward pass.

Block closers and block splitters (ELSE, WHEN, CATCH...) outdent before
they are printed; block openers indent whatever follows. A comment that
follows a blank line and introduces a splitter (a comment describing the
ELSE branch) is outdented together with the splitter it belongs to.
SELECT opens a block only when an ENDSELECT closes it.

Author: AbapTidy Team
Date: 2026-10-18
"""

from typing import Dict, List, Optional, Set

from abaptidy.core.models import KEEP_ORIGINAL_INDENT, RawStatement, Statement, StatementKind
from abaptidy.layout.scanner import OPTIONAL_BLOCK_CLOSERS, traits_of


class IndentationEngine:
    """Computes levels over the flattened raw statement stream."""

    def compute_levels(self, raws: List[RawStatement]) -> List[int]:
        optional_blocks = self._find_optional_blocks(raws)
        levels: List[int] = []
        depth = 0
        align_target: Optional[int] = None
        align_depth: Optional[int] = None

        for index, raw in enumerate(raws):
            # 1. Synthetic statements keep their original column
            if raw.virtual:
                levels.append(KEEP_ORIGINAL_INDENT)
                continue

            traits = traits_of(raw.kind)
            if traits.dedent_before or traits.middle:
                depth = max(depth - 1, 0)

            if align_target is not None and index >= align_target:
                align_target, align_depth = None, None

            if align_target is None:
                target = self._find_alignment_target(raws, index, depth)
                if target is not None:
                    align_target, align_depth = target, max(depth - 1, 0)

            levels.append(depth if align_depth is None else align_depth)

            if traits.indent_after and (not traits.optional_block or index in optional_blocks):
                depth += 1

        return levels

    def apply(self, raws: List[RawStatement], statements: List[Statement]) -> List[int]:
        """Writes the computed level onto every built statement."""
        levels = self.compute_levels(raws)
        for statement in statements:
            statement.indent_level = levels[statement.raw_index]
        return levels

    def _find_optional_blocks(self, raws: List[RawStatement]) -> Set[int]:
        """Indices of optional-block openers that have a matching closer."""
        openers: Dict[StatementKind, StatementKind] = {
            closer: opener for opener, closer in OPTIONAL_BLOCK_CLOSERS.items()
        }
        stacks: Dict[StatementKind, List[int]] = {opener: [] for opener in OPTIONAL_BLOCK_CLOSERS}
        matched: Set[int] = set()

        for index, raw in enumerate(raws):
            if raw.kind in stacks:
                stacks[raw.kind].append(index)
            elif raw.kind in openers:
                stack = stacks[openers[raw.kind]]
                if stack:
                    matched.add(stack.pop())
        return matched

    def _has_blank_line_above(self, raws: List[RawStatement], index: int) -> bool:
        if index == 0:
            return False
        return raws[index].start_line - raws[index - 1].end_line >= 2

    def _find_alignment_target(self, raws: List[RawStatement], index: int,
                               depth: int) -> Optional[int]:
        """
        Index of the splitter statement a standalone comment introduces.
        """
        if depth <= 0 or raws[index].kind is not StatementKind.COMMENT:
            return None
        if not self._has_blank_line_above(raws, index):
            return None

        cursor = index + 1
        while (cursor < len(raws) and raws[cursor].kind is StatementKind.COMMENT
               and not self._has_blank_line_above(raws, cursor)):
            cursor += 1

        if cursor < len(raws) and traits_of(raws[cursor].kind).middle:
            return cursor
        return None
