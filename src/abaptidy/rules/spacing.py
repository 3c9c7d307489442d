#!/usr/bin/env python3
"""
ABAPTIDY SPACING RULES
----------------------
The minimum number of blanks between two tokens on one rendered line,
and the blanks the Line Renderer finally prints.

Brackets, `+` and `-` keep the adjacency they had in the source: ABAP
distinguishes `meth( x )` from `meth ( x )` and `-1` from `- 1`, so
neither direction is safe to normalize.

Author: AbapTidy Team
Date: 2026-10-18
"""

from typing import Dict, Optional

from abaptidy.core.config import FormatterOptions
from abaptidy.core.models import Token, TokenRole

STICKY_TEXTS = {"(", ")", "[", "]", "+", "-"}


def original_spaces(previous: Token, token: Token) -> int:
    """Blanks between two tokens in the source, 0 across lines."""
    if previous.span.end_line != token.span.start_line:
        return 0
    return max(token.span.start_column - previous.span.end_column, 0)


def _adjacent(previous: Token, token: Token) -> bool:
    return (previous.span.end_line == token.span.start_line
            and token.span.start_column == previous.span.end_column)


def minimum_spaces(token: Token, previous: Optional[Token], options: FormatterOptions) -> int:
    if previous is None:
        return 0
    if token.role is TokenRole.PUNCTUATION:
        # Space before period / comma
        return 1 if options.space_before_period else 0
    if token.role is TokenRole.COMMENT:
        return 1 if options.space_before_comment_sign else 0
    if token.role is TokenRole.ARROW or previous.role is TokenRole.ARROW:
        return 0
    if token.role is TokenRole.COLON:
        return 0
    if token.text in STICKY_TEXTS or previous.text in STICKY_TEXTS:
        return 0 if _adjacent(previous, token) else 1
    return 1


def leading_spaces(token: Token, previous: Optional[Token], options: FormatterOptions,
                   overrides: Dict[Token, int]) -> int:
    """
    Blanks printed in front of a token that is not the first on its line.
    """
    minimum = minimum_spaces(token, previous, options)
    override = overrides.get(token)
    if override is not None:
        return max(override, minimum)
    if minimum == 0:
        return 0
    return max(original_spaces(previous, token), minimum)
