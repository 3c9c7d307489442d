#!/usr/bin/env python3
"""
ABAPTIDY SHADOW - Comment Normalizer
------------------------------------
Comments are the part of the source that is not functional code but is
vital for human maintenance. This module decides the blanks around the
`"` comment sign and how a comment is appended to a rendered line.

Pseudo comments ("#EC NEEDED) are read by the ABAP code inspector and are
left exactly as written; full-line `*` comments are never touched.

Author: AbapTidy Team
Date: 2026-10-18
"""

from abaptidy.core.config import FormatterOptions
from abaptidy.core.models import is_pseudo_comment


class CommentNormalizer:
    """Applies the comment-sign spacing options."""

    def __init__(self, options: FormatterOptions):
        self.options = options

    def normalize(self, value: str) -> str:
        """
        Inserts exactly one blank after `"` when the comment text starts
        right after the sign with a letter or digit.
        """
        if not self.options.space_after_comment_sign:
            return value
        stripped = value.lstrip()
        if not stripped.startswith('"') or len(stripped) < 2:
            return value
        if is_pseudo_comment(stripped):
            return value

        following = stripped[1]
        if following.isascii() and following.isalnum():
            leading = value[:len(value) - len(stripped)]
            return f'{leading}" {stripped[1:]}'
        return value

    def needs_space_before(self) -> bool:
        return self.options.space_before_comment_sign

    def attach(self, line: str, value: str) -> str:
        """Appends a comment to an already rendered code line."""
        formatted = self.normalize(value)
        if not self.needs_space_before():
            return line + formatted
        if not line or line.endswith(" "):
            return line + formatted
        return f"{line} {formatted}"
