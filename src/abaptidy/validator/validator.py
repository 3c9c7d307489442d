#!/usr/bin/env python3
"""
ABAPTIDY VALIDATOR - The Judge
------------------------------
Final safety gate before the engine writes a formatted file to disk.
Formatting may only move whitespace, change keyword case and rearrange
comments; the re-lexed code token stream and the pragma set must come
out exactly as they went in.

Author: AbapTidy Team
Date: 2026-10-18
"""

import logging
from collections import Counter
from typing import List, Optional, Tuple

from abaptidy.core.errors import UpstreamObjectMissing, UpstreamParseFailure
from abaptidy.layout.lexer import AbapLexer

logger = logging.getLogger("abaptidy.validator")


class FormatValidator:
    """
    Provides the 'Self-Abort' signal when a formatted document no longer
    carries the same program as its source.
    """

    def __init__(self):
        self.lexer = AbapLexer()

    def _code_tokens(self, text: str) -> Tuple[List[str], Counter]:
        raws = self.lexer.split(text)
        words = [
            token.upper
            for raw in raws
            for token in raw.tokens
            if not token.is_comment
        ]
        pragmas = Counter(token.upper for raw in raws for token in raw.pragmas)
        return words, pragmas

    def validate(self, original: str, formatted: str) -> Tuple[bool, str]:
        """Compares code tokens (case-insensitive) and pragmas of both texts."""
        try:
            source_words, source_pragmas = self._code_tokens(original)
        except (UpstreamParseFailure, UpstreamObjectMissing):
            # Nothing was laid out; only trailing whitespace can differ
            if [l.rstrip() for l in original.splitlines() if l.strip()] == \
                    [l.rstrip() for l in formatted.splitlines() if l.strip()]:
                return True, "Source passed through without layout."
            return False, "Validation Failed: pass-through output differs from its source."

        try:
            result_words, result_pragmas = self._code_tokens(formatted)
        except (UpstreamParseFailure, UpstreamObjectMissing) as e:
            return False, f"Validation Failed: formatted text no longer parses ({str(e)})."

        if source_pragmas != result_pragmas:
            return False, "Validation Failed: pragmas were lost or duplicated."

        mismatch = self._first_mismatch(source_words, result_words)
        if mismatch is not None:
            expected = source_words[mismatch] if mismatch < len(source_words) else "<end>"
            found = result_words[mismatch] if mismatch < len(result_words) else "<end>"
            logger.debug(f"Token {mismatch}: expected {expected}, found {found}")
            return False, (f"Validation Failed: code token {mismatch + 1} changed "
                           f"from '{expected}' to '{found}'.")

        return True, "Code tokens and pragmas preserved."

    def check_idempotent(self, pipeline, formatted: str,
                         filename: Optional[str] = None) -> Tuple[bool, str]:
        """Formatting the output again must not change it."""
        again = pipeline.format(formatted, filename)
        if again != formatted:
            return False, "Stability Warning: a second pass changes the output."
        return True, "Output is stable."

    @staticmethod
    def _first_mismatch(left: List[str], right: List[str]) -> Optional[int]:
        for index, (a, b) in enumerate(zip(left, right)):
            if a != b:
                return index
        if len(left) != len(right):
            return min(len(left), len(right))
        return None
