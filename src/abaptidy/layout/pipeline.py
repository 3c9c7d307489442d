#!/usr/bin/env python3
"""
ABAPTIDY FORMATTING PIPELINE - The Conductor
--------------------------------------------
Central coordinator of a formatting run. Raw text goes through a strict
sequence of phases, each reading what the previous one left on the
FormatContext:

    Lexer -> Builder -> Indentation -> Bracket Reposition -> Comment Merge
          -> Alignment Compression -> Line Renderer

Upstream failures (no statements, unterminated literal or statement)
degrade to a pass-through that only trims trailing whitespace. Internal
consistency errors are never swallowed.

Author: AbapTidy Team
Date: 2026-10-18
"""

import logging
from typing import Optional

from abaptidy.core.config import FormatterOptions
from abaptidy.core.errors import UpstreamObjectMissing, UpstreamParseFailure
from abaptidy.core.models import Program
from abaptidy.layout.context import FormatContext
from abaptidy.layout.exporter import LineExporter
from abaptidy.layout.lexer import AbapLexer
from abaptidy.layout.structurer import ChainStructurer
from abaptidy.rules.alignment import AlignmentCompressor
from abaptidy.rules.brackets import ClosingBracketRepositioner
from abaptidy.rules.indent import IndentationEngine

logger = logging.getLogger("abaptidy.pipeline")


def trim_trailing_whitespace(text: str) -> str:
    """The pass-through used whenever the source cannot be laid out."""
    lines = [line.rstrip() for line in text.replace('\r\n', '\n').replace('\r', '\n').split('\n')]
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) + "\n" if lines else ""


class FormattingPipeline:
    """
    The Orchestrator: one instance can format any number of documents;
    nothing is carried over from one run to the next.
    """

    def __init__(self, options: Optional[FormatterOptions] = None):
        self.options = options or FormatterOptions()
        self.lexer = AbapLexer()
        self.structurer = ChainStructurer()
        self.indenter = IndentationEngine()
        self.repositioner = ClosingBracketRepositioner()
        self.compressor = AlignmentCompressor()
        self.exporter = LineExporter(self.options)

        if self.options.chain_formatting == "expand":
            logger.warning("chain_formatting 'expand' is not implemented; chains are preserved")

    def run(self, source: str, filename: Optional[str] = None) -> FormatContext:
        context = FormatContext(raw_text=source, options=self.options, filename=filename)

        # --- PHASE 1: LEXING ---
        try:
            context.raw_statements = self.lexer.split(source, filename)
        except (UpstreamParseFailure, UpstreamObjectMissing) as e:
            label = filename or "<source>"
            logger.warning(f"Formatting skipped for {label}: {str(e)}")
            context.fallback = True
            context.fallback_reason = str(e)
            context.formatted_text = trim_trailing_whitespace(source)
            return context

        # --- PHASE 2: BUILDER ---
        statements = self.structurer.build(context.raw_statements)
        context.program = Program(filename=filename, source=source, statements=statements)

        # --- PHASE 3: INDENTATION ---
        context.levels = self.indenter.apply(context.raw_statements, statements)

        # --- PHASE 4: CLOSING BRACKETS & COMMENT MERGE ---
        self.repositioner.apply(statements, context)

        # --- PHASE 5: ALIGNMENT COMPRESSION ---
        self.compressor.compute(statements, context)

        # --- PHASE 6: RENDER ---
        context.formatted_text = self.exporter.export(context)
        return context

    def format(self, source: str, filename: Optional[str] = None) -> str:
        return self.run(source, filename).formatted_text


def format_source(source: str, options: Optional[FormatterOptions] = None,
                  filename: Optional[str] = None) -> str:
    """Formats one ABAP document and returns the new text."""
    return FormattingPipeline(options).format(source, filename)
