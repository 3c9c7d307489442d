#!/usr/bin/env python3
"""
ABAPTIDY ERRORS
---------------
Exception hierarchy shared by the lexer, the layout pipeline and the
file engine. The two upstream failures are recoverable (the pipeline
degrades to a whitespace-trim pass-through); an internal consistency
error is fatal and always carries the offending source span.

Author: AbapTidy Team
Date: 2026-10-18
"""

from typing import Optional, Any


class AbapTidyError(Exception):
    """Base class for every error raised by the formatter."""


class UpstreamParseFailure(AbapTidyError):
    """The source could not be split into statements."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)


class UpstreamObjectMissing(AbapTidyError):
    """There is no formattable ABAP object for this input."""


class InternalConsistencyError(AbapTidyError):
    """An invariant of the statement model was violated."""

    def __init__(self, message: str, span: Any = None):
        self.span = span
        if span is not None:
            message = (f"{message} at line {span.start_line}, "
                       f"column {span.start_column}")
        super().__init__(message)


class ConfigError(AbapTidyError, ValueError):
    """Invalid formatter options or unreadable configuration file."""
