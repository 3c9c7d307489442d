#!/usr/bin/env python3
"""
ABAPTIDY FORMAT CONTEXT
-----------------------
State of a single formatting run. Every side table written by the layout
rules lives here, keyed by token or statement identity, so that nothing
survives from one document to the next.

Author: AbapTidy Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from abaptidy.core.config import FormatterOptions
from abaptidy.core.models import Comment, Program, RawStatement, Statement, Token


@dataclass
class FormatContext:
    """
    Initialized by the FormattingPipeline and enriched phase by phase.
    """
    raw_text: str                                   # Source as handed in by the caller
    options: FormatterOptions = field(default_factory=FormatterOptions)
    filename: Optional[str] = None
    raw_statements: List[RawStatement] = field(default_factory=list)
    program: Optional[Program] = None
    levels: List[int] = field(default_factory=list) # Indent level per raw statement
    overrides: Dict[Token, int] = field(default_factory=dict)   # Leading spaces per token
    touched: Set[Statement] = field(default_factory=set)        # Had a closing bracket pulled up
    post_comments: Dict[Statement, Comment] = field(default_factory=dict)
    lines: List[str] = field(default_factory=list)
    formatted_text: str = ""
    fallback: bool = False                          # Pass-through instead of layout
    fallback_reason: Optional[str] = None

    @property
    def statements(self) -> List[Statement]:
        return self.program.statements if self.program else []
