#!/usr/bin/env python3
"""
ABAPTIDY CORE MODELS
--------------------
Defines the fundamental data structures used across the AbapTidy engine.
Tokens and statements are hashed by identity so that the per-run side
tables (spacing overrides, touched statements, post comments) can key
on them directly.

Author: AbapTidy Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# Indent level of synthetic statements: render at their source column.
KEEP_ORIGINAL_INDENT = -1


def is_pseudo_comment(value: str) -> bool:
    """`"#EC NEEDED` style comments, read by the ABAP code inspector."""
    text = value.lstrip()
    return text.startswith('"') and text[1:].lstrip().startswith('#')


class TokenRole(str, Enum):
    WORD = "word"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    PRAGMA = "pragma"
    STRING = "string"
    COLON = "colon"
    ARROW = "arrow"


class StatementKind(str, Enum):
    """Closed set of statement kinds the layout rules care about."""
    OTHER = "Other"
    COMMENT = "Comment"
    IF = "If"
    ELSEIF = "ElseIf"
    ELSE = "Else"
    ENDIF = "EndIf"
    CASE = "Case"
    CASE_TYPE = "CaseType"
    WHEN = "When"
    WHEN_TYPE = "WhenType"
    WHEN_OTHERS = "WhenOthers"
    ENDCASE = "EndCase"
    DO = "Do"
    ENDDO = "EndDo"
    WHILE = "While"
    ENDWHILE = "EndWhile"
    LOOP = "Loop"
    ENDLOOP = "EndLoop"
    SELECT = "Select"
    ENDSELECT = "EndSelect"
    TRY = "Try"
    CATCH = "Catch"
    CLEANUP = "Cleanup"
    ENDTRY = "EndTry"
    CATCH_SYSTEM_EXCEPTIONS = "CatchSystemExceptions"
    ENDCATCH = "EndCatch"
    CLASS_DEFINITION = "ClassDefinition"
    CLASS_IMPLEMENTATION = "ClassImplementation"
    ENDCLASS = "EndClass"
    INTERFACE = "Interface"
    ENDINTERFACE = "EndInterface"
    METHOD = "MethodImplementation"
    ENDMETHOD = "EndMethod"
    FUNCTION = "FunctionModule"
    ENDFUNCTION = "EndFunction"
    MODULE = "Module"
    ENDMODULE = "EndModule"
    FORM = "Form"
    ENDFORM = "EndForm"
    DEFINE = "Define"
    END_OF_DEFINITION = "EndOfDefinition"
    CHAIN = "Chain"
    ENDCHAIN = "EndChain"
    AT = "At"
    ENDAT = "EndAt"
    EXEC = "ExecSQL"
    ENDEXEC = "EndExec"
    TEST_SEAM = "TestSeam"
    END_TEST_SEAM = "EndTestSeam"
    TEST_INJECTION = "TestInjection"
    END_TEST_INJECTION = "EndTestInjection"


@dataclass(frozen=True)
class SourceSpan:
    """Lines are 1-based, columns 0-based, end_column exclusive."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(eq=False)
class Token:
    """
    The atomic lexical unit of an ABAP statement.

    has_following_line_break is the only field that changes after the
    Builder creates the statement; the bracket repositioner owns it.
    """
    role: TokenRole                 # Lexical role (word, comment, pragma...)
    text: str                       # Raw text exactly as written
    span: SourceSpan                # Original source position
    has_following_line_break: bool = False  # Renderer starts a new line after it
    upper: str = field(init=False)  # Uppercased text for keyword lookups

    def __post_init__(self):
        self.upper = self.text.upper()

    @property
    def is_comment(self) -> bool:
        return self.role is TokenRole.COMMENT


@dataclass(eq=False)
class Comment:
    """A comment detached from the token stream."""
    value: str                      # Raw text including the comment sign
    inline: bool                    # Shares its line with preceding code
    span: SourceSpan

    @property
    def is_pseudo(self) -> bool:
        return is_pseudo_comment(self.value)

    @property
    def body(self) -> str:
        """Comment text without its sign and surrounding blanks."""
        text = self.value.strip()
        if text[:1] in ('"', '*'):
            text = text[1:]
        return text.strip()


@dataclass(eq=False)
class ChainEntry:
    """One member of a colon chain, or a comment line between members."""
    tokens: List[Token] = field(default_factory=list)
    trailing_comment: Optional[Comment] = None
    comment: Optional[Comment] = None   # Set only for comment entries

    @property
    def is_comment(self) -> bool:
        return self.comment is not None

    @property
    def start_line(self) -> int:
        if self.comment is not None:
            return self.comment.span.start_line
        return self.tokens[0].span.start_line if self.tokens else 0


@dataclass(eq=False)
class Chain:
    """Statements sharing a `PREFIX:` written once in the source."""
    keyword: Token                  # First prefix token
    prefix: List[Token]             # Every token before the colon
    colon: Token
    entries: List[ChainEntry] = field(default_factory=list)


@dataclass(eq=False)
class RawStatement:
    """
    Input contract of the Builder and the Indentation Engine.

    Tokens are in source order and include inline comment tokens;
    pragmas are kept apart. A non-null colon marks a chain member whose
    tokens start with the shared prefix and colon.
    """
    tokens: List[Token]
    kind: StatementKind = StatementKind.OTHER
    colon: Optional[Token] = None
    pragmas: List[Token] = field(default_factory=list)
    virtual: bool = False           # Synthetic statement without a real position

    @property
    def start_line(self) -> int:
        return self.tokens[0].span.start_line if self.tokens else 0

    @property
    def end_line(self) -> int:
        return self.tokens[-1].span.end_line if self.tokens else 0

    @property
    def raw(self) -> str:
        return " ".join(token.text for token in self.tokens)


@dataclass(eq=False)
class Statement:
    """A fully built statement, ready for the layout rules."""
    tokens: List[Token]
    kind: StatementKind
    span: SourceSpan
    indent_level: int = 0
    trailing_comment: Optional[Comment] = None
    chain: Optional[Chain] = None
    pragmas: List[Token] = field(default_factory=list)
    raw: str = ""
    raw_index: int = 0              # Position of its first raw statement
    virtual: bool = False

    @property
    def is_empty(self) -> bool:
        """Nothing left to render (e.g. a comment merged away)."""
        return not self.tokens and self.trailing_comment is None and self.chain is None

    def attach_trailing_comment(self, comment: Optional[Comment]):
        """Sets the trailing comment, mirrored onto the last chain member."""
        self.trailing_comment = comment
        if self.chain and self.chain.entries and not self.chain.entries[-1].is_comment:
            self.chain.entries[-1].trailing_comment = comment


@dataclass
class Program:
    filename: Optional[str]
    source: str
    statements: List[Statement] = field(default_factory=list)
