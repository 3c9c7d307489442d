#!/usr/bin/env python3
"""
ABAPTIDY SCANNER - Statement Classifier
---------------------------------------
Identifies the kind of every statement from its leading keywords and holds
the decision tables that tell the Indentation Engine which kinds open,
close or split a block.

Author: AbapTidy Team
Date: 2026-10-18
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from abaptidy.core.models import StatementKind, Token, TokenRole

K = StatementKind


@dataclass(frozen=True)
class KindTraits:
    dedent_before: bool = False     # Closes a block: outdent before printing
    indent_after: bool = False      # Opens a block: indent what follows
    middle: bool = False            # Splits a block (ELSE, WHEN, CATCH...)
    optional_block: bool = False    # Opens a block only when its closer exists


_CLOSE = KindTraits(dedent_before=True)
_OPEN = KindTraits(indent_after=True)
_MIDDLE = KindTraits(indent_after=True, middle=True)

KIND_TRAITS: Dict[StatementKind, KindTraits] = {
    K.IF: _OPEN, K.ELSEIF: _MIDDLE, K.ELSE: _MIDDLE, K.ENDIF: _CLOSE,
    K.CASE: _OPEN, K.CASE_TYPE: _OPEN, K.ENDCASE: _CLOSE,
    K.WHEN: _MIDDLE, K.WHEN_TYPE: _MIDDLE, K.WHEN_OTHERS: _MIDDLE,
    K.DO: _OPEN, K.ENDDO: _CLOSE,
    K.WHILE: _OPEN, K.ENDWHILE: _CLOSE,
    K.LOOP: _OPEN, K.ENDLOOP: _CLOSE,
    K.SELECT: KindTraits(indent_after=True, optional_block=True), K.ENDSELECT: _CLOSE,
    K.TRY: _OPEN, K.CATCH: _MIDDLE, K.CLEANUP: _MIDDLE, K.ENDTRY: _CLOSE,
    K.CATCH_SYSTEM_EXCEPTIONS: _OPEN, K.ENDCATCH: _CLOSE,
    K.CLASS_DEFINITION: _OPEN, K.CLASS_IMPLEMENTATION: _OPEN, K.ENDCLASS: _CLOSE,
    K.INTERFACE: _OPEN, K.ENDINTERFACE: _CLOSE,
    K.METHOD: _OPEN, K.ENDMETHOD: _CLOSE,
    K.FUNCTION: _OPEN, K.ENDFUNCTION: _CLOSE,
    K.MODULE: _OPEN, K.ENDMODULE: _CLOSE,
    K.FORM: _OPEN, K.ENDFORM: _CLOSE,
    K.DEFINE: _OPEN, K.END_OF_DEFINITION: _CLOSE,
    K.CHAIN: _OPEN, K.ENDCHAIN: _CLOSE,
    K.AT: _OPEN, K.ENDAT: _CLOSE,
    K.EXEC: _OPEN, K.ENDEXEC: _CLOSE,
    K.TEST_SEAM: _OPEN, K.END_TEST_SEAM: _CLOSE,
    K.TEST_INJECTION: _OPEN, K.END_TEST_INJECTION: _CLOSE,
}

_NO_TRAITS = KindTraits()

# Closer matched by the optional-block pre-pass
OPTIONAL_BLOCK_CLOSERS: Dict[StatementKind, StatementKind] = {K.SELECT: K.ENDSELECT}

# Leading keywords that map to a single kind on their own
_SIMPLE_KINDS: Dict[str, StatementKind] = {
    "IF": K.IF, "ELSEIF": K.ELSEIF, "ELSE": K.ELSE, "ENDIF": K.ENDIF,
    "ENDCASE": K.ENDCASE,
    "DO": K.DO, "ENDDO": K.ENDDO,
    "WHILE": K.WHILE, "ENDWHILE": K.ENDWHILE,
    "LOOP": K.LOOP, "ENDLOOP": K.ENDLOOP,
    "SELECT": K.SELECT, "ENDSELECT": K.ENDSELECT,
    "TRY": K.TRY, "CLEANUP": K.CLEANUP, "ENDTRY": K.ENDTRY, "ENDCATCH": K.ENDCATCH,
    "ENDCLASS": K.ENDCLASS, "ENDINTERFACE": K.ENDINTERFACE,
    "METHOD": K.METHOD, "ENDMETHOD": K.ENDMETHOD,
    "FUNCTION": K.FUNCTION, "ENDFUNCTION": K.ENDFUNCTION,
    "MODULE": K.MODULE, "ENDMODULE": K.ENDMODULE,
    "FORM": K.FORM, "ENDFORM": K.ENDFORM,
    "DEFINE": K.DEFINE, "END-OF-DEFINITION": K.END_OF_DEFINITION,
    "CHAIN": K.CHAIN, "ENDCHAIN": K.ENDCHAIN,
    "ENDAT": K.ENDAT,
    "EXEC": K.EXEC, "ENDEXEC": K.ENDEXEC,
    "TEST-SEAM": K.TEST_SEAM, "END-TEST-SEAM": K.END_TEST_SEAM,
    "TEST-INJECTION": K.TEST_INJECTION, "END-TEST-INJECTION": K.END_TEST_INJECTION,
}

# Block-opening forms of AT (AT SELECTION-SCREEN etc. are events, not blocks)
_AT_BLOCKS = {"FIRST", "LAST", "NEW", "END"}


def traits_of(kind: StatementKind) -> KindTraits:
    return KIND_TRAITS.get(kind, _NO_TRAITS)


class StatementScanner:
    """
    Maps the leading keywords of a statement onto a StatementKind.
    Comments, pragmas and the chain colon are ignored while classifying.
    """

    def classify(self, tokens: Sequence[Token]) -> StatementKind:
        words = self._keywords(tokens)
        if not words:
            return K.COMMENT if any(t.is_comment for t in tokens) else K.OTHER

        first = words[0]
        second = words[1] if len(words) > 1 else None

        if first in _SIMPLE_KINDS:
            return _SIMPLE_KINDS[first]
        if first == "CASE":
            return K.CASE_TYPE if words[1:3] == ["TYPE", "OF"] else K.CASE
        if first == "WHEN":
            if second == "OTHERS":
                return K.WHEN_OTHERS
            return K.WHEN_TYPE if second == "TYPE" else K.WHEN
        if first == "CATCH":
            return K.CATCH_SYSTEM_EXCEPTIONS if second == "SYSTEM-EXCEPTIONS" else K.CATCH
        if first == "CLASS":
            return self._classify_class(words)
        if first == "INTERFACE":
            if "DEFERRED" in words or "LOAD" in words:
                return K.OTHER
            return K.INTERFACE
        if first == "AT" and second in _AT_BLOCKS:
            return K.AT
        return K.OTHER

    def _classify_class(self, words: List[str]) -> StatementKind:
        # Forward declarations and friendship grants do not open a block
        if "DEFERRED" in words or "LOAD" in words:
            return K.OTHER
        if "LOCAL" in words and "FRIENDS" in words:
            return K.OTHER
        if "DEFINITION" in words:
            return K.CLASS_DEFINITION
        if "IMPLEMENTATION" in words:
            return K.CLASS_IMPLEMENTATION
        return K.OTHER

    def _keywords(self, tokens: Sequence[Token]) -> List[str]:
        return [
            t.upper for t in tokens
            if t.role not in (TokenRole.COMMENT, TokenRole.PRAGMA, TokenRole.COLON)
        ]

