#!/usr/bin/env python3
"""
ABAPTIDY KEYWORD CASE RULE
--------------------------
Static keyword dictionary and the casing applied to keywords and pragmas.
Identifiers, literals and comments are always emitted exactly as written.

A word that spells a keyword stays a name after `->` and `=>` and inside an
inline declaration (`DATA(line)`). The comparison words (`lt`, `eq` and so
on) are keywords only when an operand stands in front of them.

Author: AbapTidy Team
Date: 2026-10-18
"""

from typing import Optional

from abaptidy.core.config import FormatterOptions
from abaptidy.core.models import Token, TokenRole

KEYWORDS = frozenset("""
ABSTRACT ADD ADJACENT ALIASES ALL AND ANY APPEND APPENDING AS ASCENDING ASSERT
ASSIGN ASSIGNED ASSIGNING AT AUTHORITY-CHECK BACK BEGIN BETWEEN BINARY BOXED
BREAK-POINT BY BYTE CALL CASE CAST CASTING CATCH CHANGING CHAIN CHECK CLASS
CLASS-DATA CLASS-EVENTS CLASS-METHODS CLASS-POOL CLEANUP CLEAR CLIENT CLOSE
COLLECT COMMIT COMPONENTS CONCATENATE COND CONDENSE CONSTANTS CONTINUE CONV
CORRESPONDING CP CREATE CS DATA DEFAULT DEFERRED DEFINE DEFINITION DELETE
DESCENDING DESCRIBE DISTINCT DIV DO DUPLICATES ELSE ELSEIF END END-OF-DEFINITION
END-OF-SELECTION END-TEST-INJECTION END-TEST-SEAM ENDAT ENDCASE ENDCATCH
ENDCHAIN ENDCLASS ENDDO ENDENHANCEMENT ENDEXEC ENDFORM ENDFUNCTION ENDIF
ENDINTERFACE ENDLOOP ENDMETHOD ENDMODULE ENDON ENDPROVIDE ENDSELECT ENDTRY
ENDWHILE EQ EVENTS EXACT EXCEPTIONS EXEC EXIT EXPORT EXPORTING FIELD-SYMBOL
FIELD-SYMBOLS FIELDS FILTER FINAL FIND FIRST FOR FORM FORMAT FREE FRIENDS FROM
FUNCTION FUNCTION-POOL GE GET GROUP GT HASHED HAVING IF IMPLEMENTATION IMPORT
IMPORTING IN INCLUDE INDEX INHERITING INITIAL INITIALIZATION INNER INSERT
INTERFACE INTERFACES INTO IS JOIN KEY LE LEAVE LEFT LET LIKE LINE LINES LOAD
LOCAL LOOP LOWER LT MESSAGE METHOD METHODS MOD MODIFY MODULE MOVE
MOVE-CORRESPONDING NE NEW NEXT NO NOT OBJECT OF OCCURS ON OPTIONAL OR ORDER
OTHERS OUTPUT PARAMETERS PERFORM PRIMARY PRIVATE PROGRAM PROTECTED PUBLIC
RAISE RAISING RANGE RANGES READ READ-ONLY RECEIVING REDEFINITION REDUCE REF
REFERENCE REFRESH REPLACE REPORT RETURN RETURNING ROLLBACK ROWS SECTION SELECT
SELECT-OPTIONS SELECTION-SCREEN SET SHIFT SINGLE SKIP SORT SORTED SPLIT
STANDARD START-OF-SELECTION STRUCTURE SUBMIT SWITCH SYSTEM-EXCEPTIONS TABLE
TABLES TEST-INJECTION TEST-SEAM THEN TIMES TO TRANSLATE TRANSPORTING TRY TYPE
TYPE-POOLS TYPES UNASSIGN UNIQUE UNTIL UP UPDATE UPPER USING VALUE WHEN WHERE
WHILE WITH WORK WRITE
""".split())


COMPARISON_WORDS = frozenset({"EQ", "NE", "LT", "LE", "GT", "GE", "CP", "CS"})
INLINE_DECLARATIONS = frozenset({"DATA", "@DATA", "FINAL", "@FINAL", "FIELD-SYMBOL"})
OPENING_BRACKETS = ("(", "[")


def _is_operand(token: Token) -> bool:
    if token.role is TokenRole.STRING:
        return True
    if token.role is not TokenRole.WORD:
        return False
    if token.text in (")", "]"):
        return True
    head = token.text[:1]
    return (head.isalnum() or head in "_<@/%$") and token.upper not in KEYWORDS


def is_keyword(token: Token, previous: Optional[Token] = None,
               before: Optional[Token] = None) -> bool:
    """
    `previous` and `before` are the two tokens in front of `token`
    within its statement.
    """
    if token.role is not TokenRole.WORD or token.upper not in KEYWORDS:
        return False
    if previous is None:
        return token.upper not in COMPARISON_WORDS
    if previous.role is TokenRole.ARROW:
        return False
    if (previous.text in OPENING_BRACKETS and before is not None
            and before.upper in INLINE_DECLARATIONS):
        return False
    if token.upper in COMPARISON_WORDS:
        return _is_operand(previous)
    return True


def apply_keyword_case(token: Token, options: FormatterOptions, previous: Optional[Token] = None,
                       before: Optional[Token] = None) -> str:
    """Text of a token as it should be printed."""
    if token.role is TokenRole.PRAGMA or is_keyword(token, previous, before):
        return token.upper if options.keyword_case == "upper" else token.text.lower()
    return token.text
