import pytest

from abaptidy.layout.pipeline import FormattingPipeline
from abaptidy.validator.validator import FormatValidator

ABAP_SAMPLES = [
    "CLASS lcl_app DEFINITION.\nPUBLIC SECTION.\nMETHODS run.\nENDCLASS.\n",
    "METHOD run.\nDATA: lv_a TYPE i, lv_b TYPE string.\nLOOP AT lt_rows INTO DATA(ls_row).\nlv_a = lv_a + 1.\nENDLOOP.\nENDMETHOD.\n",
    "CASE lv_kind.\nWHEN 1.\nlv_x = 1.\nWHEN OTHERS.\nlv_x = 2.\nENDCASE.\n",
    "TRY.\nlo_obj->run( ).\nCATCH cx_root INTO DATA(lx_error).\nRAISE EXCEPTION lx_error.\nENDTRY.\n",
    'METHOD m.\n    any_operation( iv_param = 1 " comment\n                   ). "#EC NEEDED\nENDMETHOD.\n',
    "METHOD m.\n    ev_result = VALUE #( ( a = 2\n                           b = 4\n                         )\n                       ).\nENDMETHOD.\n",
    "METHOD m.\n  lv_value_one      = 1.\n  lv_value_two      = 2.\n  lv_x              = 3.\nENDMETHOD.\n",
    "* header\n\"comment\nIF a = 1.\n  a = 2.\n\n  \" otherwise\nELSE.\n  a = 3.\nENDIF.\n",
    "DATA: lv_a    TYPE i,\n      lv_bb   TYPE string,\n      lv_ccc  TYPE c.\nCLEAR: lv_a, lv_bb.\n",
    "lv_text = |Hello { lv_name }!| && 'x'.\nlv_len = strlen( lv_text ) ##NUMBER_OK.\n",
    "CASE x.\n  WHEN 1.   y      = 1.\n  WHEN 22.  y      = 2.\n  WHEN 333. yy     = 3.\nENDCASE.\n",
    "TYPES: BEGIN OF ty_s,\n         a    TYPE i,\n         bb   TYPE i,\n         ccc  TYPE i,\n       END OF ty_s.\n",
    'CALL METHOD: o->m( a " c\n  ). "#EC NEEDED\n',
    'METHOD m.\n    foo( a "#EC A\n     ). "#EC B\nENDMETHOD.\n',
    "lo_obj->method( ).\nLOOP AT lt INTO DATA(line).\nENDLOOP.\n",
]


@pytest.mark.parametrize("source", ABAP_SAMPLES)
def test_formatting_is_idempotent(source):
    """
    STABILITY TEST: a second pass over formatted output changes nothing.
    """
    pipeline = FormattingPipeline()
    once = pipeline.format(source)
    twice = pipeline.format(once)
    assert twice == once


@pytest.mark.parametrize("source", ABAP_SAMPLES)
def test_formatting_preserves_code_tokens(source):
    """
    INTEGRITY TEST: only whitespace, keyword case and comments may change.
    """
    formatted = FormattingPipeline().format(source)
    ok, message = FormatValidator().validate(source, formatted)
    assert ok, message


def test_no_trailing_whitespace():
    for source in ABAP_SAMPLES:
        for line in FormattingPipeline().format(source).splitlines():
            assert line == line.rstrip()
