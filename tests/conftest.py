import pytest

from abaptidy.core.config import FormatterOptions
from abaptidy.layout.lexer import AbapLexer
from abaptidy.layout.pipeline import FormattingPipeline
from abaptidy.layout.structurer import ChainStructurer


def in_method(*lines):
    """Wraps source lines in METHOD m. / ENDMETHOD."""
    return "\n".join(["METHOD m.", *lines, "ENDMETHOD."]) + "\n"


@pytest.fixture
def lexer():
    return AbapLexer()


@pytest.fixture
def build():
    """Source text -> (raw statements, built statements)."""
    def _build(source):
        raws = AbapLexer().split(source)
        return raws, ChainStructurer().build(raws)
    return _build


@pytest.fixture
def fmt():
    def _format(source, **options):
        return FormattingPipeline(FormatterOptions(**options)).format(source)
    return _format
