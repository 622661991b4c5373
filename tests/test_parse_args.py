"""Tests for info-string argument parsing."""

from dataclasses import dataclass
from typing import Optional

import pytest

from tutorialgen.directives.parse_args import (
    Number,
    ToBool,
    optional,
    parse_args,
    required,
    tokenize,
)
from tutorialgen.errors import ValidationError
from tutorialgen.types import Kind


@dataclass
class ShotArgs:
    filename: str
    width: int
    alt: Optional[str] = None
    retina: bool = False
    scale: Optional[float] = None


FIELDS = [
    required("filename"),
    required("width", Number),
    optional("alt"),
    optional("retina", ToBool, False),
    optional("scale", Number),
]


class TestCoercions:
    """Tests for the String/Number/ToBool coercions."""

    def test_number_int_and_float(self):
        assert Number("800") == 800
        assert isinstance(Number("800"), int)
        assert Number("1.5") == 1.5
        assert Number("2.0") == 2
        assert isinstance(Number("2.0"), int)

    def test_number_rejects_garbage(self):
        with pytest.raises(ValueError):
            Number("wide")
        with pytest.raises(ValueError):
            Number("inf")

    @pytest.mark.parametrize("raw", ["true", "YES", "on", "1"])
    def test_to_bool_true(self, raw):
        assert ToBool(raw) is True

    @pytest.mark.parametrize("raw", ["false", "No", "off", "0"])
    def test_to_bool_false(self, raw):
        assert ToBool(raw) is False

    def test_to_bool_rejects_other_values(self):
        with pytest.raises(ValueError):
            ToBool("maybe")


class TestTokenize:
    """Tests for splitting the info-string into key/value pairs."""

    def test_quoted_values_and_bare_flags(self, make_block):
        block = make_block(Kind.SCREENSHOT, 'alt="The home page" retina filename=a.png')
        assert tokenize(block) == {"alt": "The home page", "retina": "true", "filename": "a.png"}

    def test_duplicate_key_rejected(self, make_block):
        block = make_block(Kind.SCREENSHOT, "width=1 width=2")
        with pytest.raises(ValidationError, match="more than once"):
            tokenize(block)

    def test_unbalanced_quote_rejected(self, make_block):
        block = make_block(Kind.SCREENSHOT, 'alt="oops')
        with pytest.raises(ValidationError):
            tokenize(block)


class TestParseArgs:
    """Tests for building the typed args record."""

    def test_parses_into_dataclass(self, make_block):
        block = make_block(Kind.SCREENSHOT, "filename=a.png width=800 retina=true scale=1.5")
        args = parse_args(block, FIELDS, ShotArgs)
        assert args == ShotArgs(filename="a.png", width=800, alt=None, retina=True, scale=1.5)

    def test_integer_is_accepted_for_float_field(self, make_block):
        block = make_block(Kind.SCREENSHOT, "filename=a.png width=800 scale=2")
        assert parse_args(block, FIELDS, ShotArgs).scale == 2.0

    def test_defaults_applied(self, make_block):
        args = parse_args(make_block(Kind.SCREENSHOT, "filename=a.png width=10"), FIELDS, ShotArgs)
        assert args.retina is False
        assert args.alt is None

    def test_missing_required_field_names_it(self, make_block):
        block = make_block(Kind.SCREENSHOT, "width=10", line=7)
        with pytest.raises(ValidationError) as exc:
            parse_args(block, FIELDS, ShotArgs)
        assert "filename" in str(exc.value)
        assert "line 7" in str(exc.value)

    def test_unknown_argument_rejected(self, make_block):
        block = make_block(Kind.SCREENSHOT, "filename=a.png width=10 heigth=5")
        with pytest.raises(ValidationError, match="heigth"):
            parse_args(block, FIELDS, ShotArgs)

    def test_bad_number_rejected(self, make_block):
        block = make_block(Kind.SCREENSHOT, "filename=a.png width=wide")
        with pytest.raises(ValidationError, match="invalid value for 'width'"):
            parse_args(block, FIELDS, ShotArgs)

    def test_fractional_value_for_int_field_rejected(self, make_block):
        block = make_block(Kind.SCREENSHOT, "filename=a.png width=10.5")
        with pytest.raises(ValidationError):
            parse_args(block, FIELDS, ShotArgs)
