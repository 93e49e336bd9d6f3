"""
Tests for converting simple values, collections and pointers.
"""

from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

from pytest import raises

from convkit import (
    Config,
    Converter,
    CustomConverterError,
    FieldConversionError,
    Int8,
    NilSourceError,
    PrecisionLossError,
    PreconditionError,
    Ref,
    ShapeMismatchError,
    ValueOverflowError,
    ValueParseError,
    convert,
    convert_type,
)


class Color(IntEnum):
    RED = 1
    GREEN = 2


def test_simple():
    """
    Test conversion among primitives and times.
    """
    assert convert_type("12", int) == 12
    assert convert_type(12, str) == "12"
    assert convert_type(3.0, str) == "3.0"
    assert convert_type(True, int) == 1
    assert convert_type(True, str) == "1"
    assert convert_type("true", bool) is True
    assert convert_type(0, bool) is False
    assert convert_type(127, Int8) == 127
    assert convert_type(complex(5, 0), float) == 5.0

    t = datetime(2021, 6, 3, 13, 21, 22, tzinfo=UTC)
    assert convert_type("2021-06-03T13:21:22Z", datetime) == t
    assert convert_type(t, str) == "2021-06-03T13:21:22Z"
    assert convert_type(t, int) == 1622726482
    assert convert_type(1622726482, datetime) == t
    assert convert_type(t, datetime) is t


def test_simple_errors():
    """
    Test errors are prefixed by the public functions they passed through.
    """
    with raises(
        ValueOverflowError,
        match=r"^convkit\.convert_type: convkit\.simple_to_simple: value overflow "
        r"when converting 1000 \(int\) to int8$",
    ):
        convert_type(1000, Int8)

    with raises(PrecisionLossError, match="lost precision"):
        convert_type(1.5, int)
    with raises(ValueParseError, match=r"cannot parse 'invalid' \(str\) as float64"):
        convert_type("invalid", float)
    with raises(ValueParseError):
        convert_type("2021-06-03", datetime)

    try:
        convert_type(1000, Int8)
    except ValueOverflowError as e:
        assert e.functions == ["convert_type", "simple_to_simple"]
        assert e.detail == "value overflow when converting 1000 (int) to int8"
        assert e.path == "<root>"
        assert e.root_cause is e


def test_subclass():
    """
    Test primitives are re-created as the destination's subclass.
    """
    result = convert_type("2", Color)
    assert result is Color.GREEN

    assert convert_type(1.0, Color) is Color.RED

    with raises(ShapeMismatchError, match="cannot convert 5 \\(int\\) to Color"):
        convert_type(5, Color)


def test_any():
    """
    Test values are passed through to `Any`.
    """
    value = {"a": [1, 2]}
    assert convert_type(value, Any) is value
    assert convert_type(None, Any) is None
    assert convert_type(value, object) is value


def test_nil():
    """
    Test conversion of `None` per destination shape.
    """
    assert convert_type(None, Ref[int]) is None
    assert convert_type(None, int | None) is None
    assert convert_type(Ref(), Ref[int]) is None
    assert convert_type(None, list[int]) == []
    assert convert_type(None, tuple[int, ...]) == ()
    assert convert_type(None, dict[str, int]) == {}

    with raises(NilSourceError, match="cannot convert None to int"):
        convert_type(None, int)
    with raises(NilSourceError):
        convert_type(Ref(Ref()), str)


def test_flatten():
    """
    Test a mapping whose only key is `""` stands for its value.
    """
    assert convert_type({"": 123}, int) == 123
    assert convert_type({"": "12"}, Ref[int]) == Ref(12)
    assert convert_type({"": {"": True}}, str) == "1"

    # not flattened
    assert convert_type({"": 1, "a": 2}, dict[str, int]) == {"": 1, "a": 2}
    assert convert_type({"a": 1}, dict[str, str]) == {"a": "1"}

    # flattened regardless of the destination
    with raises(ShapeMismatchError):
        convert_type({"": 1}, dict[str, int])


def test_pointers():
    """
    Test converting to pointer depths 0 through 3 and back.
    """
    types: list[Any] = [int, Ref[int], Ref[Ref[int]], Ref[Ref[Ref[int]]]]

    for depth, dst_type in enumerate(types):
        result = convert_type("42", dst_type)

        value = result
        for _ in range(depth):
            assert isinstance(value, Ref)
            value = value.value
        assert value == 42

        assert convert_type(result, int) == 42
        assert convert_type(result, str) == "42"

    result = convert_type(7, Ref[Ref[int]])
    assert result == Ref(Ref(7))
    assert result.target_type == Ref[int]
    assert result.value.target_type is int

    # optional layers keep the value as-is
    assert convert_type("7", Ref[int] | None) == Ref(7)
    assert convert_type("7", int | None) == 7


def test_convert():
    """
    Test storing results in references.
    """
    dst = Ref[int]()
    convert("12", dst)
    assert dst.value == 12

    dst = Ref[int](5)
    convert(None, dst)
    assert dst.value == 5

    inner = Ref[int]()
    dst = Ref[Ref[int]](inner)
    convert(Ref(Ref("99")), dst)
    assert dst.value is inner
    assert inner.value == 99

    dst = Ref[list[str]]()
    convert([1, 2], dst)
    assert dst.value == ["1", "2"]

    # untyped cells take the type of their value
    dst = Ref(0.0)
    convert("2.5", dst)
    assert dst.value == 2.5

    with raises(ValueOverflowError, match=r"^convkit\.convert: convkit\.convert_type"):
        convert(1000, Ref[Int8]())


def test_convert_preconditions():
    """
    Test misuse of `convert()` is reported as a precondition error.
    """
    with raises(
        PreconditionError,
        match="^convkit.convert: the destination value must be a pointer$",
    ):
        convert(None, 0)  # type: ignore[arg-type]

    with raises(
        PreconditionError, match="^convkit.convert: the pointer must be initialized$"
    ):
        convert("", Ref[Ref[int]]())

    assert not issubclass(PreconditionError, ValueError)


def test_string_to_slice():
    """
    Test strings are split into lists of simple values.
    """
    assert convert_type("12", list[int]) == [12]
    assert convert_type("12", tuple[int, ...]) == (12,)
    assert convert_type("", list[str]) == [""]

    converter = Converter(Config(string_splitter=lambda s: s.split(",")))
    assert converter.convert_type("1,2,3", list[int]) == [1, 2, 3]
    assert converter.convert_type("a,b", Ref[list[str]]) == Ref(["a", "b"])
    assert converter.string_to_slice("1,0", list[bool]) == [True, False]

    with raises(FieldConversionError) as exc_info:
        converter.convert_type("1,x,3", list[int])
    assert exc_info.value.path == "[1]"
    assert isinstance(exc_info.value.root_cause, ValueParseError)

    with raises(ShapeMismatchError, match="the element's type must be a simple type"):
        converter.convert_type("1,2", list[list[int]])
    with raises(ShapeMismatchError, match="the destination type must be a list"):
        converter.string_to_slice("1", int)

    # only strings can be split
    with raises(ShapeMismatchError, match=r"cannot convert 1 \(int\) to list"):
        convert_type(1, list[int])


def test_slice_to_slice():
    """
    Test elements are converted one by one.
    """
    assert convert_type([1, "2", 3.0], list[str]) == ["1", "2", "3.0"]
    assert convert_type((1, 2), list[int]) == [1, 2]
    assert convert_type([1, 2], tuple[str, ...]) == ("1", "2")
    assert convert_type([[1], [2, 3]], list[list[bool]]) == [[True], [True, True]]
    assert convert_type([None, 1], list[int | None]) == [None, 1]

    src = [1, 2]
    result = convert_type(src, list[int])
    assert result == src
    assert result is not src

    with raises(
        FieldConversionError, match=r"cannot convert to list\[int\], at index 2"
    ) as e:
        convert_type([1, 2, "x"], list[int])
    assert e.value.path == "[2]"
    assert e.value.segment == 2

    with raises(FieldConversionError) as e:
        convert_type([[1], [2, "x"]], list[list[int]])
    assert e.value.path == "[1][1]"

    with raises(ShapeMismatchError):
        convert_type([1], int)
    with raises(ShapeMismatchError, match="the source value must be a list"):
        Converter().slice_to_slice("1", list[int])


def test_map_to_map():
    """
    Test keys and values are converted one by one.
    """
    assert convert_type({"a": "1", 2: 3}, dict[str, int]) == {"a": 1, "2": 3}
    assert convert_type({"1": [1, 2]}, dict[int, list[str]]) == {1: ["1", "2"]}
    assert convert_type({"a": 1}, dict) == {"a": 1}

    with raises(FieldConversionError, match="cannot convert value of key 'b'") as e:
        convert_type({"a": "1", "b": "x"}, dict[str, int])
    assert e.value.path == "b"

    with raises(FieldConversionError, match="cannot convert key 'x' to int") as e:
        convert_type({"x": 1, "y": 2}, dict[int, int])
    assert e.value.path == "x"

    with raises(ShapeMismatchError, match="the destination type must be a dict"):
        Converter().map_to_map({"a": 1}, list[int])


def test_union():
    """
    Test union members are tried in order.
    """
    assert convert_type("12", int | str) == 12
    assert convert_type("abc", int | str) == "abc"
    assert convert_type("1.5", int | float) == 1.5
    assert convert_type(None, int | str | None) is None

    with raises(ShapeMismatchError, match="cannot convert 'abc' \\(str\\) to"):
        convert_type("abc", int | float)


def test_unsupported():
    """
    Test unsupported destination types are rejected.
    """
    with raises(ShapeMismatchError, match=r"cannot convert 1 \(int\) to set"):
        convert_type(1, set[int])
    with raises(ShapeMismatchError):
        convert_type(object(), int)


def test_custom_converters():
    """
    Test custom converters run first and `None` defers to the next one.
    """
    calls: list[Any] = []

    def skip(src: Any, dst_type: Any) -> Any:
        calls.append((src, dst_type))
        return None

    def upper(src: Any, dst_type: Any) -> Any:
        if dst_type is str and isinstance(src, str):
            return src.upper()
        return None

    converter = Converter(Config(custom_converters=(skip, upper)))

    assert converter.convert_type("abc", str) == "ABC"
    assert converter.convert_type(["a", "b"], list[str]) == ["A", "B"]
    assert converter.convert_type("12", int) == 12
    assert ("abc", str) in calls
    assert ("a", str) in calls

    def fail(src: Any, dst_type: Any) -> Any:
        raise ValueError("unsupported value")

    converter = Converter(Config(custom_converters=(fail, upper)))
    with raises(
        CustomConverterError,
        match="custom converter .*fail failed to convert 'abc' \\(str\\) to str: "
        "unsupported value",
    ) as e:
        converter.convert_type("abc", str)
    assert isinstance(e.value.__cause__, ValueError)


def test_simple_methods():
    """
    Test calling the conversions directly.
    """
    converter = Converter()
    t = datetime(2021, 6, 3, 13, 21, 22, tzinfo=UTC)

    assert converter.simple_to_bool(None) is False
    assert converter.simple_to_bool("F") is False
    assert converter.simple_to_bool(t) is True
    assert converter.simple_to_string(t) == "2021-06-03T13:21:22Z"
    assert converter.simple_to_string(1.5) == "1.5"
    assert converter.simple_to_simple("1", float) == 1.0

    with raises(NilSourceError, match="^convkit.simple_to_string: "):
        converter.simple_to_string(None)
    with raises(NilSourceError):
        converter.simple_to_simple(None, int)
    with raises(ShapeMismatchError, match=r"cannot convert '1' \(str\) to list"):
        converter.simple_to_simple("1", list[int])
    with raises(ShapeMismatchError):
        converter.simple_to_string([1])


def test_time_format():
    """
    Test configured time formatting and parsing.
    """
    converter = Converter(
        Config(
            time_to_string=lambda t: t.strftime("%Y/%m/%d"),
            string_to_time=lambda s: datetime.strptime(s, "%Y/%m/%d").replace(
                tzinfo=UTC
            ),
        )
    )
    t = datetime(2021, 6, 3, tzinfo=UTC)

    assert converter.convert_type(t, str) == "2021/06/03"
    assert converter.convert_type("2021/06/03", datetime) == t
    assert converter.convert_type(["2021/06/03"], list[datetime]) == [t]

    with raises(
        ValueParseError, match=r"cannot parse '2021-06-03' \(str\) as datetime"
    ):
        converter.convert_type("2021-06-03", datetime)


def test_zero_time_round_trip():
    """
    Test the zero time survives formatting and parsing with the defaults.
    """
    zero = datetime(1, 1, 1, tzinfo=UTC)
    text = convert_type(zero, str)
    assert text == "0001-01-01T00:00:00Z"
    assert convert_type(text, datetime) == zero
