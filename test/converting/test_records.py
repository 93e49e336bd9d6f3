"""
Tests for converting records to and from mappings and other records.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pytest import raises

from convkit import (
    Config,
    Converter,
    FieldConversionError,
    Ref,
    ShapeMismatchError,
    SimpleMatcherConfig,
    SimpleMatcherCreator,
    ValueParseError,
    convert_type,
    embedded,
)


@dataclass
class Address:
    city: str = ""
    zip_code: int = 0


@dataclass
class User:
    name: str = ""
    age: int = 0
    tags: list[str] = field(default_factory=list)
    address: Address = field(default_factory=Address)
    nickname: Ref[str] | None = None


@dataclass
class UserView:
    name: str = ""
    age: str = ""
    email: str = "unknown"


@dataclass
class Flat:
    flag: bool = False
    count: int = 0
    ratio: float = 0.0
    label: str = ""
    created: datetime = datetime(2000, 1, 1, tzinfo=UTC)


@dataclass
class Audit:
    created_by: str = ""
    revision: int = 0


@dataclass
class Document:
    title: str = field(default="", metadata={"json": "Title"})
    audit: Ref[Audit] | None = embedded(default=None)
    scores: dict[str, int] = field(default_factory=dict)


@dataclass
class Holder:
    values: dict[str, Any] = field(default_factory=dict)
    items: list[Any] = field(default_factory=list)


def make_user() -> User:
    return User(
        name="Ann",
        age=30,
        tags=["a", "b"],
        address=Address(city="Oslo", zip_code=150),
        nickname=Ref("Annie"),
    )


def test_map_to_record():
    """
    Test matching keys to fields and converting the values.
    """
    src = {
        "name": "Ann",
        "age": "30",
        "tags": "x",
        "address": {"city": "Oslo", "zip_code": "150"},
        "unknown": object(),
    }
    user = convert_type(src, User)
    assert user == User(
        name="Ann", age=30, tags=["x"], address=Address(city="Oslo", zip_code=150)
    )
    assert user.nickname is None

    # unmatched fields keep their defaults
    assert convert_type({}, User) == User()
    assert convert_type({"Name": "Bob"}, User) == User()

    user = convert_type({"nickname": "Annie"}, User)
    assert isinstance(user.nickname, Ref)
    assert user.nickname.value == "Annie"

    user = convert_type({"name": "Ann"}, Ref[User])
    assert isinstance(user, Ref)
    assert user.value == User(name="Ann")


def test_map_to_record_errors():
    """
    Test errors identify the failing field.
    """
    with raises(FieldConversionError, match="error on converting field 'age'") as e:
        convert_type({"age": "old"}, User)
    assert e.value.path == "age"
    assert isinstance(e.value.root_cause, ValueParseError)

    with raises(FieldConversionError) as e:
        convert_type({"address": {"city": "Oslo", "zip_code": "x"}}, User)
    assert e.value.path == "address.zip_code"

    with raises(ShapeMismatchError, match="the keys must be str, got 1 \\(int\\)"):
        convert_type({1: "a", "name": "b"}, User)

    with raises(ShapeMismatchError):
        convert_type("Ann", User)
    with raises(ShapeMismatchError, match="the destination type must be a record"):
        Converter().map_to_record({"a": 1}, dict[str, int])


def test_first_key_wins():
    """
    Test the first key matching a field is used.
    """
    converter = Converter(
        Config(
            field_matcher_creator=SimpleMatcherCreator(
                SimpleMatcherConfig(case_insensitive=True)
            )
        )
    )
    user = converter.convert_type({"NAME": "a", "name": "b", "AGE": 1}, User)
    assert user.name == "a"
    assert user.age == 1

    # later duplicates are not converted
    user = converter.convert_type({"age": 2, "Age": "invalid"}, User)
    assert user.age == 2


def test_camel_snake_keys():
    """
    Test keys in camel-case matching snake-case fields.
    """
    converter = Converter(
        Config(
            field_matcher_creator=SimpleMatcherCreator(
                SimpleMatcherConfig(camel_snake_case=True)
            )
        )
    )
    address = converter.convert_type({"City": "Oslo", "zipCode": 150}, Address)
    assert address == Address(city="Oslo", zip_code=150)


def test_record_to_map():
    """
    Test records are folded into dicts; `None` fields are dropped.
    """
    user = make_user()
    assert convert_type(user, dict) == {
        "name": "Ann",
        "age": 30,
        "tags": ["a", "b"],
        "address": {"city": "Oslo", "zip_code": 150},
        "nickname": "Annie",
    }

    user.nickname = None
    result = Converter().record_to_map(user)
    assert "nickname" not in result
    assert result["tags"] is not user.tags

    assert convert_type(user, dict[str, Any]) == result
    assert convert_type(user, Ref[dict[str, Any]]) == Ref(result)
    assert convert_type(Address("Oslo", 150), dict[str, str]) == {
        "city": "Oslo",
        "zip_code": "150",
    }

    with raises(ShapeMismatchError, match="the key type must be str, got int"):
        convert_type(user, dict[int, Any])
    with raises(FieldConversionError):
        convert_type(user, dict[str, int])


def test_record_to_map_nested_values():
    """
    Test nested collections are rebuilt with `str` keys and without `None`
    values.
    """
    created = datetime(2021, 6, 3, tzinfo=UTC)
    holder = Holder(
        values={1: "a", "b": None, "c": [Ref(1), Address("Oslo", 1)], "d": created},
        items=[{"x": Ref(2)}, (1, 2)],
    )
    assert convert_type(holder, dict) == {
        "values": {
            "1": "a",
            "c": [1, {"city": "Oslo", "zip_code": 1}],
            "d": created,
        },
        "items": [{"x": 2}, [1, 2]],
    }

    with raises(FieldConversionError) as e:
        convert_type(Holder(items=[1, object()]), dict)
    assert e.value.path == "items[1]"
    assert isinstance(e.value.root_cause, ShapeMismatchError)


def test_record_to_map_tags():
    """
    Test tag values are used as keys and embedded records are flattened.
    """
    converter = Converter(
        Config(
            field_matcher_creator=SimpleMatcherCreator(SimpleMatcherConfig(tag="json"))
        )
    )
    doc = Document(title="Report", audit=Ref(Audit("ann", 3)), scores={"a": 1})
    result = converter.convert_type(doc, dict)
    assert result == {
        "Title": "Report",
        "scores": {"a": 1},
        "created_by": "ann",
        "revision": 3,
    }

    assert converter.convert_type(result, Document) == doc
    assert converter.convert_type(Document(title="x"), dict) == {
        "Title": "x",
        "scores": {},
    }

    # embedded pointers are allocated only if a field below them is set
    assert converter.convert_type({"Title": "x"}, Document).audit is None


def test_round_trip():
    """
    Test converting a record to a dict and back reproduces the record.
    """
    flat = Flat(
        flag=True,
        count=-5,
        ratio=0.25,
        label="x",
        created=datetime(2021, 6, 3, 13, 21, 22, tzinfo=UTC),
    )
    assert convert_type(convert_type(flat, dict), Flat) == flat
    assert convert_type(convert_type(Flat(), dict), Flat) == Flat()

    user = make_user()
    assert convert_type(convert_type(user, dict), User) == user


def test_record_to_record():
    """
    Test fields are matched by name and converted.
    """
    user = make_user()
    view = convert_type(user, UserView)
    assert view == UserView(name="Ann", age="30", email="unknown")

    back = convert_type(view, User)
    assert back == User(name="Ann", age=30)

    with raises(FieldConversionError, match="error on converting field 'age'"):
        convert_type(UserView(age="x"), User)
    with raises(ShapeMismatchError, match="the source value must be a record"):
        Converter().record_to_record({"name": "Ann"}, User)


def test_deep_clone():
    """
    Test converting a record to its own type makes an independent deep copy.
    """
    user = make_user()
    clone = convert_type(user, User)

    assert clone == user
    assert clone is not user
    assert clone.tags is not user.tags
    assert clone.address is not user.address
    assert clone.nickname is not user.nickname

    clone.tags.append("c")
    clone.address.city = "Bergen"
    assert user.tags == ["a", "b"]
    assert user.address.city == "Oslo"

    doc = Document(title="t", audit=Ref(Audit("ann", 1)), scores={"a": 1})
    clone_doc = convert_type(doc, Document)
    assert clone_doc == doc
    assert clone_doc.audit is not doc.audit
    assert clone_doc.scores is not doc.scores
