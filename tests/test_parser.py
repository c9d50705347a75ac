import logging

import pytest

from abi_wizard.abi_types import (
    AddressType,
    AddressValue,
    ArityMismatch,
    ArrayType,
    ArrayValue,
    BoolType,
    BoolValue,
    BytesType,
    BytesValue,
    FixedBytesType,
    HashType,
    HashValue,
    IntType,
    IntValue,
    MalformedLiteral,
    StringType,
    StringValue,
    TupleType,
    TupleValue,
    TypeMismatch,
    UIntType,
)
from abi_wizard.parser import parse_value, split_top_level

ADDRESS = "0xAbC0000000000000000000000000000000000123"


def test_integers_are_base_ten() -> None:
    assert parse_value("42", UIntType()) == IntValue(42)
    assert parse_value(" -7 ", IntType(8)) == IntValue(-7)
    # The encoder rejects negative unsigned values; parsing keeps them.
    assert parse_value("-1", UIntType()) == IntValue(-1)
    assert parse_value("0" * 5000 + "12", UIntType()) == IntValue(12)
    assert parse_value(str(2**256 - 1), UIntType()) == IntValue(2**256 - 1)


@pytest.mark.parametrize("text", ["0x10", "1e3", "", "12a", "1.5", "9" * 79, "9" * 5000, "-" + "1" * 5000])
def test_malformed_integers(text: str) -> None:
    with pytest.raises(MalformedLiteral):
        parse_value(text, UIntType())


def test_bool_true_and_permissive_false(caplog: pytest.LogCaptureFixture) -> None:
    assert parse_value("true", BoolType()) == BoolValue(True)
    assert parse_value("false", BoolType()) == BoolValue(False)
    with caplog.at_level(logging.WARNING):
        assert parse_value("yes", BoolType()) == BoolValue(False)
    assert "as false" in caplog.text


def test_string_is_taken_verbatim() -> None:
    assert parse_value(" [hello], (world) ", StringType()) == StringValue(" [hello], (world) ")


def test_address_is_normalized_to_lowercase() -> None:
    assert parse_value(ADDRESS, AddressType()) == AddressValue(ADDRESS.lower())
    assert parse_value(ADDRESS[2:], AddressType()) == AddressValue(ADDRESS.lower())


@pytest.mark.parametrize("text", ["0x1234", ADDRESS + "00", "0xzz" + "0" * 38, ADDRESS[:-1]])
def test_bad_addresses(text: str) -> None:
    with pytest.raises(MalformedLiteral):
        parse_value(text, AddressType())


def test_hex_byte_types() -> None:
    digest = "0x" + "ab" * 32
    assert parse_value(digest, HashType()) == HashValue(bytes.fromhex("ab" * 32))
    assert parse_value("0x0102", FixedBytesType(2)) == BytesValue(b"\x01\x02")
    assert parse_value("", BytesType()) == BytesValue(b"")
    assert parse_value("0xdeadbeef", BytesType()) == BytesValue(bytes.fromhex("deadbeef"))
    with pytest.raises(MalformedLiteral):
        parse_value("0x01", FixedBytesType(2))
    with pytest.raises(MalformedLiteral):
        parse_value("0x123", BytesType())


def test_array_brackets_are_optional() -> None:
    expected = ArrayValue((IntValue(1), IntValue(2), IntValue(3)))
    assert parse_value("[1,2,3]", ArrayType(UIntType())) == expected
    assert parse_value("1,2,3", ArrayType(UIntType())) == expected
    assert parse_value("[ 1, 2 , 3 ]", ArrayType(UIntType())) == expected


def test_empty_dynamic_array() -> None:
    assert parse_value("[]", ArrayType(UIntType())) == ArrayValue(())
    assert parse_value("", ArrayType(UIntType())) == ArrayValue(())


@pytest.mark.parametrize("text", ["[1,2]", "[1,2,3,4]", "[]"])
def test_fixed_array_arity(text: str) -> None:
    with pytest.raises(ArityMismatch):
        parse_value(text, ArrayType(UIntType(), 3))


def test_tuple_literal() -> None:
    t = TupleType((("amount", UIntType()), ("to", AddressType()), ("flag", BoolType())))
    value = parse_value(f"(1,{ADDRESS},true)", t)
    assert value == TupleValue(
        (
            ("amount", IntValue(1)),
            ("to", AddressValue(ADDRESS.lower())),
            ("flag", BoolValue(True)),
        )
    )


def test_tuple_arity_mismatch() -> None:
    t = TupleType((("a", UIntType()), ("b", UIntType())))
    with pytest.raises(ArityMismatch):
        parse_value("(1,2,3)", t)


def test_nested_composites() -> None:
    pair = TupleType((("a", UIntType()), ("b", StringType())))
    value = parse_value("[(1,x),(2,y)]", ArrayType(pair))
    assert value == ArrayValue(
        (
            TupleValue((("a", IntValue(1)), ("b", StringValue("x")))),
            TupleValue((("a", IntValue(2)), ("b", StringValue("y")))),
        )
    )
    matrix = parse_value("[[1,2],[3]]", ArrayType(ArrayType(UIntType())))
    assert matrix == ArrayValue(
        (ArrayValue((IntValue(1), IntValue(2))), ArrayValue((IntValue(3),)))
    )


@pytest.mark.parametrize(
    "text, t",
    [
        ("[1,2]", UIntType()),
        ("(1,2)", ArrayType(UIntType())),
        ("[1,2]", TupleType((("a", UIntType()), ("b", UIntType())))),
        ("(true)", BoolType()),
    ],
)
def test_shape_mismatch(text: str, t) -> None:
    with pytest.raises(TypeMismatch):
        parse_value(text, t)


def test_split_top_level() -> None:
    assert split_top_level("1,[2,3],(4,5)") == ["1", "[2,3]", "(4,5)"]
    assert split_top_level("   ") == []
    with pytest.raises(MalformedLiteral):
        split_top_level("[1,2")
    with pytest.raises(MalformedLiteral):
        split_top_level("(1]")
