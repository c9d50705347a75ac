import pytest

from abi_wizard.abi_types import (
    AddressType,
    AddressValue,
    ArrayType,
    ArrayValue,
    BoolType,
    BoolValue,
    BytesType,
    BytesValue,
    DecodingError,
    EncodingError,
    FixedBytesType,
    HashType,
    HashValue,
    IntType,
    IntValue,
    StringType,
    StringValue,
    TupleType,
    TupleValue,
    UIntType,
)
from abi_wizard.codec import (
    decode_values,
    encode_call,
    encode_value,
    encode_values,
    named_values,
)
from abi_wizard.parser import parse_value
from abi_wizard.registry import function_selector


def word(value: int) -> bytes:
    return value.to_bytes(32, "big")


def test_balance_of_call_data() -> None:
    holder = "0x" + "11" * 20
    selector = function_selector("balanceOf(address)")
    payload = encode_call(selector, [AddressType()], [AddressValue(holder)])
    assert payload.hex() == "70a08231" + "00" * 12 + "11" * 20


def test_zero_argument_call_is_just_the_selector() -> None:
    selector = function_selector("totalSupply()")
    assert encode_call(selector, [], []) == bytes.fromhex("18160ddd")


def test_static_scalars() -> None:
    assert encode_value(UIntType(8), IntValue(255)) == word(255)
    assert encode_value(IntType(8), IntValue(-1)) == b"\xff" * 32
    assert encode_value(BoolType(), BoolValue(True)) == word(1)
    assert encode_value(FixedBytesType(2), BytesValue(b"\x01\x02")) == b"\x01\x02" + b"\x00" * 30
    assert encode_value(HashType(), HashValue(b"\xaa" * 32)) == b"\xaa" * 32


@pytest.mark.parametrize(
    "t, value",
    [
        (UIntType(8), IntValue(256)),
        (UIntType(), IntValue(-1)),
        (IntType(8), IntValue(128)),
        (IntType(8), IntValue(-129)),
        (UIntType(), BoolValue(True)),
        (FixedBytesType(4), BytesValue(b"\x01")),
        (ArrayType(UIntType(), 2), ArrayValue((IntValue(1),))),
    ],
)
def test_encode_rejects_out_of_range_or_mismatched(t, value) -> None:
    with pytest.raises(EncodingError):
        encode_value(t, value)


def test_dynamic_values_use_offsets() -> None:
    encoded = encode_values([UIntType(), StringType()], [IntValue(7), StringValue("abc")])
    assert encoded == word(7) + word(64) + word(3) + b"abc" + b"\x00" * 29

    array = encode_values([ArrayType(UIntType())], [ArrayValue((IntValue(1), IntValue(2)))])
    assert array == word(32) + word(2) + word(1) + word(2)


def test_fixed_array_of_static_values_is_inline() -> None:
    encoded = encode_values(
        [ArrayType(UIntType(), 2), BoolType()],
        [ArrayValue((IntValue(1), IntValue(2))), BoolValue(False)],
    )
    assert encoded == word(1) + word(2) + word(0)


def test_round_trip_nested_composites() -> None:
    inner = TupleType((("id", UIntType()), ("label", StringType())))
    types = [
        ArrayType(inner),
        ArrayType(ArrayType(UIntType(16)), 2),
        BytesType(),
        IntType(32),
        AddressType(),
    ]
    values = [
        ArrayValue(
            (
                TupleValue((("id", IntValue(1)), ("label", StringValue("one")))),
                TupleValue((("id", IntValue(2)), ("label", StringValue("")))),
            )
        ),
        ArrayValue((ArrayValue((IntValue(3), IntValue(4))), ArrayValue(()))),
        BytesValue(b"\x00" * 40),
        IntValue(-123456),
        AddressValue("0x" + "ab" * 20),
    ]
    assert decode_values(types, encode_values(types, values)) == values


@pytest.mark.parametrize(
    "text, t",
    [
        ("-5", IntType(16)),
        (str(2**256 - 1), UIntType()),
        ("0x" + "Ab" * 20, AddressType()),
        ("true", BoolType()),
        ("hello, [world]", StringType()),
        ("0xdeadbeef", FixedBytesType(4)),
        ("0xdeadbeef", BytesType()),
        ("", BytesType()),
        ("[[1,2],[3]]", ArrayType(ArrayType(UIntType(8)))),
        ("[(1,abc),(2,)]", ArrayType(TupleType((("id", UIntType()), ("label", StringType()))))),
        (
            "(7,[0x01,0x0203],(false,-1))",
            TupleType(
                (
                    ("n", UIntType(32)),
                    ("blobs", ArrayType(BytesType(), 2)),
                    ("flag", TupleType((("on", BoolType()), ("delta", IntType())))),
                )
            ),
        ),
    ],
)
def test_parsed_literals_survive_encode_and_decode(text, t) -> None:
    value = parse_value(text, t)
    assert decode_values([t], encode_values([t], [value])) == [value]


def test_decode_rejects_short_or_invalid_data() -> None:
    with pytest.raises(DecodingError):
        decode_values([UIntType()], b"\x00" * 31)
    with pytest.raises(DecodingError):
        decode_values([BoolType()], word(2))
    with pytest.raises(DecodingError):
        decode_values([UIntType(8)], word(256))
    with pytest.raises(DecodingError):
        decode_values([ArrayType(UIntType())], word(32) + word(5) + word(1))


def test_named_values_numbers_unnamed_outputs() -> None:
    values = [IntValue(1), IntValue(2)]
    assert named_values(["balance", ""], values) == [
        ("balance", IntValue(1)),
        ("output1", IntValue(2)),
    ]
