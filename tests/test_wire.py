import pytest

from tssh.errors import SshError
from tssh.wire import (
    decode_mpint_unsigned,
    decode_name_list,
    decode_string,
    encode_mpint,
    encode_name_list,
    encode_string,
)


def test_string_round_trip_keeps_trailing_data():
    encoded = encode_string(b"ssh-userauth") + b"tail"
    value, rest = decode_string(encoded)
    assert value == b"ssh-userauth"
    assert rest == b"tail"


def test_string_length_prefix_matches_data():
    encoded = encode_string(b"ssh-rsa")
    assert int.from_bytes(encoded[:4], "big") == len(b"ssh-rsa")
    assert encoded[4:] == b"ssh-rsa"


def test_empty_string_is_four_zero_bytes():
    assert encode_string(b"") == bytes(4)
    assert decode_string(bytes(4)) == (b"", b"")


@pytest.mark.parametrize(
    "names",
    [
        ["ecdh-sha2-nistp256"],
        ["aes256-ctr", "hmac-sha2-256", "none"],
    ],
)
def test_name_list_round_trip(names):
    decoded, rest = decode_name_list(encode_name_list(names) + b"\x01")
    assert decoded == names
    assert rest == b"\x01"


def test_name_list_joins_with_commas():
    encoded = encode_name_list(["a", "b"])
    assert decode_string(encoded)[0] == b"a,b"


def test_empty_name_list_decodes_to_single_empty_name():
    assert decode_name_list(bytes(4)) == ([""], b"")


def test_name_list_invalid_utf8_is_replaced():
    names, _ = decode_name_list(encode_string(b"ok,\xff"))
    assert names[0] == "ok"
    assert names[1] == "\ufffd"


@pytest.mark.parametrize("decoder", [decode_string, decode_name_list, decode_mpint_unsigned])
def test_truncated_length_raises(decoder):
    with pytest.raises(SshError):
        decoder(b"\x00\x00")


@pytest.mark.parametrize("decoder", [decode_string, decode_name_list, decode_mpint_unsigned])
def test_truncated_body_raises(decoder):
    with pytest.raises(SshError):
        decoder(b"\x00\x00\x00\x05abc")


def test_mpint_zero_encodings():
    assert encode_mpint(b"", True) == bytes(4)
    assert encode_mpint(b"\x00\x00", True) == bytes(4)


def test_mpint_rfc_example_positive():
    assert encode_mpint(bytes.fromhex("09a378f9b2e332a7"), True) == bytes.fromhex(
        "0000000809a378f9b2e332a7"
    )


def test_mpint_high_bit_gets_zero_prefix():
    encoded = encode_mpint(b"\x80", True)
    value, rest = decode_string(encoded)
    assert value == b"\x00\x80"
    assert rest == b""


def test_mpint_strips_leading_zeros():
    value, _ = decode_string(encode_mpint(b"\x00\x00\x01\x02", True))
    assert value == b"\x01\x02"


def test_mpint_rfc_examples_negative():
    assert encode_mpint(b"\xff\xff\xed\xcc", False) == bytes.fromhex("00000002edcc")
    assert encode_mpint(b"\xff\x21\x52\x41\x11", False) == bytes.fromhex(
        "00000005ff21524111"
    )


def test_mpint_minus_one():
    value, _ = decode_string(encode_mpint(b"\xff\xff", False))
    assert value == b"\xff"


@pytest.mark.parametrize("number", [1, 0x7F, 0x80, 0xFFFF, 2**255 + 12345])
def test_positive_mpint_round_trip(number):
    raw = number.to_bytes(40, "big")
    decoded, rest = decode_mpint_unsigned(encode_mpint(raw, True))
    assert decoded == number
    assert rest == b""


def test_decode_mpint_unsigned_leaves_rest():
    value, rest = decode_mpint_unsigned(encode_string(b"\x01\x00") + b"xyz")
    assert value == 256
    assert rest == b"xyz"