"""Encoding and decoding of SSH wire data types (RFC 4251, section 5)."""

from __future__ import annotations

from collections.abc import Iterable

from tssh.errors import SshError

BytesLike = bytes | bytearray | memoryview


def _split(data: BytesLike, length: int, what: str) -> tuple[bytes, bytes]:
    if len(data) < length:
        raise SshError(f"Truncated {what}: expected {length} bytes, found {len(data)}")
    return bytes(data[:length]), bytes(data[length:])


def _take_field(data: BytesLike, what: str) -> tuple[bytes, bytes]:
    header, rest = _split(data, 4, f"{what} length")
    return _split(rest, int.from_bytes(header, "big"), what)


def encode_string(data: BytesLike) -> bytes:
    """Encode bytes as an SSH ``string``: a uint32 length followed by the data."""
    return len(data).to_bytes(4, "big") + bytes(data)


def decode_string(data: BytesLike) -> tuple[bytes, bytes]:
    """Decode an SSH ``string``; return its contents and the remaining bytes."""
    return _take_field(data, "string")


def encode_name_list(names: Iterable[str]) -> bytes:
    """Encode names as an SSH ``name-list``."""
    return encode_string(",".join(names).encode("utf-8"))


def decode_name_list(data: BytesLike) -> tuple[list[str], bytes]:
    """Decode an SSH ``name-list``; return the names and the remaining bytes."""
    field, rest = _take_field(data, "name-list")
    return field.decode("utf-8", errors="replace").split(","), rest


def decode_mpint_unsigned(data: BytesLike) -> tuple[int, bytes]:
    """Decode an ``mpint`` as an unsigned big-endian integer."""
    field, rest = _take_field(data, "mpint")
    return int.from_bytes(field, "big"), rest


def encode_mpint(num: BytesLike, is_positive: bool) -> bytes:
    """Encode a big-endian two's-complement byte string as an SSH ``mpint``.

    With ``is_positive`` the bytes are read as an unsigned magnitude; otherwise
    they are read as a negative number in two's complement.
    """
    digits = bytes(num)
    if not digits:
        return bytes(4)

    if is_positive:
        body = digits.lstrip(b"\x00")
        if not body:
            return bytes(4)
        if body[0] >= 0x80:
            body = b"\x00" + body
    else:
        body = digits.lstrip(b"\xff")
        if not body:
            return b"\x00\x00\x00\x01\xff"
        if body[0] < 0x80:
            body = b"\xff" + body

    return encode_string(body)