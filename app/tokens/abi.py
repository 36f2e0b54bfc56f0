from __future__ import annotations

WORD = 32


def _read_word(data: bytes, start: int) -> int | None:
    if start < 0 or start + WORD > len(data):
        return None
    return int.from_bytes(data[start : start + WORD], "big")


def decode_abi_string(hex_data: str | None) -> str | None:
    """
    Decode an ABI-encoded dynamic ``string`` return value.

    Layout: word 0 is the offset of the string, the word at that offset is its
    byte length, followed by the UTF-8 payload. Returns None for anything that
    does not fit that layout, including tokens that return a fixed ``bytes32``.
    """
    if not hex_data or not isinstance(hex_data, str):
        return None
    if not hex_data.startswith(("0x", "0X")):
        return None
    try:
        data = bytes.fromhex(hex_data[2:])
    except ValueError:
        return None

    offset = _read_word(data, 0)
    if offset is None:
        return None
    length = _read_word(data, offset)
    if length is None or length == 0:
        return None

    start = offset + WORD
    if start + length > len(data):
        return None

    try:
        text = data[start : start + length].decode("utf-8")
    except UnicodeDecodeError:
        return None

    text = text.rstrip("\x00")
    return text or None
