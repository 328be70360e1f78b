"""
Wire codecs for the game channel.

JSON text frames are the default wire format (what browser clients speak);
MessagePack binary frames are available for compact clients. Both decode to
a plain dict and share the same size limits.
"""

import json
from enum import StrEnum
from typing import Any

import msgpack


class WireFormat(StrEnum):
    JSON = "json"
    MSGPACK = "msgpack"


class DecodeError(Exception):
    """Error raised when an inbound frame cannot be decoded into a message record."""


# Size limits to prevent resource exhaustion from malicious payloads.
MAX_BUFFER_LEN = 64 * 1024  # 64KB total payload
MAX_STR_LEN = 16 * 1024  # 16KB per string
MAX_BIN_LEN = 16 * 1024  # 16KB per binary
MAX_ARRAY_LEN = 256  # max array elements
MAX_MAP_LEN = 64  # max map entries
MAX_EXT_LEN = 1024  # max extension data


def encode_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def encode_msgpack(data: dict[str, Any]) -> bytes:
    return msgpack.packb(data)


def decode_json(data: str) -> dict[str, Any]:
    """
    Decode a JSON text frame to a dict.

    Raises DecodeError if data is invalid, not an object, or too large.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} characters (max {MAX_BUFFER_LEN})")
    try:
        result = json.loads(data)
    except (json.JSONDecodeError, RecursionError) as e:
        raise DecodeError(f"failed to decode JSON data: {e}") from e
    return _require_dict(result)


def decode_msgpack(data: bytes) -> dict[str, Any]:
    """
    Decode a MessagePack binary frame to a dict.

    Raises DecodeError if data is invalid, not a map, or exceeds size limits.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError, TypeError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e
    return _require_dict(result)


def decode_frame(frame: str | bytes) -> dict[str, Any]:
    """Decode a frame by its kind: text is JSON, binary is MessagePack."""
    if isinstance(frame, str):
        return decode_json(frame)
    return decode_msgpack(frame)


def _require_dict(result: object) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise DecodeError(f"expected object, got {type(result).__name__}")
    return result
