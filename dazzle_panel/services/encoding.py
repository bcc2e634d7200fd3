from __future__ import annotations

import base64
from typing import Union

Payload = Union[str, bytes, bytearray, memoryview]


def to_bytes(payload: Payload) -> bytes:
    """
    Normalize a print payload into raw bytes.

    Text is mapped byte-for-byte: each character contributes its low 8 bits.
    ZPL may carry 8-bit binary data (e.g. ~DG graphics) inside a string, and
    a multi-byte text encoding would corrupt it.
    Buffer-protocol objects (bytes, bytearray, memoryview, array('B')) pass through.
    """
    if isinstance(payload, str):
        return bytes(ord(ch) & 0xFF for ch in payload)
    if isinstance(payload, bytes):
        return payload
    try:
        return memoryview(payload).tobytes()
    except TypeError:
        raise TypeError(
            f"Unsupported payload type: {type(payload).__name__}"
        ) from None


def encode_payload(payload: Payload) -> tuple[bytes, str]:
    """Return (raw bytes, base64 text) for a payload."""
    data = to_bytes(payload)
    return data, base64.b64encode(data).decode("ascii")
