from __future__ import annotations

import os
import time
from dataclasses import dataclass
from datetime import UTC, datetime

# KSUID: 4-byte big-endian timestamp (seconds since KSUID_EPOCH) + 16-byte random payload,
# encoded as fixed-width base62.
KSUID_EPOCH = 1_400_000_000
KSUID_BYTES = 20
KSUID_PAYLOAD_BYTES = 16
KSUID_STRING_LENGTH = 27

_BASE62 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_BASE62_INDEX = {c: i for i, c in enumerate(_BASE62)}


@dataclass(frozen=True)
class Ksuid:
    timestamp: int
    payload: bytes

    @property
    def unix_time(self) -> int:
        return self.timestamp + KSUID_EPOCH

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.unix_time, UTC)


def _base62_encode(raw: bytes) -> str:
    n = int.from_bytes(raw, "big")
    chars: list[str] = []
    while n:
        n, rem = divmod(n, 62)
        chars.append(_BASE62[rem])
    return "".join(reversed(chars)).rjust(KSUID_STRING_LENGTH, "0")


def _base62_decode(value: str) -> bytes:
    n = 0
    for c in value:
        idx = _BASE62_INDEX.get(c)
        if idx is None:
            raise ValueError(f"invalid KSUID character {c!r}")
        n = n * 62 + idx
    if n >= 1 << (KSUID_BYTES * 8):
        raise ValueError("KSUID value out of range")
    return n.to_bytes(KSUID_BYTES, "big")


def new_ksuid(*, now: float | None = None, payload: bytes | None = None) -> str:
    """Generate a new KSUID string.

    `now` is a Unix timestamp in seconds; defaults to the current time.
    """

    ts = int(time.time() if now is None else now) - KSUID_EPOCH
    if ts < 0 or ts >= 1 << 32:
        raise ValueError("timestamp outside the KSUID range")

    if payload is None:
        payload = os.urandom(KSUID_PAYLOAD_BYTES)
    if len(payload) != KSUID_PAYLOAD_BYTES:
        raise ValueError(f"KSUID payload must be {KSUID_PAYLOAD_BYTES} bytes")

    return _base62_encode(ts.to_bytes(4, "big") + payload)


def parse_ksuid(value: str) -> Ksuid:
    if not isinstance(value, str) or len(value) != KSUID_STRING_LENGTH:
        raise ValueError(f"KSUID must be a {KSUID_STRING_LENGTH}-character base62 string")

    raw = _base62_decode(value)
    return Ksuid(timestamp=int.from_bytes(raw[:4], "big"), payload=raw[4:])


def is_ksuid(value: str) -> bool:
    try:
        parse_ksuid(value)
    except ValueError:
        return False
    return True
