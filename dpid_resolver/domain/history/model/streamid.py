"""Stream and commit identifiers of the streaming document store.

Textual form is multibase base36 (``k`` prefix) over the bytes::

    varint(0xce) || varint(stream type) || genesis CID || [commit tail]

The commit tail is ``varint(0)`` when the commit is the genesis commit, or
the commit CID otherwise. Only the subset of multiformats needed to read
and write these identifiers is implemented here.
"""

import base64
from dataclasses import dataclass
from typing import Union

from dpid_resolver.domain.shared.error import InvalidIdentifier

STREAMID_CODEC = 0xCE

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

# sha2-256 multihash header, the whole prefix of a CIDv0
_CIDV0_PREFIX = b"\x12\x20"
_CIDV0_LENGTH = 34


# =============================================================================
# Encoding primitives
# =============================================================================


def encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError("varint must be non-negative")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Return (value, offset just past the varint)."""
    value = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise ValueError("truncated varint")
        byte = data[offset]
        offset += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, offset
        shift += 7
        if shift > 63:
            raise ValueError("varint too long")


def basex_encode(data: bytes, alphabet: str) -> str:
    base = len(alphabet)
    zeros = len(data) - len(data.lstrip(b"\x00"))
    num = int.from_bytes(data, "big")
    chars = []
    while num:
        num, rem = divmod(num, base)
        chars.append(alphabet[rem])
    return alphabet[0] * zeros + "".join(reversed(chars))


def basex_decode(text: str, alphabet: str) -> bytes:
    base = len(alphabet)
    num = 0
    for char in text:
        index = alphabet.find(char)
        if index < 0:
            raise ValueError(f"invalid character {char!r}")
        num = num * base + index
    zeros = len(text) - len(text.lstrip(alphabet[0]))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * zeros + body


# =============================================================================
# CIDs
# =============================================================================


def read_cid(data: bytes, offset: int = 0) -> tuple[bytes, int]:
    """Slice one binary CID out of ``data``; return (cid bytes, next offset)."""
    if data[offset : offset + 2] == _CIDV0_PREFIX:
        end = offset + _CIDV0_LENGTH
        if end > len(data):
            raise ValueError("truncated CIDv0")
        return data[offset:end], end

    version, pos = decode_varint(data, offset)
    if version != 1:
        raise ValueError(f"unsupported CID version {version}")
    _codec, pos = decode_varint(data, pos)
    _hash_code, pos = decode_varint(data, pos)
    digest_length, pos = decode_varint(data, pos)
    end = pos + digest_length
    if end > len(data):
        raise ValueError("truncated multihash digest")
    return data[offset:end], end


def cid_to_string(cid: bytes) -> str:
    """CIDv0 as bare base58btc, CIDv1 as base32 lowercase with ``b`` prefix."""
    if len(cid) == _CIDV0_LENGTH and cid.startswith(_CIDV0_PREFIX):
        return basex_encode(cid, BASE58_ALPHABET)
    return "b" + base64.b32encode(cid).decode("ascii").lower().rstrip("=")


def cid_from_string(text: str) -> bytes:
    if len(text) == 46 and text.startswith("Qm"):
        data = basex_decode(text, BASE58_ALPHABET)
    elif text.startswith("b"):
        body = text[1:].upper()
        data = base64.b32decode(body + "=" * (-len(body) % 8))
    elif text.startswith("z"):
        data = basex_decode(text[1:], BASE58_ALPHABET)
    elif text.startswith("k"):
        data = basex_decode(text[1:], BASE36_ALPHABET)
    elif text.startswith("f"):
        data = bytes.fromhex(text[1:])
    else:
        raise ValueError(f"unsupported multibase prefix in {text!r}")

    cid, end = read_cid(data)
    if end != len(data):
        raise ValueError("trailing bytes after CID")
    return cid


# =============================================================================
# Stream and commit IDs
# =============================================================================


@dataclass(frozen=True)
class StreamId:
    stream_type: int
    genesis: bytes

    def to_bytes(self) -> bytes:
        return encode_varint(STREAMID_CODEC) + encode_varint(self.stream_type) + self.genesis

    def __str__(self) -> str:
        return "k" + basex_encode(self.to_bytes(), BASE36_ALPHABET)

    @property
    def genesis_cid(self) -> str:
        return cid_to_string(self.genesis)

    def at_commit(self, cid: str) -> "CommitId":
        """Commit ID for a log entry CID; the genesis CID maps to the genesis commit."""
        commit = cid_from_string(cid)
        return CommitId(stream=self, commit=None if commit == self.genesis else commit)


@dataclass(frozen=True)
class CommitId:
    stream: StreamId
    # None addresses the genesis commit
    commit: bytes | None = None

    def to_bytes(self) -> bytes:
        tail = encode_varint(0) if self.commit is None else self.commit
        return self.stream.to_bytes() + tail

    def __str__(self) -> str:
        return "k" + basex_encode(self.to_bytes(), BASE36_ALPHABET)

    @property
    def commit_cid(self) -> str:
        return cid_to_string(self.commit if self.commit is not None else self.stream.genesis)


StreamRef = Union[StreamId, CommitId]


def _parse(text: str) -> StreamRef:
    if not text.startswith("k"):
        raise ValueError("expected base36 multibase prefix 'k'")
    data = basex_decode(text[1:], BASE36_ALPHABET)

    codec, pos = decode_varint(data)
    if codec != STREAMID_CODEC:
        raise ValueError(f"not a stream ID (codec {codec:#x})")
    stream_type, pos = decode_varint(data, pos)
    genesis, pos = read_cid(data, pos)
    stream = StreamId(stream_type=stream_type, genesis=genesis)

    if pos == len(data):
        return stream
    if data[pos:] == b"\x00":
        return CommitId(stream=stream)
    commit, end = read_cid(data, pos)
    if end != len(data):
        raise ValueError("trailing bytes after commit CID")
    return CommitId(stream=stream, commit=commit)


def parse_stream_ref(text: str) -> StreamRef:
    """Parse a stream ID or a commit ID.

    Raises:
        InvalidIdentifier: if the string is neither.
    """
    try:
        return _parse(text)
    except ValueError as e:
        raise InvalidIdentifier(
            f"Not a stream or commit ID: {text!r} ({e})", field="id"
        ) from e


def parse_stream_id(text: str) -> StreamId:
    """Parse a stream root. A commit ID is rejected."""
    ref = parse_stream_ref(text)
    if not isinstance(ref, StreamId):
        raise InvalidIdentifier(f"Expected a stream ID, got a commit ID: {text!r}", field="id")
    return ref
