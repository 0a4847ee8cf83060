"""Tests for stream/commit identifier codecs."""

import pytest

from dpid_resolver.domain.history.model.streamid import (
    BASE36_ALPHABET,
    CommitId,
    basex_encode,
    cid_from_string,
    cid_to_string,
    decode_varint,
    encode_varint,
    parse_stream_id,
    parse_stream_ref,
)
from dpid_resolver.domain.shared.error import InvalidIdentifier

from tests.fakes import cid_str, make_cid, make_stream


class TestVarint:
    @pytest.mark.parametrize(
        ("value", "encoded"),
        [(0, b"\x00"), (1, b"\x01"), (127, b"\x7f"), (128, b"\x80\x01"), (300, b"\xac\x02"), (0xCE, b"\xce\x01")],
    )
    def test_known_encodings(self, value: int, encoded: bytes):
        assert encode_varint(value) == encoded
        assert decode_varint(encoded) == (value, len(encoded))

    def test_truncated_varint_is_rejected(self):
        with pytest.raises(ValueError):
            decode_varint(b"\x80")


class TestCid:
    def test_cidv0_keeps_base58_form(self):
        text = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"
        cid = cid_from_string(text)
        assert len(cid) == 34
        assert cid[:2] == b"\x12\x20"
        assert cid_to_string(cid) == text

    def test_cidv1_renders_as_base32(self):
        text = cid_str(1)
        assert text.startswith("bafyrei")
        assert cid_from_string(text) == make_cid(1)

    def test_unknown_multibase_is_rejected(self):
        with pytest.raises(ValueError):
            cid_from_string("xyz")


class TestStreamId:
    def test_stream_id_renders_base36(self):
        stream = make_stream(7)
        text = str(stream)
        assert text.startswith("k")
        assert parse_stream_id(text) == stream

    def test_genesis_commit_has_zero_tail(self):
        stream = make_stream(7)
        commit = stream.at_commit(stream.genesis_cid)
        assert commit.commit is None
        assert commit.to_bytes().endswith(b"\x00")
        assert commit.commit_cid == stream.genesis_cid

    def test_commit_id_round_trips_through_text(self):
        stream = make_stream(7)
        commit = stream.at_commit(cid_str(99))
        parsed = parse_stream_ref(str(commit))
        assert isinstance(parsed, CommitId)
        assert parsed.stream == stream
        assert parsed.commit_cid == cid_str(99)

    def test_parse_stream_id_rejects_commit(self):
        commit = make_stream(7).at_commit(cid_str(99))
        with pytest.raises(InvalidIdentifier):
            parse_stream_id(str(commit))

    @pytest.mark.parametrize("text", ["", "46", "kzzzz", "bafyreib", "not-a-stream"])
    def test_garbage_is_invalid_identifier(self, text: str):
        with pytest.raises(InvalidIdentifier) as exc_info:
            parse_stream_ref(text)
        assert exc_info.value.field == "id"

    def test_wrong_codec_is_rejected(self):
        # A raw CID (codec 0x55) in stream ID position
        data = encode_varint(0x55) + encode_varint(0) + make_cid(1)
        with pytest.raises(InvalidIdentifier):
            parse_stream_ref("k" + basex_encode(data, BASE36_ALPHABET))
