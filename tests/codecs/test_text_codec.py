"""Unit tests for TextCodec."""

import pytest

from graphpack.codecs.text import WORDS_PER_ROW
from graphpack.codecs.text import TextCodec
from graphpack.exceptions import BinaryMismatch
from graphpack.exceptions import ParseError
from graphpack.exceptions import TypeMismatch
from graphpack.identity import ExecutableIdentity
from graphpack.identity import TypeIdentity
from graphpack.packet import Packet
from graphpack.primitive import WORD_SIZE
from graphpack.service import deserialize
from graphpack.service import try_serialize

FOREIGN_PROGRAM = "0" * 32


@pytest.fixture
def codec():
    return TextCodec()


@pytest.fixture
def packet():
    return try_serialize([1, 2, 3])


def _header(size, program=None, type_fp=None):
    program = program or str(ExecutableIdentity.current())
    type_fp = type_fp or str(TypeIdentity.of(list))
    return f"Serialization Packet, size {size}, program {program}\n, type {type_fp}\n"


class TestEncode:
    """Tests for TextCodec.encode."""

    def test_header_lines(self, codec, packet):
        lines = codec.encode(packet).splitlines()
        assert lines[0] == (
            f"Serialization Packet, size {packet.size}, program {ExecutableIdentity.current()}"
        )
        assert lines[1] == f", type {TypeIdentity.of(list)}"

    def test_rows(self, codec):
        packet = Packet._from_words(list(range(WORDS_PER_ROW + 1)), list)
        lines = codec.encode(packet).splitlines()
        assert len(lines) == 4
        assert lines[2].startswith("0:\t0x")
        assert lines[2].count("\t0x") == WORDS_PER_ROW
        assert lines[3] == f"{WORDS_PER_ROW}:\t0x{WORDS_PER_ROW:0{2 * WORD_SIZE}x}"

    def test_words_are_zero_padded(self, codec):
        line = codec.encode(Packet._from_words([1], list)).splitlines()[2]
        assert line == "0:\t0x" + "0" * (2 * WORD_SIZE - 1) + "1"

    def test_empty_packet_has_only_header(self, codec):
        assert codec.encode(Packet(b"", list)) == _header(0)


class TestDecode:
    """Tests for TextCodec.decode."""

    def test_round_trip(self, codec, packet):
        decoded = codec.decode(codec.encode(packet), list)
        assert decoded == packet
        assert deserialize(decoded) == [1, 2, 3]

    def test_accepts_bytes(self, codec, packet):
        assert codec.decode(codec.encode(packet).encode("utf-8"), list) == packet

    def test_reparses_to_same_words(self, codec, packet):
        header, words = codec.parse(codec.encode(packet))
        assert words == packet._words()
        assert header.size == packet.size

    def test_tolerates_whitespace_and_case(self, codec):
        text = _header(2).replace("\n", "  \n") + "\n0:  0X00000000000000AB \t 0x2  \n\n"
        assert codec.decode(text, list)._words() == (0xAB, 2)

    def test_empty_packet(self, codec):
        assert codec.decode(_header(0), list).size == 0

    def test_rejects_other_type(self, codec, packet):
        with pytest.raises(TypeMismatch):
            codec.decode(codec.encode(packet), dict)

    def test_rejects_other_program(self, codec):
        with pytest.raises(BinaryMismatch):
            codec.decode(_header(1, program=FOREIGN_PROGRAM) + "0:\t0x1\n", list)

    def test_rejects_wrong_word_count(self, codec):
        with pytest.raises(ParseError, match="declares 3 words but holds 2"):
            codec.decode(_header(3) + "0:\t0x1\t0x2\n", list)

    def test_program_is_checked_before_size(self, codec):
        with pytest.raises(BinaryMismatch):
            codec.decode(_header(3, program=FOREIGN_PROGRAM) + "0:\t0x1\n", list)

    def test_size_is_checked_before_type(self, codec):
        with pytest.raises(ParseError):
            codec.decode(_header(3) + "0:\t0x1\n", dict)

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not a packet at all\n",
            "Serialization Packet, size 1, program xyz\n, type abc\n0:\t0x1\n",
            "Serialization Packet, size many, program 0\n, type 0\n",
        ],
        ids=["empty", "garbage", "bad-fingerprints", "bad-size"],
    )
    def test_malformed_header(self, codec, text):
        with pytest.raises(ParseError):
            codec.decode(text, list)

    @pytest.mark.parametrize(
        "rows",
        [
            "1:\t0x1\n",
            "0:\t0x1\n0:\t0x2\n",
            "0:\n",
            "0:\t0xzz\n",
            "0:\t12\n",
            "zero:\t0x1\n",
            "0:\t0x" + "f" * (2 * WORD_SIZE + 1) + "\n",
            "9" * 5000 + ":\t0x1\n",
        ],
        ids=[
            "wrong-start",
            "repeated-index",
            "no-words",
            "bad-hex",
            "no-prefix",
            "bad-index",
            "too-wide",
            "huge-index",
        ],
    )
    def test_malformed_rows(self, codec, rows):
        with pytest.raises(ParseError):
            codec.decode(_header(1) + rows, list)

    def test_invalid_utf8(self, codec):
        with pytest.raises(ParseError, match="UTF-8"):
            codec.decode(b"\xff\xfe", list)


class TestReadHeader:
    """Tests for TextCodec.read_header."""

    def test_reads_foreign_record(self, codec):
        header = codec.read_header(_header(5, program=FOREIGN_PROGRAM))
        assert header.size == 5
        assert str(header.program) == FOREIGN_PROGRAM
        assert header.type == TypeIdentity.of(list)
        assert not header.matches_program

    def test_own_record_matches(self, codec, packet):
        assert codec.read_header(codec.encode(packet)).matches_program
