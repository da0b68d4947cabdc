"""Tests for the note record codec."""

import struct

import pytest

from shlibguard.errors import MalformedObjectError, TruncatedRecordError
from shlibguard.notes.codec import (
    RawNote,
    decode_note,
    decode_notes,
    encode_note,
    encode_notes,
    round_up,
)


@pytest.mark.parametrize(
    "n,expected",
    [(0, 0), (1, 4), (3, 4), (4, 4), (5, 8), (4095, 4096), (4096, 4096), (4097, 4100), (-3, 0)],
)
def test_round_up(n, expected):
    assert round_up(n) == expected


@pytest.mark.parametrize("size", [0, 1, 3, 4, 5, 4095, 4096, 4097])
def test_padding_boundaries_survive_decode(size):
    name = b"n" * size
    content = bytes(i % 251 for i in range(size))
    data = encode_note(name, 7, content, "little")
    assert len(data) == 12 + 2 * round_up(size)

    assert decode_notes(data, "little") == (RawNote(name=name, tag=7, content=content),)


def test_go_abihash_layout():
    """The hash content starts 16 bytes into the record: 12-byte header + 4-byte name."""
    data = encode_note(b"Go\x00\x00", 2, b"\xaa" * 20, "little")
    assert data[:12] == struct.pack("<iii", 4, 20, 2)
    assert data[12:16] == b"Go\x00\x00"
    assert data[16:36] == b"\xaa" * 20


def test_padding_bytes_are_discarded():
    data = struct.pack("<iii", 3, 5, 1) + b"dep\xff" + b"hello\xee\xee\xee"
    (note,) = decode_notes(data, "little")
    assert note.name == b"dep"
    assert note.content == b"hello"


def test_big_endian():
    data = encode_note(b"Go\x00\x00", 3, b"libruntime.so", "big")
    assert data[:12] == struct.pack(">iii", 4, 13, 3)
    assert decode_notes(data, "big")[0].content == b"libruntime.so"


def test_several_notes_in_one_section():
    notes = [
        RawNote(b"Go\x00\x00", 1, b"dep\n"),
        RawNote(b"GNU\x00", 3, b"\x01" * 20),
        RawNote(b"Go\x00\x00", 3, b""),
    ]
    assert decode_notes(encode_notes(notes, "little"), "little") == tuple(notes)


def test_empty_section_has_no_notes():
    assert decode_notes(b"", "little") == ()


def test_decode_note_threads_cursor():
    first = encode_note(b"a", 1, b"xy", "little")
    second = encode_note(b"bcde", 2, b"z", "little")
    data = first + second

    note, cursor = decode_note(data, 0, "little")
    assert note.tag == 1
    assert cursor == len(first)

    note, cursor = decode_note(data, cursor, "little")
    assert note == RawNote(b"bcde", 2, b"z")
    assert cursor == len(data)


def test_truncated_header():
    data = encode_note(b"Go\x00\x00", 1, b"dep\n", "little") + b"\x00" * 8
    with pytest.raises(TruncatedRecordError) as exc_info:
        decode_notes(data, "little")
    assert exc_info.value.field == "header"
    assert exc_info.value.available == 8


def test_truncated_name():
    data = struct.pack("<iii", 8, 0, 1) + b"Go\x00\x00"
    with pytest.raises(TruncatedRecordError) as exc_info:
        decode_notes(data, "little")
    assert exc_info.value.field == "name"


def test_truncated_content_padding():
    # Five content bytes need eight on disk.
    data = struct.pack("<iii", 0, 5, 1) + b"hello"
    with pytest.raises(TruncatedRecordError) as exc_info:
        decode_notes(data, "little")
    assert exc_info.value.field == "content"
    assert exc_info.value.needed == 8


def test_truncated_is_a_malformed_object():
    with pytest.raises(MalformedObjectError):
        decode_notes(b"\x01", "little")


def test_negative_length_is_empty():
    data = struct.pack("<iii", -4, -1, 9)
    assert decode_notes(data, "little") == (RawNote(b"", 9, b""),)


def test_unknown_byte_order():
    with pytest.raises(ValueError):
        decode_note(b"", 0, "middle")
    with pytest.raises(ValueError):
        encode_note(b"", 1, b"", "middle")
