"""Encode and decode ELF note records.

A note is three 32-bit integers in the file's byte order (name length,
content length, tag) followed by the name and then the content, each padded
with NUL bytes to a 4-byte boundary. A note section is simply a run of such
records with nothing between them.

All functions here work on immutable ``bytes`` and an explicit offset, so
the same section data can be decoded from several threads at once.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Literal

from shlibguard.config.defaults import NOTE_ALIGNMENT
from shlibguard.errors import TruncatedRecordError

ByteOrder = Literal["little", "big"]

HEADER_SIZE = 12

_HEADER_FORMATS = {
    "little": struct.Struct("<iii"),
    "big": struct.Struct(">iii"),
}


@dataclass(frozen=True)
class RawNote:
    name: bytes
    tag: int
    content: bytes


def _header_struct(byte_order: str) -> struct.Struct:
    try:
        return _HEADER_FORMATS[byte_order]
    except KeyError:
        raise ValueError(f"unknown byte order {byte_order!r}") from None


def round_up(n: int, align: int = NOTE_ALIGNMENT) -> int:
    """Round ``n`` up to a multiple of ``align``; non-positive lengths occupy nothing."""
    if n <= 0:
        return 0
    if align <= 0:
        return n
    return (n + align - 1) // align * align


def _read_padded(data: bytes, offset: int, length: int, field: str) -> tuple[bytes, int]:
    padded = round_up(length)
    available = len(data) - offset
    if padded > available:
        raise TruncatedRecordError(field, offset, padded, available)
    value = data[offset : offset + max(length, 0)]
    return value, offset + padded


def decode_note(data: bytes, offset: int, byte_order: ByteOrder) -> tuple[RawNote, int]:
    """Decode the note starting at ``offset``; return it with the offset of the next one."""
    header = _header_struct(byte_order)
    available = len(data) - offset
    if available < HEADER_SIZE:
        raise TruncatedRecordError("header", offset, HEADER_SIZE, available)

    name_size, content_size, tag = header.unpack_from(data, offset)
    cursor = offset + HEADER_SIZE
    name, cursor = _read_padded(data, cursor, name_size, "name")
    content, cursor = _read_padded(data, cursor, content_size, "content")
    return RawNote(name=name, tag=tag, content=content), cursor


def decode_notes(data: bytes, byte_order: ByteOrder) -> tuple[RawNote, ...]:
    """Decode every note packed in ``data``. Empty input yields no notes."""
    data = bytes(data)
    notes: list[RawNote] = []
    cursor = 0
    while cursor < len(data):
        note, cursor = decode_note(data, cursor, byte_order)
        notes.append(note)
    return tuple(notes)


def _pad(value: bytes) -> bytes:
    return value + b"\x00" * (round_up(len(value)) - len(value))


def encode_note(name: bytes | str, tag: int, content: bytes | str, byte_order: ByteOrder) -> bytes:
    if isinstance(name, str):
        name = name.encode()
    if isinstance(content, str):
        content = content.encode()
    header = _header_struct(byte_order).pack(len(name), len(content), tag)
    return header + _pad(name) + _pad(content)


def encode_notes(notes: Iterable[RawNote], byte_order: ByteOrder) -> bytes:
    return b"".join(encode_note(n.name, n.tag, n.content, byte_order) for n in notes)
