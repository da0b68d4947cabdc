"""Frozen dataclasses describing a parsed object file."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

SHF_ALLOC = 0x2


class DynTag(str, Enum):
    NEEDED = "DT_NEEDED"
    SONAME = "DT_SONAME"
    RPATH = "DT_RPATH"
    RUNPATH = "DT_RUNPATH"


@dataclass(frozen=True)
class Segment:
    type: str
    offset: int
    filesize: int
    vaddr: int = 0
    memsize: int = 0
    flags: int = 0

    @property
    def is_loadable(self) -> bool:
        return self.type == "PT_LOAD"

    def covers(self, file_offset: int) -> bool:
        return self.offset <= file_offset < self.offset + self.filesize


@dataclass(frozen=True)
class Section:
    index: int
    name: str
    type: str
    flags: int
    addr: int
    offset: int
    size: int
    data: bytes = b""  # only populated for note sections


@dataclass(frozen=True)
class Symbol:
    name: str
    bind: str
    type: str
    section_index: int | str  # str for special indexes such as "SHN_UNDEF"
    value: int
    size: int = 0

    @property
    def is_local(self) -> bool:
        return self.bind == "STB_LOCAL"


@dataclass(frozen=True)
class DynamicEntry:
    tag: str
    value: str


@dataclass(frozen=True)
class Note:
    name: str
    tag: int
    content: bytes
    section: Section = field(compare=False, repr=False)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ObjectFile:
    path: str
    byte_order: str = "little"
    elf_class: int = 64
    file_type: str = "ET_DYN"
    machine: str = ""
    segments: tuple[Segment, ...] = ()
    sections: tuple[Section, ...] = ()
    symbol_table: tuple[Symbol, ...] | None = None  # None when there is no .symtab
    dynamic: tuple[DynamicEntry, ...] = ()
