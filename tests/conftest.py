"""Shared test fixtures.

``write_elf`` lays out a small but well-formed ELF64 shared object: an ELF
header, an optional PT_LOAD segment covering every section flagged
``loaded``, the sections themselves, and the section header table. It is
just enough for pyelftools to parse notes, symbols and the dynamic table.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path

import pytest

from shlibguard.config.models import ExpectationsConfig, NotesConfig, ShlibGuardConfig
from shlibguard.notes.codec import encode_note
from shlibguard.validation.notes import NoteExpectations

SHT_PROGBITS = 1
SHT_SYMTAB = 2
SHT_STRTAB = 3
SHT_DYNAMIC = 6
SHT_NOTE = 7

SHF_WRITE = 0x1
SHF_ALLOC = 0x2
SHF_EXECINSTR = 0x4

STB_LOCAL = 0
STB_GLOBAL = 1
STB_WEAK = 2
STT_OBJECT = 1
STT_FUNC = 2

DT_NULL = 0
DT_NEEDED = 1
DT_SONAME = 14
DT_RPATH = 15
DT_RUNPATH = 29

BASE_ADDR = 0x400000

GO_NOTE_NAME = b"Go\x00\x00"
RUNTIME_SONAME = "libruntime,sync-atomic.so"
DEP_SONAME = "libdep.so"
GOROOT_INSTALL_DIR = "/usr/lib/go/pkg/linux_amd64_dynlink"

PKG_LIST_SECTION = ".note.go.pkg-list"
ABI_HASH_SECTION = ".note.go.abihash"
DEPS_SECTION = ".note.go.deps"


@dataclass
class SectionSpec:
    name: str
    sh_type: int
    data: bytes = b""
    flags: int = 0
    loaded: bool = False
    link: str | None = None
    entsize: int = 0
    align: int = 8
    info: int = 0


@dataclass
class SymbolSpec:
    name: str
    section: str | None  # None for an undefined symbol
    offset: int = 0  # relative to the section's address
    bind: int = STB_LOCAL
    sym_type: int = STT_OBJECT
    size: int = 0


class _StringTable:
    def __init__(self) -> None:
        self.data = bytearray(b"\x00")
        self.index: dict[str, int] = {"": 0}

    def add(self, value: str) -> int:
        if value not in self.index:
            self.index[value] = len(self.data)
            self.data += value.encode() + b"\x00"
        return self.index[value]


def _align(value: int, alignment: int) -> int:
    if alignment <= 1:
        return value
    return (value + alignment - 1) // alignment * alignment


def write_elf(
    path: Path,
    sections: list[SectionSpec],
    symbols: list[SymbolSpec] | None = None,
    dynamic: list[tuple[int, str]] | None = None,
    byte_order: str = "little",
    load_segment: bool = True,
) -> dict[str, dict[str, int]]:
    """Write an ELF64 shared object and return each section's index, offset and address."""
    e = "<" if byte_order == "little" else ">"
    sections = list(sections)

    if dynamic is not None:
        dynstr = _StringTable()
        entries = [(tag, dynstr.add(value)) for tag, value in dynamic]
        dyn_data = b"".join(struct.pack(e + "qQ", tag, val) for tag, val in entries)
        dyn_data += struct.pack(e + "qQ", DT_NULL, 0)
        sections.append(SectionSpec(".dynstr", SHT_STRTAB, bytes(dynstr.data), flags=SHF_ALLOC, loaded=True, align=1))
        sections.append(
            SectionSpec(
                ".dynamic",
                SHT_DYNAMIC,
                dyn_data,
                flags=SHF_ALLOC | SHF_WRITE,
                loaded=True,
                link=".dynstr",
                entsize=16,
            )
        )

    strtab = _StringTable()
    symtab: SectionSpec | None = None
    if symbols is not None:
        for sym in symbols:
            strtab.add(sym.name)
        n_local = sum(1 for sym in symbols if sym.bind == STB_LOCAL)
        symtab = SectionSpec(
            ".symtab",
            SHT_SYMTAB,
            b"\x00" * 24 * (len(symbols) + 1),
            link=".strtab",
            entsize=24,
            info=1 + n_local,
        )
        sections.append(symtab)
        sections.append(SectionSpec(".strtab", SHT_STRTAB, bytes(strtab.data), align=1))

    shstrtab = _StringTable()
    for sect in sections:
        shstrtab.add(sect.name)
    shstrtab.add(".shstrtab")
    sections.append(SectionSpec(".shstrtab", SHT_STRTAB, bytes(shstrtab.data), align=1))

    ordered = [s for s in sections if s.loaded] + [s for s in sections if not s.loaded]
    index_of: dict[str, int] = {}
    for i, sect in enumerate(ordered, start=1):
        index_of.setdefault(sect.name, i)

    phnum = 1 if load_segment else 0
    offset = 64 + 56 * phnum
    load_end = offset
    placed: list[tuple[SectionSpec, int, int]] = []
    for sect in ordered:
        offset = _align(offset, sect.align)
        addr = BASE_ADDR + offset if sect.loaded else 0
        placed.append((sect, offset, addr))
        offset += len(sect.data)
        if sect.loaded:
            load_end = offset
    addr_of = {}
    for sect, _, addr in placed:
        addr_of.setdefault(sect.name, addr)

    if symtab is not None and symbols is not None:
        data = b"\x00" * 24
        for sym in symbols:
            if sym.section is None:
                shndx, value = 0, sym.offset
            else:
                shndx, value = index_of[sym.section], addr_of[sym.section] + sym.offset
            data += struct.pack(
                e + "IBBHQQ",
                strtab.index[sym.name],
                (sym.bind << 4) | sym.sym_type,
                0,
                shndx,
                value,
                sym.size,
            )
        symtab.data = data

    shoff = _align(offset, 8)

    out = bytearray()
    out += b"\x7fELF" + bytes([2, 1 if byte_order == "little" else 2, 1, 0, 0]) + b"\x00" * 7
    out += struct.pack(
        e + "HHIQQQIHHHHHH",
        3,  # ET_DYN
        62,  # EM_X86_64
        1,
        0,
        64 if phnum else 0,
        shoff,
        0,
        64,
        56,
        phnum,
        64,
        len(ordered) + 1,
        index_of[".shstrtab"],
    )
    if load_segment:
        out += struct.pack(e + "IIQQQQQQ", 1, 5, 0, BASE_ADDR, BASE_ADDR, load_end, load_end, 0x1000)

    for sect, off, _ in placed:
        out += b"\x00" * (off - len(out))
        out += sect.data

    out += b"\x00" * (shoff - len(out))
    out += b"\x00" * 64
    for sect, off, addr in placed:
        out += struct.pack(
            e + "IIQQQQIIQQ",
            shstrtab.index[sect.name],
            sect.sh_type,
            sect.flags,
            addr,
            off,
            len(sect.data),
            index_of[sect.link] if sect.link else 0,
            sect.info,
            sect.align,
            sect.entsize,
        )

    Path(path).write_bytes(bytes(out))
    return {
        sect.name: {"index": index_of[sect.name], "offset": off, "addr": addr}
        for sect, off, addr in placed
    }


_NOTE_TAGS = {"pkg": 1, "abi": 2, "deps": 3}


def build_go_shlib(
    path: Path,
    *,
    package_list: bytes = b"dep\n",
    dependency_list: bytes = RUNTIME_SONAME.encode(),
    abi_hash: bytes = bytes(range(1, 33)),
    notes: tuple[str, ...] = ("pkg", "abi", "deps"),
    duplicate: str | None = None,
    pkg_flags: int = 0,
    pkg_loaded: bool = False,
    abi_flags: int = SHF_ALLOC,
    abi_loaded: bool = True,
    symbol_bind: int = STB_LOCAL,
    symbol_delta: int = 0,
    symbol_section: str | None = ABI_HASH_SECTION,
    with_symtab: bool = True,
    needed: tuple[str, ...] = (RUNTIME_SONAME,),
    rpath: str | None = None,
    runpath: str | None = GOROOT_INSTALL_DIR,
    soname: str = DEP_SONAME,
    byte_order: str = "little",
    load_segment: bool = True,
) -> dict[str, dict[str, int]]:
    """Write a shared library laid out the way the Go linker lays out libdep.so."""
    contents = {"pkg": package_list, "abi": abi_hash, "deps": dependency_list}
    layout = {
        "pkg": (PKG_LIST_SECTION, pkg_flags, pkg_loaded),
        "abi": (ABI_HASH_SECTION, abi_flags, abi_loaded),
        "deps": (DEPS_SECTION, 0, False),
    }

    sections = [
        SectionSpec(".text", SHT_PROGBITS, b"\xc3" * 32, flags=SHF_ALLOC | SHF_EXECINSTR, loaded=True, align=16),
        SectionSpec(
            ".note.gnu.build-id",
            SHT_NOTE,
            encode_note(b"GNU\x00", 3, b"\xab" * 20, byte_order),
            flags=SHF_ALLOC,
            loaded=True,
            align=4,
        ),
    ]
    for kind in notes:
        name, flags, loaded = layout[kind]
        data = encode_note(GO_NOTE_NAME, _NOTE_TAGS[kind], contents[kind], byte_order)
        if duplicate == kind:
            data += encode_note(GO_NOTE_NAME, _NOTE_TAGS[kind], contents[kind], byte_order)
        sections.append(SectionSpec(name, SHT_NOTE, data, flags=flags, loaded=loaded, align=4))

    symbols = None
    if with_symtab:
        symbols = [SymbolSpec("dep.F", ".text", 0, bind=STB_GLOBAL, sym_type=STT_FUNC, size=1)]
        # The linker only emits the hash symbol alongside the hash note.
        if "abi" in notes or symbol_section != ABI_HASH_SECTION:
            symbols.insert(
                0,
                SymbolSpec(
                    "go.link.abihashbytes",
                    symbol_section,
                    16 + symbol_delta,
                    bind=symbol_bind,
                    size=len(abi_hash),
                ),
            )

    dynamic: list[tuple[int, str]] = [(DT_SONAME, soname)]
    dynamic.extend((DT_NEEDED, lib) for lib in needed)
    if rpath is not None:
        dynamic.append((DT_RPATH, rpath))
    if runpath is not None:
        dynamic.append((DT_RUNPATH, runpath))

    return write_elf(path, sections, symbols, dynamic, byte_order=byte_order, load_segment=load_segment)


@pytest.fixture
def make_shlib(tmp_path):
    """Factory writing a Go-style shared library into tmp_path and returning its path."""

    def _make(name: str = DEP_SONAME, **kwargs) -> Path:
        path = tmp_path / name
        build_go_shlib(path, **kwargs)
        return path

    return _make


@pytest.fixture
def make_elf(tmp_path):
    """Factory around write_elf for hand-built layouts."""

    def _make(name: str, sections: list[SectionSpec], **kwargs) -> tuple[Path, dict[str, dict[str, int]]]:
        path = tmp_path / name
        layout = write_elf(path, sections, **kwargs)
        return path, layout

    return _make


@pytest.fixture
def section_spec():
    return SectionSpec


@pytest.fixture
def dep_expectations() -> NoteExpectations:
    return NoteExpectations.for_library(["dep"], [RUNTIME_SONAME])


@pytest.fixture
def sample_config() -> ShlibGuardConfig:
    return ShlibGuardConfig(
        notes=NotesConfig(),
        expectations=ExpectationsConfig(
            packages=["dep"],
            dependencies=[RUNTIME_SONAME],
            needed=[RUNTIME_SONAME],
            search_paths=[GOROOT_INSTALL_DIR],
        ),
    )


# Markers
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: requires a Go toolchain able to build shared libraries")
