"""Read the structural metadata of an ELF object using pyelftools."""

from __future__ import annotations

from pathlib import Path

from elftools.common.exceptions import ELFError
from elftools.elf.dynamic import DynamicSection
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import SymbolTableSection

from shlibguard.errors import (
    MalformedObjectError,
    SymbolTableUnavailableError,
    TruncatedRecordError,
    UnreadableFileError,
)
from shlibguard.extraction.object_artifact import (
    DynamicEntry,
    DynTag,
    Note,
    ObjectFile,
    Section,
    Segment,
    Symbol,
)
from shlibguard.notes.codec import decode_notes
from shlibguard.utils.logging import get_logger

log = get_logger(__name__)

NOTE_SECTION_TYPE = "SHT_NOTE"

_DYNAMIC_STRING_ATTRS = {
    DynTag.NEEDED.value: "needed",
    DynTag.SONAME.value: "soname",
    DynTag.RPATH.value: "rpath",
    DynTag.RUNPATH.value: "runpath",
}


def open_object(path: str | Path) -> ObjectFile:
    """Parse ``path`` into a read-only ObjectFile.

    The file handle is closed before this returns, on success and on error.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            try:
                elf = ELFFile(f)
                obj = ObjectFile(
                    path=str(path),
                    byte_order="little" if elf.little_endian else "big",
                    elf_class=elf.elfclass,
                    file_type=str(elf.header.e_type),
                    machine=str(elf.header.e_machine),
                    segments=_get_segments(elf),
                    sections=_get_sections(elf, str(path)),
                    symbol_table=_get_symbols(elf),
                    dynamic=_get_dynamic(elf),
                )
            except ELFError as exc:
                log.error("elf_parse_failed", path=str(path), error=str(exc))
                raise MalformedObjectError(str(path), str(exc)) from exc
    except OSError as exc:
        log.error("elf_open_failed", path=str(path), error=str(exc))
        raise UnreadableFileError(str(path), exc.strerror or str(exc)) from exc

    log.debug(
        "object_loaded",
        path=str(path),
        segments=len(obj.segments),
        sections=len(obj.sections),
        dynamic=len(obj.dynamic),
    )
    return obj


def _get_segments(elf: ELFFile) -> tuple[Segment, ...]:
    return tuple(
        Segment(
            type=str(seg["p_type"]),
            offset=seg["p_offset"],
            filesize=seg["p_filesz"],
            vaddr=seg["p_vaddr"],
            memsize=seg["p_memsz"],
            flags=seg["p_flags"],
        )
        for seg in elf.iter_segments()
    )


def _get_sections(elf: ELFFile, path: str) -> tuple[Section, ...]:
    sections: list[Section] = []
    for index, sect in enumerate(elf.iter_sections()):
        sh_type = str(sect["sh_type"])
        data = b""
        if sh_type == NOTE_SECTION_TYPE:
            # pyelftools returns short data rather than raising for a section past EOF.
            data = sect.data()
            if len(data) != sect["sh_size"]:
                log.error("note_section_truncated", path=path, section=sect.name)
                raise MalformedObjectError(path, f"section {sect.name} extends past end of file")
        sections.append(
            Section(
                index=index,
                name=sect.name,
                type=sh_type,
                flags=sect["sh_flags"],
                addr=sect["sh_addr"],
                offset=sect["sh_offset"],
                size=sect["sh_size"],
                data=data,
            )
        )
    return tuple(sections)


def _get_symbols(elf: ELFFile) -> tuple[Symbol, ...] | None:
    """Symbols of the static .symtab, or None if the file has been stripped."""
    for sect in elf.iter_sections():
        if not isinstance(sect, SymbolTableSection) or sect["sh_type"] != "SHT_SYMTAB":
            continue
        symbols = []
        for i, sym in enumerate(sect.iter_symbols()):
            if i == 0:
                continue  # the reserved null symbol
            symbols.append(
                Symbol(
                    name=sym.name,
                    bind=str(sym["st_info"]["bind"]),
                    type=str(sym["st_info"]["type"]),
                    section_index=sym["st_shndx"],
                    value=sym["st_value"],
                    size=sym["st_size"],
                )
            )
        return tuple(symbols)
    return None


def _get_dynamic(elf: ELFFile) -> tuple[DynamicEntry, ...]:
    entries: list[DynamicEntry] = []
    for sect in elf.iter_sections():
        if not isinstance(sect, DynamicSection):
            continue
        for tag in sect.iter_tags():
            d_tag = str(tag.entry.d_tag)
            attr = _DYNAMIC_STRING_ATTRS.get(d_tag)
            if attr is not None:
                entries.append(DynamicEntry(tag=d_tag, value=getattr(tag, attr)))
    return tuple(entries)


def sections_of_type(obj: ObjectFile, kind: str) -> tuple[Section, ...]:
    return tuple(s for s in obj.sections if s.type == kind)


def section_at(obj: ObjectFile, index: int | str) -> Section | None:
    if not isinstance(index, int) or not 0 <= index < len(obj.sections):
        return None
    return obj.sections[index]


def is_offset_loaded(obj: ObjectFile, file_offset: int) -> bool:
    """True iff a PT_LOAD segment maps ``file_offset`` into memory."""
    return any(seg.is_loadable and seg.covers(file_offset) for seg in obj.segments)


def symbols(obj: ObjectFile) -> tuple[Symbol, ...]:
    if obj.symbol_table is None:
        raise SymbolTableUnavailableError(obj.path)
    return obj.symbol_table


def symbol_by_name(obj: ObjectFile, name: str) -> Symbol | None:
    """Last symbol called ``name``; a plain scan, the tables involved are small."""
    found = None
    for sym in symbols(obj):
        if sym.name == name:
            found = sym
    return found


def read_notes(obj: ObjectFile) -> tuple[Note, ...]:
    """Decode every note in every SHT_NOTE section, in file order."""
    notes: list[Note] = []
    for section in sections_of_type(obj, NOTE_SECTION_TYPE):
        try:
            raw_notes = decode_notes(section.data, obj.byte_order)  # type: ignore[arg-type]
        except TruncatedRecordError as exc:
            log.error("note_decode_failed", path=obj.path, section=section.name, error=exc.reason)
            raise TruncatedRecordError(
                f"{exc.field} in {section.name}",
                exc.offset,
                exc.needed,
                exc.available,
                path=obj.path,
            ) from exc
        notes.extend(
            Note(
                name=raw.name.decode("utf-8", errors="replace"),
                tag=raw.tag,
                content=raw.content,
                section=section,
            )
            for raw in raw_notes
        )
    log.debug("notes_decoded", path=obj.path, count=len(notes))
    return tuple(notes)


def dynamic_strings(source: ObjectFile | str | Path, tag: DynTag | str) -> tuple[str, ...]:
    """Every dynamic-table string tagged ``tag``.

    Given a path the file is re-opened; failures to read it propagate as
    EnvironmentFailure subclasses, never as validation failures.
    """
    obj = source if isinstance(source, ObjectFile) else open_object(source)
    wanted = tag.value if isinstance(tag, DynTag) else tag
    return tuple(entry.value for entry in obj.dynamic if entry.tag == wanted)
