"""Semantic checks on the linker notes of a shared library.

A Go shared library carries three notes under the producer name ``Go``:

* the package list, one package per line, in a section that is not mapped
  into memory;
* the ABI hash, in a mapped section, with a local symbol pointing 16 bytes
  into that section (just past the note header and name);
* the dependency list, naming the shared libraries it was linked against,
  again in an unmapped section.

Each kind is checked independently and every defect is collected, so a
single run reports everything that is wrong with the artifact.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from shlibguard.config.defaults import (
    DEFAULT_ABI_HASH_SYMBOL,
    DEFAULT_ABI_HASH_SYMBOL_OFFSET,
    DEFAULT_NOTE_PRODUCER,
    NOTE_TAG_ABI_HASH,
    NOTE_TAG_DEPENDENCY_LIST,
    NOTE_TAG_PACKAGE_LIST,
)
from shlibguard.errors import (
    ContentMismatchError,
    DuplicateNoteError,
    MissingNoteError,
    PlacementError,
    SymbolContractError,
    SymbolTableUnavailableError,
    ValidationError,
)
from shlibguard.extraction.elf_loader import (
    is_offset_loaded,
    open_object,
    read_notes,
    section_at,
    symbol_by_name,
)
from shlibguard.extraction.object_artifact import SHF_ALLOC, Note, ObjectFile
from shlibguard.utils.logging import get_logger
from shlibguard.validation.report import ValidationReport

if TYPE_CHECKING:
    from shlibguard.config.models import NotesConfig

log = get_logger(__name__)


class NoteKind(IntEnum):
    PACKAGE_LIST = NOTE_TAG_PACKAGE_LIST
    ABI_HASH = NOTE_TAG_ABI_HASH
    DEPENDENCY_LIST = NOTE_TAG_DEPENDENCY_LIST

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def check_name(self) -> str:
        return self.label.replace(" ", "-")


_LABELS = {
    NoteKind.PACKAGE_LIST: "package list",
    NoteKind.ABI_HASH: "abi hash",
    NoteKind.DEPENDENCY_LIST: "dependency list",
}


def expected_package_list(packages: Iterable[str]) -> bytes:
    return "".join(f"{pkg}\n" for pkg in packages).encode()


def expected_dependency_list(libraries: Iterable[str]) -> bytes:
    return "\n".join(libraries).encode()


@dataclass(frozen=True)
class NoteExpectations:
    package_list: bytes
    dependency_list: bytes
    abi_hash: bytes | None = None  # None accepts any hash
    producer_name: str = DEFAULT_NOTE_PRODUCER
    abi_hash_symbol: str = DEFAULT_ABI_HASH_SYMBOL
    abi_hash_symbol_offset: int = DEFAULT_ABI_HASH_SYMBOL_OFFSET

    @classmethod
    def for_library(
        cls,
        packages: Iterable[str],
        dependencies: Iterable[str],
        **kwargs,
    ) -> NoteExpectations:
        return cls(
            package_list=expected_package_list(packages),
            dependency_list=expected_dependency_list(dependencies),
            **kwargs,
        )

    @classmethod
    def from_config(
        cls,
        notes: NotesConfig,
        packages: Iterable[str],
        dependencies: Iterable[str],
    ) -> NoteExpectations:
        return cls.for_library(
            packages,
            dependencies,
            producer_name=notes.producer_name,
            abi_hash_symbol=notes.abi_hash_symbol,
            abi_hash_symbol_offset=notes.abi_hash_symbol_offset,
        )

    def content_for(self, kind: NoteKind) -> bytes | None:
        if kind is NoteKind.PACKAGE_LIST:
            return self.package_list
        if kind is NoteKind.DEPENDENCY_LIST:
            return self.dependency_list
        return self.abi_hash


def _check_unmapped(obj: ObjectFile, note: Note, kind: NoteKind) -> list[ValidationError]:
    failures: list[ValidationError] = []
    section = note.section
    if section.flags != 0:
        failures.append(
            PlacementError(
                obj.path,
                kind.check_name,
                f"{kind.label} section {section.name} has flags",
                expected=0,
                actual=section.flags,
            )
        )
    if is_offset_loaded(obj, section.offset):
        failures.append(
            PlacementError(
                obj.path,
                kind.check_name,
                f"{kind.label} section {section.name} contained in PT_LOAD segment",
            )
        )
    return failures


def _check_mapped(obj: ObjectFile, note: Note, kind: NoteKind) -> list[ValidationError]:
    failures: list[ValidationError] = []
    section = note.section
    if section.flags != SHF_ALLOC:
        failures.append(
            PlacementError(
                obj.path,
                kind.check_name,
                f"{kind.label} section {section.name} has flags",
                expected=SHF_ALLOC,
                actual=section.flags,
            )
        )
    if not is_offset_loaded(obj, section.offset):
        failures.append(
            PlacementError(
                obj.path,
                kind.check_name,
                f"{kind.label} section {section.name} not contained in PT_LOAD segment",
            )
        )
    return failures


def _check_content(
    obj: ObjectFile, note: Note, kind: NoteKind, expected: bytes | None
) -> list[ValidationError]:
    if expected is None or note.content == expected:
        return []
    return [
        ContentMismatchError(
            obj.path,
            kind.check_name,
            f"incorrect {kind.label}",
            expected=expected,
            actual=note.content,
        )
    ]


def _check_abi_symbol(
    obj: ObjectFile, note: Note, expectations: NoteExpectations
) -> list[ValidationError]:
    check = "abi-hash-symbol"
    name = expectations.abi_hash_symbol
    try:
        sym = symbol_by_name(obj, name)
    except SymbolTableUnavailableError as exc:
        return [SymbolContractError(obj.path, check, f"error reading symbols: {exc}")]
    if sym is None:
        return [SymbolContractError(obj.path, check, f"no symbol called {name}")]

    failures: list[ValidationError] = []
    if not sym.is_local:
        failures.append(
            SymbolContractError(
                obj.path, check, f"{name} has incorrect binding", expected="STB_LOCAL", actual=sym.bind
            )
        )

    section = section_at(obj, sym.section_index)
    if section is None or section.index != note.section.index:
        failures.append(
            SymbolContractError(
                obj.path,
                check,
                f"{name} has incorrect section",
                expected=note.section.name,
                actual=section.name if section is not None else sym.section_index,
            )
        )

    offset = sym.value - note.section.addr
    if offset != expectations.abi_hash_symbol_offset:
        failures.append(
            SymbolContractError(
                obj.path,
                check,
                f"{name} has incorrect offset into section",
                expected=expectations.abi_hash_symbol_offset,
                actual=offset,
            )
        )
    return failures


def check_package_list_note(
    obj: ObjectFile, note: Note, expectations: NoteExpectations
) -> list[ValidationError]:
    kind = NoteKind.PACKAGE_LIST
    return _check_unmapped(obj, note, kind) + _check_content(
        obj, note, kind, expectations.package_list
    )


def check_abi_hash_note(
    obj: ObjectFile, note: Note, expectations: NoteExpectations
) -> list[ValidationError]:
    kind = NoteKind.ABI_HASH
    return (
        _check_mapped(obj, note, kind)
        + _check_content(obj, note, kind, expectations.abi_hash)
        + _check_abi_symbol(obj, note, expectations)
    )


def check_dependency_list_note(
    obj: ObjectFile, note: Note, expectations: NoteExpectations
) -> list[ValidationError]:
    kind = NoteKind.DEPENDENCY_LIST
    return _check_unmapped(obj, note, kind) + _check_content(
        obj, note, kind, expectations.dependency_list
    )


_CHECKS: dict[NoteKind, Callable[[ObjectFile, Note, NoteExpectations], list[ValidationError]]] = {
    NoteKind.PACKAGE_LIST: check_package_list_note,
    NoteKind.ABI_HASH: check_abi_hash_note,
    NoteKind.DEPENDENCY_LIST: check_dependency_list_note,
}


def validate_notes(obj: ObjectFile, expectations: NoteExpectations) -> ValidationReport:
    """Check every recognised note of ``obj`` and report all defects together.

    Parse failures (truncated note sections) propagate; nothing is reported
    for an artifact whose notes cannot be decoded.
    """
    report = ValidationReport(obj.path)
    seen: set[NoteKind] = set()

    for note in read_notes(obj):
        if note.name != expectations.producer_name:
            continue
        try:
            kind = NoteKind(note.tag)
        except ValueError:
            continue
        if kind in seen:
            report.add(
                DuplicateNoteError(obj.path, kind.check_name, f"multiple {kind.label} notes")
            )
        report.extend(_CHECKS[kind](obj, note, expectations))
        seen.add(kind)

    for kind in NoteKind:
        if kind not in seen:
            report.add(MissingNoteError(obj.path, kind.check_name, f"{kind.label} note not found"))

    if report.ok:
        log.info("notes_valid", path=obj.path)
    else:
        log.warning("notes_invalid", path=obj.path, failures=len(report.failures))
    return report


def validate_notes_file(path: str | Path, expectations: NoteExpectations) -> ValidationReport:
    return validate_notes(open_object(path), expectations)
