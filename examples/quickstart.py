"""shlibguard quickstart — validate a Go shared library and the executable linked to it."""

import sys
from pathlib import Path

from shlibguard import ShlibGuardContext
from shlibguard.config.loader import load_config
from shlibguard.errors import EnvironmentFailure
from shlibguard.extraction.elf_loader import open_object, read_notes
from shlibguard.validation.linkage import validate_linkage
from shlibguard.validation.notes import validate_notes


def main():
    # 1. Load configuration (expected packages, dependencies, search paths)
    ctx = ShlibGuardContext()
    ctx.config = load_config()
    expectations = ctx.note_expectations(packages=["dep"], dependencies=["libruntime,sync-atomic.so"])

    # 2. Open the library; the file is closed again before open_object returns
    library = Path(sys.argv[1] if len(sys.argv) > 1 else "pkg/linux_amd64_dynlink/libdep.so")
    try:
        obj = open_object(library)
    except EnvironmentFailure as e:
        print(f"cannot inspect {library}: {e}")
        return 2

    for note in read_notes(obj):
        print(f"  {note.section.name}: name={note.name!r} tag={note.tag} size={len(note.content)}")

    # 3. Check the notes and the dynamic table, collecting every failure
    report = validate_notes(obj, expectations)
    report = report.merge(validate_linkage(obj, needed=["libruntime,sync-atomic.so"]))
    for failure in report.failures:
        print(f"  FAIL {failure}")
    print("ok" if report.ok else f"{len(report.failures)} failure(s)")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
