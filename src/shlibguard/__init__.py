"""shlibguard — shared-library build artifact verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shlibguard.version import __version__

if TYPE_CHECKING:
    from shlibguard.buildtool.runner import BuildTool
    from shlibguard.config.models import ShlibGuardConfig
    from shlibguard.validation.notes import NoteExpectations


@dataclass
class ShlibGuardContext:
    """Dependency-injection container shared across CLI commands."""

    config: ShlibGuardConfig | None = None
    build_tool: BuildTool | None = None
    json_output: bool = False

    def ensure_config(self) -> ShlibGuardConfig:
        if self.config is None:
            from shlibguard.config.loader import load_config

            self.config = load_config()
        return self.config

    def ensure_build_tool(self) -> BuildTool:
        if self.build_tool is None:
            from shlibguard.buildtool.runner import BuildTool

            cfg = self.ensure_config()
            self.build_tool = BuildTool.from_config(cfg.build_tool)
        return self.build_tool

    def note_expectations(
        self,
        packages: list[str] | None = None,
        dependencies: list[str] | None = None,
    ) -> NoteExpectations:
        from shlibguard.validation.notes import NoteExpectations

        cfg = self.ensure_config()
        return NoteExpectations.from_config(
            cfg.notes,
            packages=packages if packages else cfg.expectations.packages,
            dependencies=dependencies if dependencies else cfg.expectations.dependencies,
        )


__all__ = ["ShlibGuardContext", "__version__"]
