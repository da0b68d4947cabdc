"""Run the external build tool that produces the artifacts under inspection."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from shlibguard.errors import BuildToolError
from shlibguard.utils.logging import get_logger

if TYPE_CHECKING:
    from shlibguard.config.models import BuildToolConfig

log = get_logger(__name__)

ABI_MISMATCH_TEMPLATE = "abi mismatch detected between the executable and {library}"


@dataclass(frozen=True)
class BuildResult:
    args: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class BuildTool:
    command: str = "go"
    install_suffix: str = ""
    verbose: bool = False
    timeout: int = 600
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: BuildToolConfig) -> BuildTool:
        return cls(
            command=config.command,
            install_suffix=config.install_suffix,
            verbose=config.verbose,
            timeout=config.timeout,
            env=dict(config.env),
        )

    def build_args(self, verb: str, *args: str) -> list[str]:
        cmd = [self.command, verb]
        if self.install_suffix:
            cmd.append(f"-installsuffix={self.install_suffix}")
        if self.verbose:
            cmd.append("-v")
        cmd.extend(args)
        return cmd

    def run(self, verb: str, *args: str, check: bool = True, cwd: str | None = None) -> BuildResult:
        cmd = self.build_args(verb, *args)
        log.info("running_build_tool", cmd=" ".join(cmd))
        env = {**os.environ, **self.env} if self.env else None
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
                cwd=cwd,
                env=env,
            )
        except subprocess.TimeoutExpired as exc:
            log.error("build_tool_timeout", cmd=" ".join(cmd))
            raise BuildToolError(cmd, -1, f"timed out after {self.timeout}s") from exc
        except FileNotFoundError as exc:
            log.error("build_tool_not_found", command=self.command)
            raise BuildToolError(cmd, -1, str(exc)) from exc

        result = BuildResult(args=tuple(cmd), returncode=proc.returncode, output=proc.stdout or "")
        if not result.ok:
            log.error("build_tool_failed", cmd=" ".join(cmd), returncode=result.returncode)
            if check:
                raise BuildToolError(cmd, result.returncode, result.output)
        return result

    def install(
        self,
        *packages: str,
        buildmode: str | None = None,
        linkshared: bool = False,
        check: bool = True,
        cwd: str | None = None,
    ) -> BuildResult:
        args: list[str] = []
        if buildmode:
            args.append(f"-buildmode={buildmode}")
        if linkshared:
            args.append("-linkshared")
        args.extend(packages)
        return self.run("install", *args, check=check, cwd=cwd)


def run_program(args: Sequence[str], timeout: int = 60, cwd: str | None = None) -> BuildResult:
    """Run a built executable, capturing combined output."""
    proc = subprocess.run(
        list(args),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        timeout=timeout,
        cwd=cwd,
    )
    return BuildResult(args=tuple(args), returncode=proc.returncode, output=proc.stdout or "")


def output_has_line(output: str, wanted: str) -> bool:
    """True iff ``wanted`` appears as a whole line of ``output``."""
    return any(line == wanted for line in output.splitlines())


def abi_mismatch_line(library: str) -> str:
    return ABI_MISMATCH_TEMPLATE.format(library=library)
