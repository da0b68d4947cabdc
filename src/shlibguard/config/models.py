"""Pydantic configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from shlibguard.config.defaults import (
    DEFAULT_ABI_HASH_SYMBOL,
    DEFAULT_ABI_HASH_SYMBOL_OFFSET,
    DEFAULT_BUILD_COMMAND,
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_NOTE_PRODUCER,
)


class NotesConfig(BaseModel):
    producer_name: str = DEFAULT_NOTE_PRODUCER
    abi_hash_symbol: str = DEFAULT_ABI_HASH_SYMBOL
    abi_hash_symbol_offset: int = DEFAULT_ABI_HASH_SYMBOL_OFFSET


class ExpectationsConfig(BaseModel):
    packages: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    needed: list[str] = Field(default_factory=list)
    search_paths: list[str] = Field(default_factory=list)


class BuildToolConfig(BaseModel):
    command: str = DEFAULT_BUILD_COMMAND
    install_suffix: str = ""
    verbose: bool = False
    timeout: int = DEFAULT_BUILD_TIMEOUT
    env: dict[str, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class ShlibGuardConfig(BaseModel):
    notes: NotesConfig = Field(default_factory=NotesConfig)
    expectations: ExpectationsConfig = Field(default_factory=ExpectationsConfig)
    build_tool: BuildToolConfig = Field(default_factory=BuildToolConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
