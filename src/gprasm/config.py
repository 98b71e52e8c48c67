"""
gprasm Configuration
====================

Assembler settings with defaults, optionally overridden from the
environment. Command-line options are applied on top by the CLI, so they
take precedence over both.

Environment variables (all optional):

| Variable               | Meaning                                    |
|------------------------|--------------------------------------------|
| GPRASM_INCLUDE_PATH    | Extra include directories (os.pathsep list) |
| GPRASM_WHITELIST       | Path to a JSON whitelist file              |
| GPRASM_SYMBOL_FORMAT   | Symbol file format: json or text           |
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os

from gprasm.assembler.opcodes import MAX_REGISTERS
from gprasm.assembler.output import SYMBOL_FORMATS
from gprasm.assembler.whitelist import load_whitelist


@dataclass
class AssemblerConfig:
    """
    Configuration for an assembly run.

    Attributes:
        register_count: Registers on the target machine (1-16)
        include_paths: Directories searched for include files
        whitelist: Allowed mnemonics, or None to allow the whole instruction set
        symbol_format: Symbol file format ("json" or "text")
    """

    register_count: int = MAX_REGISTERS
    include_paths: list[Path] = field(default_factory=list)
    whitelist: Optional[frozenset[str]] = None
    symbol_format: str = "json"

    def __post_init__(self):
        if not 1 <= self.register_count <= MAX_REGISTERS:
            raise ValueError(
                f"register_count must be between 1 and {MAX_REGISTERS}, got {self.register_count}"
            )
        if self.symbol_format not in SYMBOL_FORMATS:
            raise ValueError(
                f"symbol_format must be one of {', '.join(SYMBOL_FORMATS)}, got '{self.symbol_format}'"
            )
        self.include_paths = [Path(p) for p in self.include_paths]

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create AssemblerConfig from environment variables.

        Returns:
            AssemblerConfig with values from environment variables

        Raises:
            WhitelistError: If GPRASM_WHITELIST names an invalid whitelist file
            ValueError: If GPRASM_SYMBOL_FORMAT is not a known format
        """
        config = cls()

        if include_path := os.environ.get("GPRASM_INCLUDE_PATH"):
            config.include_paths.extend(
                Path(p) for p in include_path.split(os.pathsep) if p
            )

        if whitelist_path := os.environ.get("GPRASM_WHITELIST"):
            config.whitelist = load_whitelist(whitelist_path)

        if symbol_format := os.environ.get("GPRASM_SYMBOL_FORMAT"):
            if symbol_format not in SYMBOL_FORMATS:
                raise ValueError(
                    f"GPRASM_SYMBOL_FORMAT must be one of {', '.join(SYMBOL_FORMATS)}, got '{symbol_format}'"
                )
            config.symbol_format = symbol_format

        return config
