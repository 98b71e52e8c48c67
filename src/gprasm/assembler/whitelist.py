"""
Mnemonic whitelist policy.

A whitelist restricts a program to a subset of the instruction set, for
example to exercises that only allow arithmetic. It is stored as a JSON
array of lowercase mnemonics::

    ["add", "sub", "ldi", "jmp"]

Directives (``db``, ``ds``, ``org``, ``include``) are never restricted.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from gprasm.errors import PolicyError, WhitelistError
from gprasm.assembler.opcodes import MNEMONICS
from gprasm.assembler.parser import Line, Operation

logger = logging.getLogger(__name__)


def validate_whitelist(names: Iterable[str]) -> frozenset[str]:
    """
    Check that every whitelisted name is a known mnemonic.

    Args:
        names: Mnemonics to allow

    Returns:
        The names as a frozenset, normalized to lowercase

    Raises:
        WhitelistError: If a name is not a string or not in the instruction set
    """
    allowed = set()
    for name in names:
        if not isinstance(name, str):
            raise WhitelistError(f"whitelist entries must be strings, found {name!r}")
        mnemonic = name.lower()
        if mnemonic not in MNEMONICS:
            raise WhitelistError(f"unknown whitelist instruction '{name}'")
        allowed.add(mnemonic)
    return frozenset(allowed)


def parse_whitelist(text: str) -> frozenset[str]:
    """Parse whitelist JSON text into a validated set of mnemonics."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise WhitelistError(f"invalid whitelist JSON: {e}") from e

    if not isinstance(data, list):
        raise WhitelistError("whitelist must be a JSON array of mnemonics")

    return validate_whitelist(data)


def load_whitelist(path: str | Path) -> frozenset[str]:
    """
    Load a whitelist file.

    Raises:
        WhitelistError: If the file cannot be read or is malformed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WhitelistError(f"cannot read whitelist '{path}': {e}") from e

    allowed = parse_whitelist(text)
    logger.debug("Loaded whitelist %s (%d mnemonics)", path, len(allowed))
    return allowed


def check_whitelist(lines: list[Line], whitelist: Optional[frozenset[str]]) -> None:
    """
    Reject the first instruction whose mnemonic is not whitelisted.

    Args:
        lines: Expanded line stream
        whitelist: Allowed mnemonics, or None to allow everything

    Raises:
        PolicyError: Naming the first disallowed mnemonic
    """
    if whitelist is None:
        return

    for line in lines:
        instruction = line.instruction
        if isinstance(instruction, Operation) and instruction.mnemonic not in whitelist:
            raise PolicyError(
                instruction.mnemonic,
                line.location,
                source_line=line.source,
            )
