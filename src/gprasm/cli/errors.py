"""
gprasm Exit Codes
=================

Maps exceptions raised during a command-line run to a message on stderr
and a process exit code:

| Code | Meaning                                                     |
|------|-------------------------------------------------------------|
| 0    | Image (and optional symbol/listing files) written           |
| 1    | Source rejected: syntax, policy, symbol or address errors   |
| 2    | Bad usage: options, unreadable files or a malformed whitelist |
| 3    | Assembler bug: pass mismatch or an unexpected exception     |
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from gprasm.errors import GprasmError, InternalError, WhitelistError


class ExitCode(IntEnum):
    SUCCESS = 0
    BUILD_ERROR = 1
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3


def exit_code_for(error: Exception) -> ExitCode:
    """Pick the exit code for an exception."""
    # InternalError is a GprasmError, so it has to be checked first
    if isinstance(error, InternalError):
        return ExitCode.INTERNAL_ERROR
    if isinstance(error, WhitelistError):
        return ExitCode.INVALID_ARGS
    if isinstance(error, GprasmError):
        return ExitCode.BUILD_ERROR
    if isinstance(error, (click.UsageError, FileNotFoundError, PermissionError)):
        return ExitCode.INVALID_ARGS
    return ExitCode.INTERNAL_ERROR


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception from the CLI and exit.

    Source errors get an ``"<error_type> error: "`` prefix, since their
    message already carries file, line and column. With ``verbose`` set,
    internal errors also print their traceback.
    """
    code = exit_code_for(error)

    if code == ExitCode.INTERNAL_ERROR:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
    elif code == ExitCode.BUILD_ERROR and error_type:
        click.echo(f"{error_type} error: {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)

    sys.exit(code)
