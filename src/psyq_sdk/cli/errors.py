"""
CLI Exit Codes and Error Reporting
==================================

``psylib`` and ``dumpobj`` report failures the same way: one line on
stderr and a small, fixed set of exit statuses that scripts can test.

    0  the command completed
    1  an OBJ or LIB could not be decoded, or an archive edit was refused
    2  the command line was unusable or an input file could not be opened
    3  anything else; ``--verbose`` adds the traceback
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn, Optional

import click

from psyq_sdk.errors import MembershipError, PsyqError


class ExitCode(IntEnum):
    """Process exit statuses shared by the command-line tools."""
    SUCCESS = 0
    FORMAT_ERROR = 1
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3


# Checked in order; the first matching class decides the status.
_USAGE_ERRORS = (click.BadParameter, ValueError, FileNotFoundError, PermissionError)


def _fail(message: str, code: ExitCode) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(code)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: Optional[str] = None,
) -> NoReturn:
    """
    Report ``error`` on stderr and terminate with the matching exit status.

    Library errors carry their own context, so they are printed as-is
    behind an optional label such as ``"Archive"``. Membership errors
    (a module that is missing or already present) never take the label.
    """
    if isinstance(error, MembershipError):
        _fail(f"Error: {error}", ExitCode.FORMAT_ERROR)

    if isinstance(error, PsyqError):
        label = f"{error_type} error" if error_type else "Error"
        _fail(f"{label}: {error}", ExitCode.FORMAT_ERROR)

    if isinstance(error, _USAGE_ERRORS):
        _fail(f"Error: {error}", ExitCode.INVALID_ARGS)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
