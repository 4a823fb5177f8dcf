"""
dumpobj - OBJ/LIB Dump Command-Line Interface
=============================================

Prints the record-by-record dump of an OBJ file in the layout of the
vendor DUMPOBJ tool, or the module listing of a LIB file.

Usage Examples
--------------
Dump an object file:
    $ dumpobj A74.OBJ

Include hex dumps of code blocks:
    $ dumpobj --code A74.OBJ

Show code blocks as MIPS instructions:
    $ dumpobj --disassemble A74.OBJ

List a library and dump every module in it:
    $ dumpobj --recursive LIBCARD.LIB

Environment
-----------
``LC_ALL``/``LANG`` starting with en_GB select British spelling.
``PSYQ_DUMP=CODE`` has the same effect as ``--code`` and
``PSYQ_DUMP=DISASSEMBLE`` the same as ``--disassemble``.
"""

import logging
from pathlib import Path

import click

from psyq_sdk import __version__
from psyq_sdk.cli.errors import handle_cli_exception
from psyq_sdk.config import CodeFormat, DisplayOptions
from psyq_sdk.display import format_library, format_module
from psyq_sdk.lib import is_lib, parse_library
from psyq_sdk.obj import parse_module

logger = logging.getLogger(__name__)


@click.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-c", "--code",
    is_flag=True,
    help="Dump the bytes of code records in hex",
)
@click.option(
    "-d", "--disassemble",
    is_flag=True,
    help="Show code records as MIPS instructions (overrides --code)",
)
@click.option(
    "-r", "--recursive",
    is_flag=True,
    help="For a LIB, dump every module after the listing",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(__version__, "--version", "-V", prog_name="dumpobj")
def main(
    input_file: Path,
    code: bool,
    disassemble: bool,
    recursive: bool,
    verbose: bool,
) -> None:
    """
    Dump a PSY-Q OBJ file, or list a LIB file.

    The file type is detected from its signature.

    \b
    Examples:
      dumpobj A74.OBJ
      dumpobj --code A74.OBJ
      dumpobj --disassemble A74.OBJ
      dumpobj LIBCARD.LIB
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        options = DisplayOptions.from_env()
        if disassemble:
            options.code_format = CodeFormat.DISASSEMBLY
        elif code:
            options.code_format = CodeFormat.HEX
        options.recursive = recursive

        data = input_file.read_bytes()
        if is_lib(data):
            logger.debug(f"{input_file}: LIB archive")
            click.echo(format_library(parse_library(data), options), nl=False)
        else:
            logger.debug(f"{input_file}: OBJ module")
            click.echo(format_module(parse_module(data), options), nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
