"""
psylib - LIB Archive Manager Command-Line Interface
===================================================

This module implements the command-line interface for PSY-Q LIB archives.
It provides tools for creating, inspecting and editing libraries of OBJ
modules.

Commands
--------
- **create**: Create a new LIB from OBJ files
- **list**: List the modules and exported symbols of a LIB
- **add**: Append OBJ files to a LIB
- **update**: Replace modules in a LIB
- **delete**: Remove modules from a LIB
- **extract**: Write modules out as OBJ files

Module names come from the OBJ file names: everything before the first
dot, upper-cased and cut to 8 bytes (A74.OBJ becomes A74).

Usage Examples
--------------
Create a library:
    $ psylib create LIBCARD.LIB C112.OBJ A74.OBJ CARD.OBJ

List its contents:
    $ psylib list LIBCARD.LIB

Replace one module and remove another:
    $ psylib update LIBCARD.LIB A74.OBJ
    $ psylib delete LIBCARD.LIB CARD

Extract everything into a directory:
    $ psylib extract -o ./objs LIBCARD.LIB
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from psyq_sdk import __version__
from psyq_sdk.cli.errors import handle_cli_exception
from psyq_sdk.errors import ArchiveError, NotFoundError, PsyqError
from psyq_sdk.lib import (
    LibraryArchive,
    PackedTimestamp,
    normalize_module_name,
    parse_library,
    render_listing,
    serialize_library,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """Shared context for CLI commands."""

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def module_name_from_path(path: Path) -> str:
    """
    Derive a module name from an OBJ file path.

    The name is the part of the file name before the first '.',
    upper-cased and cut to 8 bytes without splitting a character.
    """
    prefix = Path(path).name.split(".", 1)[0]
    return normalize_module_name(prefix)


def file_timestamp(path: Path) -> PackedTimestamp:
    """The modification time of a file as a packed timestamp."""
    try:
        return PackedTimestamp.from_datetime(datetime.fromtimestamp(path.stat().st_mtime))
    except ValueError:
        # Outside the 1980-2107 range the packed format can hold
        return PackedTimestamp.now()


def extract_path(out_dir: Path, name: str, index: Optional[int] = None) -> Path:
    """
    The file a module named `name` is extracted to inside `out_dir`.

    Names come from the LIB directory and are checked before use: a name
    holding a path separator or drive prefix, a name made only of dots,
    or one that would resolve outside `out_dir` is refused.

    Raises:
        ArchiveError: If the name cannot be used as a file name
    """
    file_name = f"{name}.OBJ"
    unsafe = (
        any(char in name for char in "/\\:\x00")
        or not name.strip(".")
        or Path(file_name).name != file_name
    )
    path = out_dir / file_name
    if unsafe or path.resolve().parent != out_dir.resolve():
        raise ArchiveError(f"module name {name!r} is not a usable file name",
                           entry_index=index)
    return path


def read_library(path: Path) -> LibraryArchive:
    return parse_library(path.read_bytes())


def write_library(path: Path, archive: LibraryArchive) -> int:
    data = serialize_library(archive)
    path.write_bytes(data)
    logger.debug(f"Wrote {path} ({len(archive)} modules, {len(data)} bytes)")
    return len(data)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(__version__, "--version", "-V", prog_name="psylib")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    LIB archive manager for PSY-Q object libraries.

    \b
    Commands:
      create    Create a new LIB from OBJ files
      list      List modules and exported symbols
      add       Append OBJ files to a LIB
      update    Replace modules in a LIB
      delete    Remove modules from a LIB
      extract   Write modules out as OBJ files

    \b
    Examples:
      psylib create LIBCARD.LIB C112.OBJ A74.OBJ
      psylib list LIBCARD.LIB
      psylib extract -o ./objs LIBCARD.LIB
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Create Command
# =============================================================================

@main.command("create")
@click.argument("lib_file", type=click.Path(dir_okay=False, path_type=Path))
@click.argument(
    "obj_files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_create(ctx: Context, lib_file: Path, obj_files: tuple[Path, ...]) -> None:
    """
    Create a new LIB file from OBJ files.

    The modules appear in the order given. An existing LIB_FILE is
    overwritten.

    \b
    Example:
      psylib create LIBCARD.LIB C112.OBJ A74.OBJ CARD.OBJ
    """
    try:
        archive = LibraryArchive()
        for obj_path in obj_files:
            name = module_name_from_path(obj_path)
            archive.add(name, obj_path.read_bytes(), created=file_timestamp(obj_path))
            if ctx.verbose:
                click.echo(f"  Added {name}")

        size = write_library(lib_file, archive)
        click.echo(f"Created {lib_file} ({len(archive)} modules, {size} bytes)")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Archive")


# =============================================================================
# List Command
# =============================================================================

@main.command("list")
@click.argument("lib_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_context
def cmd_list(ctx: Context, lib_file: Path) -> None:
    """
    List the modules in a LIB file.

    Each module payload is also checked; a module that cannot be parsed
    is reported on stderr and the listing continues.

    \b
    Output format:
      Module     Date     Time   Externals defined

      A74      15-05-96 16:12:06 InitCARD
    """
    try:
        archive = read_library(lib_file)
        click.echo(render_listing(archive), nl=False)

        for entry in archive.entries:
            try:
                entry.module()
            except PsyqError as e:
                click.echo(f"Warning: module {entry.name}: {e}", err=True)

    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Archive")


# =============================================================================
# Add / Update Commands
# =============================================================================

@main.command("add")
@click.argument("lib_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument(
    "obj_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_add(ctx: Context, lib_file: Path, obj_files: tuple[Path, ...]) -> None:
    """
    Append OBJ files to an existing LIB file.

    Fails without changing LIB_FILE if any module name is already present.
    """
    try:
        archive = read_library(lib_file)
        for obj_path in obj_files:
            name = module_name_from_path(obj_path)
            archive.add(name, obj_path.read_bytes(), created=file_timestamp(obj_path))
            click.echo(f"Added {name}")
        write_library(lib_file, archive)

    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Archive")


@main.command("update")
@click.argument("lib_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument(
    "obj_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_update(ctx: Context, lib_file: Path, obj_files: tuple[Path, ...]) -> None:
    """
    Replace modules in a LIB file with new OBJ files.

    Fails without changing LIB_FILE if any module is not present.
    """
    try:
        archive = read_library(lib_file)
        for obj_path in obj_files:
            name = module_name_from_path(obj_path)
            archive.update(name, obj_path.read_bytes(), created=file_timestamp(obj_path))
            click.echo(f"Updated {name}")
        write_library(lib_file, archive)

    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Archive")


# =============================================================================
# Delete Command
# =============================================================================

@main.command("delete")
@click.argument("lib_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("names", nargs=-1, required=True)
@pass_context
def cmd_delete(ctx: Context, lib_file: Path, names: tuple[str, ...]) -> None:
    """
    Remove modules from a LIB file.

    Fails without changing LIB_FILE if any module is not present.
    """
    try:
        archive = read_library(lib_file)
        for name in names:
            entry = archive.delete(name)
            click.echo(f"Deleted {entry.name}")
        write_library(lib_file, archive)

    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Archive")


# =============================================================================
# Extract Command
# =============================================================================

@main.command("extract")
@click.argument("lib_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("names", nargs=-1)
@click.option(
    "-o", "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: current directory)",
)
@pass_context
def cmd_extract(
    ctx: Context,
    lib_file: Path,
    names: tuple[str, ...],
    output: Optional[Path],
) -> None:
    """
    Write modules from a LIB file as NAME.OBJ files.

    Extracts every module when no NAMES are given. File modification
    times are set from the module timestamps.
    """
    try:
        archive = read_library(lib_file)
        out_dir = output or Path(".")
        out_dir.mkdir(parents=True, exist_ok=True)

        indices = list(range(len(archive.entries)))
        if names:
            # Resolve all names before writing anything
            indices = []
            for name in names:
                index = archive.index_of(name)
                if index is None:
                    raise NotFoundError(name)
                indices.append(index)

        targets = []
        for index in indices:
            entry = archive.entries[index]
            targets.append((entry, extract_path(out_dir, entry.name, index)))
        for entry, obj_path in targets:
            obj_path.write_bytes(entry.payload)
            moment = entry.timestamp.to_datetime()
            if moment is not None:
                stamp = moment.timestamp()
                os.utime(obj_path, (stamp, stamp))
            click.echo(f"Extracted object file {obj_path}")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose, "Archive")


if __name__ == "__main__":
    main()
