"""
Text Rendering
==============

Renders OBJ modules and LIB archives the way the vendor tools print them:
DUMPOBJ-style record dumps for modules and ``psylib /l`` listings for
archives.

Example module dump::

    Header : LNK version 2
    46 : Processor type 7
    16 : Section symbol number 1 '.text' in group 0 alignment 8
    6 : Switch to section 1
    2 : Code 4 bytes
    0 : End of file
"""

import logging
from typing import Iterable, Optional

from psyq_sdk.config import DisplayOptions
from psyq_sdk.errors import PsyqError
from psyq_sdk.lib.archive import LibraryArchive, render_listing
from psyq_sdk.obj.module import Module
from psyq_sdk.obj.records import Record

logger = logging.getLogger(__name__)


def format_records(
    records: Iterable[Record],
    version: int,
    options: Optional[DisplayOptions] = None,
) -> str:
    """Dump a record stream, one ``describe()`` block per record."""
    options = options or DisplayOptions()
    lines = [f"Header : LNK version {version}\n"]
    lines.extend(record.describe(options) + "\n" for record in records)
    return "".join(lines)


def format_module(module: Module, options: Optional[DisplayOptions] = None) -> str:
    return format_records(module.records, module.version, options)


def format_library(archive: LibraryArchive, options: Optional[DisplayOptions] = None) -> str:
    """
    Render the module listing of an archive.

    With ``options.recursive`` each module's record dump follows the
    listing. A module that cannot be parsed is reported in place of its
    dump and the remaining modules are still rendered.
    """
    options = options or DisplayOptions()
    text = render_listing(archive)
    if not options.recursive:
        return text

    parts = [text]
    for entry in archive.entries:
        parts.append(f"\n{entry.name}:\n")
        try:
            parts.append(format_module(entry.module(), options))
        except PsyqError as e:
            logger.warning(f"Cannot dump module '{entry.name}': {e}")
            parts.append(f"error: {e}\n")
    return "".join(parts)
