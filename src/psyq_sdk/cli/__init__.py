"""
PSY-Q SDK Command-Line Interface
================================

This package provides command-line tools for the PSY-Q SDK:

- **psylib**: LIB archive manager (create, list, add, update, delete, extract)
- **dumpobj**: OBJ record dumper and LIB lister

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["psylib", "dumpobj"]
