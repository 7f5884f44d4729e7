"""Utility modules for fcdreaper.

This module exports commonly used utility functions.
"""

from fcdreaper.utils.formatting import (
    console,
    create_storage_table,
    err_console,
    format_status,
    format_storage_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_storage_table",
    "err_console",
    "format_status",
    "format_storage_row",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
