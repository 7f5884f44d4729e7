"""Discovery record I/O.

This module exports the reader and writer for the text record produced
by a discovery pass.
"""

from fcdreaper.inventory.record import (
    format_inventory,
    iter_inventory,
    parse_inventory,
    read_inventory,
)

__all__ = ["format_inventory", "iter_inventory", "parse_inventory", "read_inventory"]
