"""Inventory providers for reading and mutating remote storage inventory.

This module exports the provider interface and the vSphere implementation.
"""

from fcdreaper.providers.base import InventoryProvider
from fcdreaper.providers.vsphere import VsphereProvider, connect_vsphere

__all__ = ["InventoryProvider", "VsphereProvider", "connect_vsphere"]
