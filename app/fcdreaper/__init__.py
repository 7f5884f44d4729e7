"""fcdreaper - Reconcile and remove orphaned First Class Disks."""

__version__ = "0.1.0"
