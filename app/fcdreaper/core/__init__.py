"""Reconciliation engine for orphaned storage objects."""
