"""Availability cache stores, key derivation and reconciliation."""
