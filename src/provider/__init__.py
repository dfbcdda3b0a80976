"""Availability provider clients, request building and enrichment."""
