"""Reconciliation services: scanning, merging, matching and sheet sync."""
