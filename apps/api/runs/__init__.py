"""Runs and the reference data they point to."""
