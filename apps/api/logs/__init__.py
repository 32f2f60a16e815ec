"""Logbook entries and their threads."""
