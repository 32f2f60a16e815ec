"""Data passes and simulation passes."""
