"""Data-taking environments and their status history."""
