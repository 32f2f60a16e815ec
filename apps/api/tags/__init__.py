"""Tags attached to runs and logs."""
