"""Git access, duration parsing and logging helpers used by the today CLI."""
