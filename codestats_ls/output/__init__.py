"""Terminal rendering for the standalone CLI commands."""
