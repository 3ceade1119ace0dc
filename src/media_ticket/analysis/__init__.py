"""Media analysis orchestration."""
