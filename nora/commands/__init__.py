"""nora.commands - Long-running CLI commands (dev loop, source watching)."""
