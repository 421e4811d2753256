"""Client implementations for external services."""
