"""Backend test suite."""
