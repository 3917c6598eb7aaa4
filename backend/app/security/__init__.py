"""Request admission control."""
