"""AI YouTube thumbnail generation service."""
