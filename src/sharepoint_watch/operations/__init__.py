"""One-shot document operations."""
