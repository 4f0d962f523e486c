"""Check evaluation."""
