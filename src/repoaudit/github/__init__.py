"""GitHub content and search client."""
