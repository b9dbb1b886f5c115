"""Data access for posts."""
