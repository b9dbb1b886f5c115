"""HTTP API for the Intro Board service."""
