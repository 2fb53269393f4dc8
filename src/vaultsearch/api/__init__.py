"""HTTP API for the vault search service."""
