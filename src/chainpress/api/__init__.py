"""HTTP API for the chainpress service."""
