"""HTTP API for batch profile extraction."""
