"""RQ worker for batch profile extraction."""
