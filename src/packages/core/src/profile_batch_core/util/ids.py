"""ID generation utilities."""
import uuid


def generate_id() -> str:
    """Generate an opaque ID for uploads (hex, safe in file names)."""
    return uuid.uuid4().hex
