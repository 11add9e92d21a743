"""Worker settings."""
import os


def get_redis_url() -> str:
    """Get Redis URL from environment."""
    return os.environ.get("REDIS_URL", "redis://redis:6379/0")


def get_float(name: str, default: float) -> float:
    """Read a float setting from the environment."""
    value = os.environ.get(name)
    return float(value) if value else default


def get_int(name: str, default: int) -> int:
    """Read an integer setting from the environment."""
    value = os.environ.get(name)
    return int(value) if value else default
