"""API route modules."""

from . import health, instances, messages

__all__ = ["health", "instances", "messages"]
