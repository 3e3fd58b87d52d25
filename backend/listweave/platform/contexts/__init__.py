"""Client contexts."""

from .client import ClientContext

__all__ = ["ClientContext"]
