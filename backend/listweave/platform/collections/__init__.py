"""Entity collections."""

from ._base import EntityCollection
from .field_links import FieldLinkCollection

__all__ = ["EntityCollection", "FieldLinkCollection"]
