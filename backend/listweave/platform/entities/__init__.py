"""Entity schemas."""

from ._base import BaseEntity, EntityState
from .content_type import ContentTypeEntity
from .field_link import FieldLinkEntity

__all__ = [
    "BaseEntity",
    "ContentTypeEntity",
    "EntityState",
    "FieldLinkEntity",
]
