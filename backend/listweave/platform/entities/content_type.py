"""Content type entity, the parent of a field link collection."""

from typing import TYPE_CHECKING, Any, Optional

from pydantic import Field, PrivateAttr

from listweave.platform.entities._base import BaseEntity, EntityState

if TYPE_CHECKING:
    from listweave.platform.collections.field_links import FieldLinkCollection
    from listweave.platform.contexts.client import ClientContext


class ContentTypeEntity(BaseEntity):
    """Schema for an existing content type on a site or list."""

    id: str = Field(..., description="Content type ID (e.g. '0x0100...').")
    name: Optional[str] = Field(None, description="Name of the content type.")
    list_id: Optional[str] = Field(
        None, description="ID of the list the content type belongs to, if any."
    )

    _context: Optional[Any] = PrivateAttr(default=None)
    _field_links: Optional[Any] = PrivateAttr(default=None)

    @classmethod
    def bind(
        cls,
        context: "ClientContext",
        content_type_id: str,
        name: Optional[str] = None,
        list_id: Optional[str] = None,
    ) -> "ContentTypeEntity":
        """Create a handle for a content type that already exists remotely."""
        entity = cls(id=content_type_id, name=name, list_id=list_id)
        entity._context = context
        entity._state = EntityState.COMMITTED
        return entity

    @property
    def resource_url(self) -> str:
        """Site-relative REST URL of the content type."""
        if self.list_id:
            return f"_api/web/lists(guid'{self.list_id}')/contenttypes('{self.id}')"
        return f"_api/web/contenttypes('{self.id}')"

    @property
    def field_links(self) -> "FieldLinkCollection":
        """Field links of this content type."""
        if self._field_links is None:
            from listweave.platform.collections.field_links import FieldLinkCollection

            if self._context is None:
                raise RuntimeError("Content type is not bound to a client context")
            self._field_links = FieldLinkCollection(
                context=self._context,
                parent=self,
                resource_url=f"{self.resource_url}/fieldlinks",
            )
        return self._field_links
