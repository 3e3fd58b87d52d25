"""Field link collection of a content type."""

from typing import ClassVar, Hashable, Optional, Type

from listweave.core.exceptions import InvalidArgumentError
from listweave.platform.batch.types import Batch
from listweave.platform.collections._base import EntityCollection
from listweave.platform.entities.field_link import FieldLinkEntity


class FieldLinkCollection(EntityCollection[FieldLinkEntity]):
    """Field links attached to one content type."""

    entity_type: ClassVar[Type[FieldLinkEntity]] = FieldLinkEntity

    async def add(
        self,
        field_internal_name: str,
        display_name: Optional[str] = None,
        hidden: bool = False,
        required: bool = False,
        read_only: bool = False,
        show_in_display_form: bool = True,
    ) -> FieldLinkEntity:
        """Add a field link and wait for the server to confirm it.

        The link is enqueued into a fresh single-use batch which is executed
        right away.

        Args:
            field_internal_name: Internal name of the field to link
            display_name: Optional display name override
            hidden: Hide the field in forms
            required: Require a value
            read_only: Make the field read-only
            show_in_display_form: Show the field in the display form

        Returns:
            The COMMITTED field link

        Raises:
            InvalidArgumentError: If field_internal_name is empty or a value has the
                wrong type
            RemoteOperationFailedError: If the server rejected the link (the
                entity is left FAILED)
        """
        batch = self.context.new_batch()
        field_link = self._create_and_enqueue(
            batch,
            field_internal_name,
            display_name,
            hidden,
            required,
            read_only,
            show_in_display_form,
        )
        await self.context.execute(batch)
        return field_link

    async def add_batch(
        self,
        batch: Batch,
        field_internal_name: str,
        display_name: Optional[str] = None,
        hidden: bool = False,
        required: bool = False,
        read_only: bool = False,
        show_in_display_form: bool = True,
    ) -> FieldLinkEntity:
        """Add a field link to a batch without executing it.

        The returned link is PENDING until the caller executes ``batch``.

        Raises:
            InvalidArgumentError: If field_internal_name is empty, or a link for
                the same field is already pending in the batch
        """
        return self._create_and_enqueue(
            batch,
            field_internal_name,
            display_name,
            hidden,
            required,
            read_only,
            show_in_display_form,
        )

    async def add_batch_current(
        self,
        field_internal_name: str,
        display_name: Optional[str] = None,
        hidden: bool = False,
        required: bool = False,
        read_only: bool = False,
        show_in_display_form: bool = True,
    ) -> FieldLinkEntity:
        """Add a field link to the context's current batch."""
        return await self.add_batch(
            self.context.current_batch,
            field_internal_name,
            display_name,
            hidden,
            required,
            read_only,
            show_in_display_form,
        )

    def _create_and_enqueue(
        self,
        batch: Batch,
        field_internal_name: str,
        display_name: Optional[str],
        hidden: bool,
        required: bool,
        read_only: bool,
        show_in_display_form: bool,
    ) -> FieldLinkEntity:
        # Validate before allocating so a bad call leaves the collection untouched
        if not field_internal_name:
            raise InvalidArgumentError("field_internal_name")
        properties = self.validate_properties(
            field_internal_name=field_internal_name,
            display_name=display_name,
            hidden=hidden,
            required=required,
            read_only=read_only,
            show_in_display_form=show_in_display_form,
        )

        field_link = self.create_new_and_add()
        for name, value in properties.items():
            setattr(field_link, name, value)

        return self.enqueue(batch, field_link)

    def _dedup_key(self, entity: FieldLinkEntity) -> Optional[Hashable]:
        return (self.resource_url, entity.field_internal_name)
