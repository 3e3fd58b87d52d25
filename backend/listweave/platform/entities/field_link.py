"""Field link entity.

A field link attaches a site or list field to a content type.
"""

from typing import ClassVar, FrozenSet, Optional

from pydantic import Field

from listweave.core.exceptions import InvalidArgumentError
from listweave.platform.entities._base import BaseEntity


class FieldLinkEntity(BaseEntity):
    """Schema for a content type field link."""

    field_internal_name: Optional[str] = Field(
        None, description="Internal name of the linked field. Required to add the link."
    )
    display_name: Optional[str] = Field(
        None, description="Display name override shown for the field in this content type."
    )
    hidden: bool = Field(False, description="Whether the field is hidden in forms.")
    required: bool = Field(False, description="Whether a value is required.")
    read_only: bool = Field(False, description="Whether the field is read-only.")
    show_in_display_form: bool = Field(
        True, description="Whether the field is shown in the display form."
    )

    immutable_fields: ClassVar[FrozenSet[str]] = frozenset({"field_internal_name"})
    resource_type: ClassVar[Optional[str]] = "SP.FieldLink"

    def validate_for_add(self) -> None:
        """Require a non-empty internal name."""
        if not self.field_internal_name:
            raise InvalidArgumentError("field_internal_name")
