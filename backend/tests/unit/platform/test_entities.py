"""Tests for entity lifecycle and property guards."""

import pytest

from listweave.core.exceptions import InvalidArgumentError, InvalidStateError
from listweave.platform.entities import ContentTypeEntity, EntityState, FieldLinkEntity


def test_new_entity_is_uninitialized_with_defaults():
    """Test the initial state and defaults of a field link."""
    entity = FieldLinkEntity()

    assert entity.state is EntityState.UNINITIALIZED
    assert entity.id is None
    assert entity.error is None
    assert entity.show_in_display_form is True
    assert entity.hidden is False


def test_properties_assignable_while_uninitialized():
    """Test that assignment is plain mutation before the entity is pending."""
    entity = FieldLinkEntity()

    entity.field_internal_name = "Title"
    entity.display_name = "Title Field"
    entity.required = True

    assert entity.properties()["required"] is True
    assert entity.properties()["display_name"] == "Title Field"


def test_assignment_validates_types():
    """Test that assignment goes through pydantic validation."""
    entity = FieldLinkEntity()

    with pytest.raises(ValueError):
        entity.hidden = "not a bool"


def test_internal_name_is_immutable_once_set():
    """Test that a set internal name cannot be replaced."""
    entity = FieldLinkEntity()
    entity.field_internal_name = "Title"

    entity.field_internal_name = "Title"
    with pytest.raises(InvalidStateError):
        entity.field_internal_name = "Status"

    assert entity.field_internal_name == "Title"


def test_assignment_rejected_after_pending():
    """Test that properties are frozen once pending."""
    entity = FieldLinkEntity(field_internal_name="Title")
    entity.transition_to(EntityState.PENDING)

    with pytest.raises(InvalidStateError):
        entity.display_name = "Other"


def test_valid_lifecycle_to_committed():
    """Test UNINITIALIZED -> PENDING -> COMMITTED."""
    entity = FieldLinkEntity(field_internal_name="Title")

    entity.transition_to(EntityState.PENDING)
    entity.mark_committed(42)

    assert entity.state is EntityState.COMMITTED
    assert entity.id == "42"


def test_valid_lifecycle_to_failed():
    """Test UNINITIALIZED -> PENDING -> FAILED."""
    entity = FieldLinkEntity(field_internal_name="Title")

    entity.transition_to(EntityState.PENDING)
    entity.mark_failed("Access denied")

    assert entity.state is EntityState.FAILED
    assert entity.error == "Access denied"


@pytest.mark.parametrize(
    "path",
    [
        [EntityState.COMMITTED],
        [EntityState.FAILED],
        [EntityState.PENDING, EntityState.PENDING],
        [EntityState.PENDING, EntityState.COMMITTED, EntityState.FAILED],
        [EntityState.PENDING, EntityState.FAILED, EntityState.COMMITTED],
        [EntityState.REMOVED, EntityState.PENDING],
    ],
)
def test_invalid_transitions_raise(path):
    """Test that terminal states and skipped steps are rejected."""
    entity = FieldLinkEntity(field_internal_name="Title")

    with pytest.raises(InvalidStateError):
        for state in path:
            entity.transition_to(state)


def test_validate_for_add_requires_internal_name():
    """Test the add precondition."""
    with pytest.raises(InvalidArgumentError) as exc_info:
        FieldLinkEntity().validate_for_add()

    assert exc_info.value.argument == "field_internal_name"
    FieldLinkEntity(field_internal_name="Title").validate_for_add()


def test_payload_omits_absent_display_name():
    """Test that unset optional properties are not sent."""
    payload = FieldLinkEntity(field_internal_name="Status").to_payload()

    assert "DisplayName" not in payload
    assert "Id" not in payload
    assert payload["ShowInDisplayForm"] is True


def test_entity_accepts_wire_names():
    """Test that entities can be built from a server payload."""
    entity = FieldLinkEntity.model_validate(
        {"Id": "abc", "FieldInternalName": "Title", "Hidden": True}
    )

    assert entity.id == "abc"
    assert entity.field_internal_name == "Title"
    assert entity.hidden is True


def test_content_type_resource_urls(context):
    """Test list and site content type URLs."""
    site_ct = ContentTypeEntity.bind(context, "0x0101")
    list_ct = ContentTypeEntity.bind(context, "0x0101", list_id="abcd")

    assert site_ct.resource_url == "_api/web/contenttypes('0x0101')"
    assert list_ct.resource_url == "_api/web/lists(guid'abcd')/contenttypes('0x0101')"
    assert list_ct.field_links.resource_url.endswith("/fieldlinks")
    assert list_ct.state is EntityState.COMMITTED


def test_content_type_field_links_is_cached(content_type):
    """Test that the collection lives as long as its parent."""
    assert content_type.field_links is content_type.field_links
    assert content_type.field_links.parent is content_type


def test_unbound_content_type_has_no_field_links():
    """Test that a content type needs a context to reach its field links."""
    with pytest.raises(RuntimeError):
        ContentTypeEntity(id="0x01").field_links
