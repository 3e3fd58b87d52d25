"""Base entity collection.

A collection is the ordered owner of the entities of one parent object. It is
generic over the entity kind, so ``create_new_and_add`` returns the concrete
entity type directly.
"""

import threading
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Dict,
    Generic,
    Hashable,
    Iterator,
    List,
    Optional,
    Type,
    TypeVar,
)

from pydantic import ValidationError

from listweave.core.exceptions import InvalidArgumentError, InvalidStateError
from listweave.platform.batch.types import Batch, BatchRequest
from listweave.platform.entities._base import BaseEntity, EntityState

if TYPE_CHECKING:
    from listweave.platform.contexts.client import ClientContext

EntityT = TypeVar("EntityT", bound=BaseEntity)


class EntityCollection(Generic[EntityT]):
    """Ordered, insertion-order container of entities belonging to one parent.

    Subclasses set ``entity_type`` to the entity class they hold.
    """

    entity_type: ClassVar[Type[BaseEntity]] = BaseEntity

    def __init__(self, context: "ClientContext", parent: Any, resource_url: str):
        """Initialize an empty collection.

        Args:
            context: Client context used to obtain and execute batches
            parent: Owning entity (back-reference only)
            resource_url: Site-relative URL add requests are posted to
        """
        self.context = context
        self.parent = parent
        self.resource_url = resource_url
        self._items: List[EntityT] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EntityT]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> EntityT:
        return self._items[index]

    def create_new_and_add(self) -> EntityT:
        """Allocate a new UNINITIALIZED entity and append it at the tail."""
        entity = self.entity_type()
        with self._lock:
            self._items.append(entity)
        return entity

    def validate_properties(self, **properties: Any) -> Dict[str, Any]:
        """Check property values against the entity schema without allocating.

        Returns:
            The validated (and coerced) values, keyed by property name

        Raises:
            InvalidArgumentError: If a value does not fit its property
        """
        try:
            template = self.entity_type(**properties)
        except ValidationError as e:
            error = e.errors()[0]
            aliases = {f.alias: name for name, f in self.entity_type.model_fields.items()}
            location = str(error["loc"][0]) if error["loc"] else ""
            argument = aliases.get(location, location)
            raise InvalidArgumentError(
                argument, f"Invalid value for '{argument}': {error['msg']}"
            ) from e
        return {name: getattr(template, name) for name in properties}

    def remove(self, entity: EntityT) -> None:
        """Remove an entity from the collection."""
        with self._lock:
            self._items = [e for e in self._items if e is not entity]

    def pending(self) -> List[EntityT]:
        """Get entities waiting for their batch to execute."""
        return [e for e in self._items if e.state is EntityState.PENDING]

    def committed(self) -> List[EntityT]:
        """Get entities confirmed by the server."""
        return [e for e in self._items if e.state is EntityState.COMMITTED]

    def failed(self) -> List[EntityT]:
        """Get entities whose add request failed."""
        return [e for e in self._items if e.state is EntityState.FAILED]

    def enqueue(self, batch: Batch, entity: EntityT) -> EntityT:
        """Record an add request for an entity in a batch.

        This is the single primitive both the immediate and the deferred add
        paths go through. On a validation error the entity is removed from the
        collection and nothing is added to the batch.

        Args:
            batch: Batch receiving the request
            entity: UNINITIALIZED entity created by this collection

        Returns:
            The entity, now PENDING

        Raises:
            InvalidStateError: If the entity was already enqueued
            InvalidArgumentError: If the entity is incomplete or a duplicate is pending
        """
        if entity.state is not EntityState.UNINITIALIZED:
            raise InvalidStateError(
                f"Cannot add {type(entity).__name__} in state {entity.state.value}"
            )

        try:
            entity.validate_for_add()
            request = batch.add(
                BatchRequest(
                    method="POST",
                    url=self.resource_url,
                    body=entity.to_payload(),
                    entity=entity,
                    dedup_key=self._dedup_key(entity),
                )
            )
        except Exception:
            self.remove(entity)
            entity.transition_to(EntityState.REMOVED)
            raise

        entity.transition_to(EntityState.PENDING)
        self.context.logger.with_context(batch_id=batch.id, request_id=request.id).debug(
            f"Enqueued {type(entity).__name__} at position {request.order} "
            f"for {self.resource_url}"
        )
        return entity

    def _dedup_key(self, entity: EntityT) -> Optional[Hashable]:
        """Key identifying add requests that may not be pending twice in a batch."""
        return None
