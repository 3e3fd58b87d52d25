"""Base entity with lifecycle state.

An entity is the in-memory representation of one remote object. Its properties
can be assigned freely while it is UNINITIALIZED. Once an add request has been
recorded in a batch the entity is PENDING and its properties are frozen until
the batch is executed and the entity becomes COMMITTED or FAILED.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_pascal

from listweave.core.exceptions import InvalidStateError


class EntityState(str, Enum):
    """Lifecycle state of an entity."""

    UNINITIALIZED = "uninitialized"
    PENDING = "pending"
    COMMITTED = "committed"
    FAILED = "failed"
    REMOVED = "removed"


_TRANSITIONS: Dict[EntityState, FrozenSet[EntityState]] = {
    EntityState.UNINITIALIZED: frozenset({EntityState.PENDING, EntityState.REMOVED}),
    EntityState.PENDING: frozenset({EntityState.COMMITTED, EntityState.FAILED}),
}


class BaseEntity(BaseModel):
    """Base entity schema.

    Field names are snake_case in Python and PascalCase on the wire.
    """

    id: Optional[str] = Field(None, description="Identity assigned by the server.")

    # Fields written by the server, not guarded by the state check
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id"})
    # Fields that cannot change once they hold a value
    immutable_fields: ClassVar[FrozenSet[str]] = frozenset()
    # Remote resource type sent with add requests
    resource_type: ClassVar[Optional[str]] = None

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        validate_assignment=True,
    )

    _state: EntityState = PrivateAttr(default=EntityState.UNINITIALIZED)
    _error: Optional[str] = PrivateAttr(default=None)

    def __setattr__(self, name: str, value: Any) -> None:
        """Guard property assignment against the entity state."""
        cls = type(self)
        if name in cls.model_fields and name not in cls.server_fields:
            if self._state is not EntityState.UNINITIALIZED:
                raise InvalidStateError(
                    f"Cannot set '{name}' on {cls.__name__} in state {self._state.value}"
                )
            if name in cls.immutable_fields:
                current = getattr(self, name)
                if current and value != current:
                    raise InvalidStateError(
                        f"'{name}' of {cls.__name__} is already set to '{current}'"
                    )
        super().__setattr__(name, value)

    @property
    def state(self) -> EntityState:
        """Current lifecycle state."""
        return self._state

    @property
    def error(self) -> Optional[str]:
        """Failure detail reported for this entity, if any."""
        return self._error

    def transition_to(self, state: EntityState, error: Optional[str] = None) -> None:
        """Move the entity to a new state.

        Args:
            state: Target state
            error: Failure detail, recorded when moving to FAILED

        Raises:
            InvalidStateError: If the transition is not allowed
        """
        allowed = _TRANSITIONS.get(self._state, frozenset())
        if state not in allowed:
            raise InvalidStateError(
                f"{type(self).__name__} cannot move from {self._state.value} to {state.value}"
            )
        self._state = state
        if error is not None:
            self._error = error

    def mark_committed(self, assigned_id: Optional[Any] = None) -> None:
        """Record remote success and the server-issued identity."""
        self.transition_to(EntityState.COMMITTED)
        if assigned_id is not None:
            self.id = str(assigned_id)

    def mark_failed(self, error: Optional[str]) -> None:
        """Record remote failure."""
        self.transition_to(EntityState.FAILED, error=error or "unknown error")

    def validate_for_add(self) -> None:
        """Check the entity can be sent in an add request.

        Raises:
            InvalidArgumentError: If a required property is missing
        """
        pass

    def properties(self) -> Dict[str, Any]:
        """Get the property mapping (without server-managed fields)."""
        return self.model_dump(exclude=set(self.server_fields))

    def to_payload(self) -> Dict[str, Any]:
        """Get the request body for an add request."""
        payload = self.model_dump(by_alias=True, exclude=set(self.server_fields), exclude_none=True)
        if self.resource_type:
            payload["__metadata"] = {"type": self.resource_type}
        return payload
