"""Monitoring event models.

The handler consumes one event per invocation, serialized as JSON by the
monitoring backend. Only the fields used by templates and option overrides
are modelled; everything else in the payload is ignored.
"""

import json
from typing import Dict, List, Optional, TextIO

from pydantic import BaseModel, Field, ValidationError

from email_handler.exceptions import EmailHandlerError


class EventError(EmailHandlerError):
    """Raised when the event payload cannot be read or is incomplete."""

    pass


class ObjectMeta(BaseModel):
    """Metadata block shared by entities, checks and hooks."""

    name: str = Field("", description="Resource name")
    namespace: str = Field("", description="Namespace the resource belongs to")
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class Hook(BaseModel):
    """Output of a hook command executed alongside a check."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    command: str = Field("", description="Command the hook ran")
    output: str = Field("", description="Captured hook output")
    status: int = Field(0, description="Hook exit status")

    model_config = {"extra": "ignore"}

    @property
    def name(self) -> str:
        return self.metadata.name


class Entity(BaseModel):
    """The monitored entity (agent, proxy entity, ...)."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    entity_class: str = Field("", description="Entity class, e.g. agent or proxy")

    model_config = {"extra": "ignore"}

    @property
    def name(self) -> str:
        return self.metadata.name


class Check(BaseModel):
    """Result of a check execution."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    state: str = Field("", description="Check state (passing, failing, flapping)")
    status: int = Field(0, description="Check exit status")
    output: str = Field("", description="Check output")
    hooks: Optional[List[Hook]] = Field(None, description="Hooks executed for this check")

    model_config = {"extra": "ignore"}

    @property
    def name(self) -> str:
        return self.metadata.name


class Event(BaseModel):
    """A monitoring event: an entity and the check result that fired."""

    entity: Optional[Entity] = None
    check: Optional[Check] = None

    model_config = {"extra": "ignore"}

    def validate_for_handler(self) -> None:
        """Ensure the event carries both an entity and a check.

        Raises:
            EventError: If either part is missing or unnamed
        """
        if self.entity is None:
            raise EventError("event must contain an entity")
        if not self.entity.name:
            raise EventError("entity name must not be empty")
        if self.check is None:
            raise EventError("event must contain a check")
        if not self.check.name:
            raise EventError("check name must not be empty")

    @property
    def hooks(self) -> List[Hook]:
        if self.check is None or self.check.hooks is None:
            return []
        return list(self.check.hooks)


def load_event(stream: TextIO) -> Event:
    """Read and validate an event from a JSON text stream.

    Args:
        stream: File-like object holding the event JSON (usually stdin)

    Returns:
        Validated Event

    Raises:
        EventError: If the stream is empty, is not JSON, or the event is incomplete
    """
    raw = stream.read()
    if not raw.strip():
        raise EventError("failed to read event: no data on standard input")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise EventError(f"failed to unmarshal event JSON: {e}") from e

    if not isinstance(payload, dict):
        raise EventError("failed to unmarshal event JSON: expected an object")

    try:
        event = Event.model_validate(payload)
    except ValidationError as e:
        raise EventError(f"invalid event: {e}") from e

    event.validate_for_handler()
    return event
