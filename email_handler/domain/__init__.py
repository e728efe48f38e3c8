"""Domain models for monitoring events."""

from .models import Check, Entity, Event, EventError, Hook, ObjectMeta, load_event

__all__ = ["Event", "Entity", "Check", "Hook", "ObjectMeta", "EventError", "load_event"]
