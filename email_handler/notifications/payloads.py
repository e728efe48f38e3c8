"""Projection of an event into the field map seen by templates.

Templates reference fields by name; this module fixes that set of names so
rendering never reaches into the event model directly.
"""

from typing import Any, Dict, List

from email_handler.domain.models import Check, Entity, Event, Hook


def build_hook_context(hook: Hook) -> Dict[str, str]:
    return {
        "Name": hook.name,
        "Command": hook.command,
        "Output": hook.output,
    }


def build_template_context(event: Event) -> Dict[str, Any]:
    """Build the template context for an event.

    Returns:
        Dictionary with:
        - EntityName, EntityNamespace: entity metadata
        - CheckName, CheckState, CheckStatus, CheckOutput: check result
        - Hooks: list of {Name, Command, Output} in execution order
        - Entity, Check: the same values nested, e.g. {{Entity.Name}},
          {{Check.Output}}, {{Check.Hooks}}
    """
    entity = event.entity or Entity()
    check = event.check or Check()
    hooks: List[Dict[str, str]] = [build_hook_context(hook) for hook in event.hooks]

    return {
        "EntityName": entity.name,
        "EntityNamespace": entity.metadata.namespace,
        "CheckName": check.name,
        "CheckState": check.state,
        "CheckStatus": check.status,
        "CheckOutput": check.output,
        "Hooks": hooks,
        "Entity": {
            "Name": entity.name,
            "Namespace": entity.metadata.namespace,
        },
        "Check": {
            "Name": check.name,
            "State": check.state,
            "Status": check.status,
            "Output": check.output,
            "Hooks": hooks,
        },
    }
