"""Composition of command templates and sanitized parameters."""

from __future__ import annotations

from .constants import CLONE_DESTINATION
from .models import Action, CommandTemplate, SanitizedParameters


class CommandBuilder:
    """Build the final command string for an action. Pure and deterministic."""

    def build(
        self,
        action: Action,
        template: CommandTemplate,
        params: SanitizedParameters,
    ) -> str:
        command = template.command

        if action == Action.ADD_FILE and params.files:
            return f"{command} {' '.join(params.files)}"
        if action == Action.COMMIT and params.message is not None:
            return f"{command} {params.message}"
        if action == Action.CLONE and params.url is not None:
            return f"{command} {params.url} {CLONE_DESTINATION}"
        return command
