"""Closed whitelist of gateway actions and their command templates."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .constants import GRAPH_LOG_FORMAT
from .errors import ErrorCode, GatewayError
from .models import Action, CommandTemplate

DEFAULT_TEMPLATES: Mapping[Action, str] = MappingProxyType(
    {
        Action.STATUS: "git status --porcelain",
        Action.STATUS_FULL: "git status",
        Action.ADD: "git add .",
        Action.ADD_FILE: "git add",
        Action.COMMIT: "git commit -m",
        Action.FETCH: "git fetch",
        Action.PULL: "git pull",
        Action.PUSH: "git push",
        Action.LOG: "git log --oneline -10",
        Action.BRANCH: "git branch -a",
        Action.GRAPH: (
            f"git log --graph --pretty=format:{GRAPH_LOG_FORMAT} "
            "--date=short --stat --all -20"
        ),
        Action.CLONE: "git clone",
    }
)


class CommandRegistry:
    """Immutable action -> template table; the only authorization boundary for commands."""

    def __init__(self) -> None:
        self._templates: Mapping[str, CommandTemplate] = MappingProxyType(
            {
                action.value: CommandTemplate(action=action, command=command)
                for action, command in DEFAULT_TEMPLATES.items()
            }
        )

    def resolve(self, action: str) -> CommandTemplate:
        """Return the template for a whitelisted action name."""
        if isinstance(action, Action):
            action = action.value
        template = self._templates.get(action) if isinstance(action, str) else None
        if template is None:
            raise GatewayError(
                ErrorCode.NOT_ALLOWED,
                f"Action not allowed: {action!r}",
                "Use one of: " + ", ".join(self._templates) + ".",
                {"action": str(action)},
            )
        return template

    def actions(self) -> list[Action]:
        return [template.action for template in self._templates.values()]

    def templates(self) -> Mapping[str, CommandTemplate]:
        return self._templates

    def __contains__(self, action: object) -> bool:
        return isinstance(action, str) and action in self._templates
