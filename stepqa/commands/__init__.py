"""Reusable commands that expand into queued steps."""

from stepqa.commands.builtin import login_action, register_builtins, request_action
from stepqa.commands.registry import CommandFactory, CommandRegistry, StepHandle


def default_registry() -> CommandRegistry:
    """A fresh registry holding the built-in commands."""
    return register_builtins(CommandRegistry())


__all__ = [
    "CommandFactory",
    "CommandRegistry",
    "StepHandle",
    "default_registry",
    "login_action",
    "register_builtins",
    "request_action",
]
