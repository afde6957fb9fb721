"""Built-in event plugins registered on every client."""

from faultline.plugins.builtins.error import ErrorPlugin

__all__ = ["ErrorPlugin"]
