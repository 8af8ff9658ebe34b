"""CLI error handling with actionable hints.

Provides consistent error formatting for all bgserver CLI commands.
"""

import functools

import click

from bgserver.domain.exceptions import BackgroundServerError


class BgServerCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise BgServerCliError(
            "Server did not become ready",
            hint="Increase [readiness] timeout in bgserver.toml",
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present."""
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    BgServerCliError propagates unchanged; domain errors keep their hint;
    anything else becomes a generic error pointing at --verbose.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (BgServerCliError, click.exceptions.Exit, click.Abort):
                raise
            except BackgroundServerError as e:
                raise BgServerCliError(e.message, hint=e.hint) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj and ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise BgServerCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator
