"""Error taxonomy for create-monorepo.

Every failure that can reach the command line is one of the classes below.
Business logic raises them; only the CLI entry point (``create_monorepo.cli``)
maps them to exit codes and user-facing messages.
"""

from __future__ import annotations

from pathlib import Path


class CreateMonorepoError(Exception):
    """Base class for all create-monorepo errors."""

    #: Exit status used by the CLI when this error is fatal.
    exit_code: int = 1


class ValidationError(CreateMonorepoError):
    """Raised when user input (name, port, enum value) is rejected.

    Carries every violation found, not just the first one, so the caller can
    print a complete remediation list.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = list(errors or [])
        detail = f": {', '.join(self.errors)}" if self.errors else ""
        super().__init__(f"{message}{detail}")


class TargetExistsError(CreateMonorepoError):
    """Raised when the project directory already exists."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(
            f'Directory "{self.path.name}" already exists. '
            "Please choose a different name."
        )


class FileSystemError(CreateMonorepoError):
    """Raised when materializing a directory tree fails partway through.

    The tree on disk is left as-is; no rollback is attempted.
    """

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message} ({self.path})")


class ExternalCommandError(CreateMonorepoError):
    """Raised when git or a package manager fails to spawn or exits non-zero."""

    def __init__(
        self,
        command: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"Command could not be started: {command}"
        else:
            message = f"Command failed (exit {returncode}): {command}"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)


class NotAProjectError(CreateMonorepoError):
    """Raised when a command needs a monorepo root and the cwd is not one."""

    def __init__(self, path: str | Path, missing: list[str] | None = None) -> None:
        self.path = Path(path)
        self.missing = list(missing or [])
        super().__init__(
            "Not in a monorepo project directory. "
            "Please run this command from your monorepo root."
        )


class PluginNotFoundError(CreateMonorepoError):
    """Raised when a plugin name is not in the registry."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = list(available or [])
        message = f'Plugin "{name}" not found'
        if self.available:
            message = f"{message}. Available plugins: {', '.join(self.available)}"
        super().__init__(message)
