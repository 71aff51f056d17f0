"""
Exception classes for docver.

Every error carries the exit code the CLI terminates with, so commands
can let them propagate unchanged.
"""

from typing import Optional

from .exit_codes import (
    CommandError,
    USAGE_ERROR,
    DATA_ERROR,
    IO_ERROR,
    SPAWN_ERROR,
    NON_FAST_FORWARD,
    GIT_ERROR,
)


class DocverError(CommandError):
    """Base exception for all docver errors."""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message, exit_code)


class SerializationError(DocverError):
    """Raised when the versions document cannot be produced or consumed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, DATA_ERROR)


class DuplicateTagError(SerializationError):
    """Raised when a versions document lists the same tag twice."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Duplicate version tag in versions document: '{tag}'")


class SourceReadError(DocverError):
    """Raised when a file to be committed cannot be read."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"Failed to read file for fast-import: {path}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message, IO_ERROR)


class SpawnError(DocverError):
    """Raised when the git executable cannot be launched."""

    def __init__(self, command: str, cause: Optional[BaseException] = None):
        self.command = command
        self.cause = cause
        message = f"Failed to spawn {command}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, SPAWN_ERROR)


class NonFastForwardError(DocverError):
    """Raised when git refuses to move a ref to a commit that does not descend from it."""

    HINT = (
        "The new commit must descend from the current branch tip. "
        "Base the import on the tip (set a parent) or recreate/reset the branch."
    )

    def __init__(self, ref: str, stderr: str):
        self.ref = ref
        self.stderr = stderr
        self.hint = self.HINT
        message = f"git fast-import refused to update {ref} (non-fast-forward)"
        if stderr:
            message = f"{message}. Full error: {stderr}"
        super().__init__(message, NON_FAST_FORWARD)


class ExecutionFailedError(DocverError):
    """Raised when a git command exits with a nonzero status."""

    def __init__(self, command: str, stderr: str, returncode: Optional[int] = None):
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(f"{command} failed: {stderr}", GIT_ERROR)


class AliasConflictError(DocverError):
    """Raised when deploying would silently move an alias off another version."""

    def __init__(self, alias: str, current_tag: str, new_tag: str):
        self.alias = alias
        self.current_tag = current_tag
        self.new_tag = new_tag
        super().__init__(
            f"Alias '{alias}' already points to version '{current_tag}'; "
            f"pass --update-aliases to move it to '{new_tag}'",
            USAGE_ERROR,
        )


class EmptySourceError(DocverError):
    """Raised when the source directory contains no files."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(
            f"No files found in {directory}; pass --allow-empty to deploy anyway",
            USAGE_ERROR,
        )
