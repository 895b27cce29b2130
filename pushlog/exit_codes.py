"""
Standard exit codes and error types for pushlog.

Following Unix/POSIX conventions for command-line tools. Every error the
core raises is a CommandError carrying the exit code the hook or sweep
process should terminate with.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NO_REPOSITORY = 64       # Target path is not a git repository
GIT_ERROR = 65           # A git plumbing command failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
INGEST_ERROR = 68        # Certificate could not be stored
ARCHIVE_ERROR = 69       # Batch could not be archived
DATA_ERROR = 70          # Data format or validation error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'UnicodeDecodeError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class NotARepositoryError(CommandError):
    """Raised when the target path is not a git repository."""
    def __init__(self, path: str):
        super().__init__(f"Not a git repository: {path}", NO_REPOSITORY)
        self.path = path


class CertificateError(CommandError):
    """Raised when certificate bytes are empty or malformed."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class GitError(CommandError):
    """Raised when a git command exits non-zero or cannot be run."""
    def __init__(self, command: list, returncode: int, stderr: str = ""):
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"git {' '.join(command)}: {detail}", GIT_ERROR)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class IngestError(CommandError):
    """Raised when a certificate blob or its manifest entry was not written."""
    def __init__(self, message: str):
        super().__init__(message, INGEST_ERROR)


class ArchiveError(CommandError):
    """
    Raised when a batch cannot be archived.

    The batch's staging area is left on disk so a later sweep (or an
    operator) can retry it.
    """
    def __init__(self, message: str, batch_id: Optional[str] = None):
        super().__init__(message, ARCHIVE_ERROR)
        self.batch_id = batch_id
