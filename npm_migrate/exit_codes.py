"""
Standard exit codes for migrate-npm-registry.

Following Unix/POSIX conventions for command-line tools where the
historical behaviour of the tool does not dictate otherwise.
"""
from typing import Iterable, Optional

SUCCESS = 0              # Every job succeeded
GENERAL_ERROR = 1        # At least one job failed
USAGE_ERROR = 1          # Wrong arguments or --help
NOT_IMPLEMENTED = 2      # Full-catalog migration was requested
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


def aggregate_exit_code(results: Iterable) -> int:
    """
    Decide the process exit code once every job has settled.

    Args:
        results: JobResult objects (anything with a ``success`` attribute)

    Returns:
        SUCCESS if all jobs succeeded, GENERAL_ERROR otherwise
    """
    if all(result.success for result in results):
        return SUCCESS
    return GENERAL_ERROR


def exit_with_code(code: int, message: Optional[str] = None):
    """
    Exit with a specific code and optional message.

    Args:
        code: Exit code
        message: Optional message to print to stdout
    """
    import sys
    if message:
        print(message)
    sys.exit(code)


class CommandError(Exception):
    """
    Exception that carries the exit code a command should end with.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code
