"""
Common CLI utilities and decorators for consistent command behavior.
"""

import logging
import sys
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Optional

import click

from .exit_codes import INTERRUPTED, CommandError, get_exit_code_for_exception

logger = logging.getLogger(__name__)


@dataclass
class GitArgs:
    """Options shared by every command, resolved against the configuration."""
    remote: str = "origin"
    branch: str = "gh-pages"
    message: Optional[str] = None
    push: bool = False
    allow_empty: bool = False
    deploy_prefix: str = ""
    ignore_remote_status: bool = False


@dataclass
class CliContext:
    """Object passed to every command through click's context."""
    config: Dict[str, Any] = field(default_factory=dict)
    git_args: GitArgs = field(default_factory=GitArgs)
    repo_path: str = "."


def report_error(exc: Exception) -> None:
    """Print a one-line diagnostic (and a hint, when the error has one) to stderr."""
    click.echo(click.style("Error: ", fg="red", bold=True) + str(exc), err=True)
    hint = getattr(exc, 'hint', None)
    if hint:
        click.echo(click.style("Hint: ", fg="yellow", bold=True) + hint, err=True)


def handle_errors(func):
    """
    Decorator that provides standard error handling:
    - docver errors print a one-line diagnostic and exit with their code
    - Ctrl+C exits with 130
    - Click exceptions pass through untouched
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            logger.debug("Command failed", exc_info=True)
            report_error(e)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Unexpected failure", exc_info=True)
            report_error(e)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper
