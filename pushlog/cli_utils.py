"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
import logging
from functools import wraps
from typing import Any, Dict, Generator, Iterable

from .config import load_config
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)

logger = logging.getLogger(__name__)


def emit(items: Iterable[Dict[str, Any]]) -> None:
    """Print dicts as JSONL on stdout."""
    for item in items:
        print(json.dumps(item, ensure_ascii=False), flush=True)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean JSONL output on stdout (dict, list or generator results)
    - Log messages on stderr
    - Automatic --quiet/-q flag to suppress data output
    - Errors reported as a JSON object plus a specific exit code
    """
    @click.option('-q', '--quiet', is_flag=True, help='Suppress data output')
    @wraps(func)
    def wrapper(*args, **kwargs):
        quiet = kwargs.pop('quiet', False)

        try:
            result = func(*args, **kwargs)

            if result is None:
                # Command handles its own output (or has none)
                pass
            elif isinstance(result, (Generator, list, tuple)):
                items = list(result) if isinstance(result, Generator) else result
                if not quiet:
                    emit(items)
            elif not quiet:
                emit([result])

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            logger.error(str(e))
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code
                }
                batch_id = getattr(e, 'batch_id', None)
                if batch_id:
                    error_obj['batch'] = batch_id
                emit([error_obj])
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            if not quiet:
                emit([{"error": str(e), "type": type(e).__name__}])
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def get_service(obj: Dict[str, Any]):
    """Build the ArchiveService for the repository selected on the command line."""
    from .services import ArchiveService

    config = obj.get('config')
    if config is None:
        config = load_config()
    return ArchiveService(obj.get('repo', '.'), config=config)


# Standard options that several commands share
table_option = click.option(
    '--table/--no-table', default=None,
    help='Display as formatted table (auto-detected by default)'
)


def want_table(table) -> bool:
    """Resolve --table/--no-table: tables for interactive terminals only."""
    if table is None:
        return sys.stdout.isatty()
    return table
