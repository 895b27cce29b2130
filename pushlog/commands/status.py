"""
Status command for pushlog.

Reports the archive's pending, staged and archived state and which locks
are currently held, so stuck hooks can be spotted from outside.
"""

import click

from ..cli_utils import standard_command, get_service, table_option, want_table
from ..render import render_status


@click.command(name='status')
@table_option
@click.pass_obj
@standard_command
def status_handler(obj, table):
    """
    Show archive status.

    Output format:
    - Interactive terminal: Table format by default
    - Piped/redirected: single JSON object
    """
    status = get_service(obj).status()
    if want_table(table):
        render_status(status)
        return None
    return status
