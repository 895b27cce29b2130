"""
Sweep command for pushlog.

Flushes sub-threshold pending sets and finishes batches left behind by an
interrupted archival pass. Safe to run from cron at any interval.
"""

import click

from ..cli_utils import standard_command, get_service


@click.command('sweep')
@click.pass_obj
@standard_command
def sweep_handler(obj):
    """
    Archive everything pending or staged.

    \b
    Examples:
        pushlog sweep
        pushlog -C /srv/git/project.git sweep
    """
    return get_service(obj).sweep()
