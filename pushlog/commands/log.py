"""
Log command for pushlog.

Lists archived certificates, either all of them or those touching one ref.
"""

import click
from typing import Optional

from ..cli_utils import standard_command, get_service, table_option, want_table
from ..render import render_log_table


@click.command('log')
@click.argument('ref', required=False)
@click.option('--certificates', '-c', is_flag=True, help='Include certificate text in JSON output')
@table_option
@click.pass_obj
@standard_command
def log_handler(obj, ref: Optional[str], certificates: bool, table):
    """
    Show archived push certificates, oldest first.

    REF: Only certificates covering this ref (e.g. refs/heads/main)

    \b
    Examples:
        pushlog log
        pushlog log refs/heads/main --certificates
        pushlog log refs/tags/v1.0 --table
    """
    service = get_service(obj)
    as_table = want_table(table)
    load = certificates or as_table

    if ref:
        entries = service.history(ref, with_certificates=load)
    else:
        entries = service.entries(with_certificates=load)

    if as_table:
        render_log_table(entries, title=ref)
        return None

    return [entry.to_dict() for entry in entries]
