#!/usr/bin/env python3

import json

import click

from pushlog.config import load_config, configure_logging
from pushlog.exit_codes import ConfigError
from pushlog.commands.accept import accept_handler
from pushlog.commands.sweep import sweep_handler
from pushlog.commands.log import log_handler
from pushlog.commands.status import status_handler
from pushlog.commands.config import config_cmd


@click.group()
@click.version_option(package_name='pushlog')
@click.option('-C', '--repo', default='.', type=click.Path(file_okay=False),
              help='Repository to operate on (default: current directory)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, repo, debug):
    """pushlog - Batch and archive signed git push certificates.

    Certificates accepted from the post-receive hook are queued, then folded
    into an append-only log ref whose tree is indexed by ref name, so
    `git log refs/push-certs -- refs/heads/main` lists every signed push
    to main.
    """
    ctx.ensure_object(dict)
    ctx.obj['repo'] = repo
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand != 'config':
        try:
            config = load_config()
            configure_logging(config, debug=debug)
        except ConfigError as e:
            click.echo(json.dumps({"error": str(e), "type": "ConfigError", "exit_code": e.exit_code}))
            ctx.exit(e.exit_code)
        ctx.obj['config'] = config


cli.add_command(accept_handler, name='accept')
cli.add_command(sweep_handler, name='sweep')
cli.add_command(log_handler, name='log')
cli.add_command(status_handler, name='status')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
