import click
import json
from pathlib import Path

from pushlog.config import load_config, save_config, get_config_path, get_default_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
def show_config(pretty):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    """
    config = load_config()

    if pretty:
        click.echo(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        click.echo(json.dumps(config, ensure_ascii=False))


@config_cmd.command("path")
def config_path():
    """Show the config file path being used."""
    click.echo(json.dumps({"config_path": str(get_config_path())}))


@config_cmd.command("init")
@click.option("--path", "target", type=click.Path(dir_okay=False),
              help="Where to write (default: ~/.pushlog/config.json); .toml/.yaml pick the format")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(target, force):
    """Write the default configuration to a file."""
    path = Path(target).expanduser() if target else get_config_path()
    if path.exists() and not force:
        raise click.ClickException(f"Configuration already exists at {path} (use --force to overwrite)")
    written = save_config(get_default_config(), path)
    click.echo(json.dumps({"config_path": str(written)}))
