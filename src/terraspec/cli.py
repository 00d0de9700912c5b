"""Command line entry point for terraspec."""

from __future__ import annotations

from typing import Optional

import click

from . import __version__
from .config import load_config
from .constants import DEFAULT_CONFIG_DIR, DEFAULT_SPEC_DIR, ENGINE_KINDS, EXIT_FATAL
from .errors import ConfigError, TerraspecError
from .log import configure_logging
from .orchestrator import exec_terraspec


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--spec",
    "spec_dir",
    default=DEFAULT_SPEC_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory holding the test cases",
)
@click.option(
    "--dir",
    "config_dir",
    default=DEFAULT_CONFIG_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="Terraform configuration directory under test",
)
@click.option("--display-plan", is_flag=True, help="Print the computed plan of each test case")
@click.option(
    "--engine",
    type=click.Choice(ENGINE_KINDS, case_sensitive=False),
    default=None,
    help="Planning engine (default: $TERRASPEC_ENGINE or terraform)",
)
@click.option("--terraform-bin", default=None, help="Path to the terraform executable")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors")
@click.option("--log-level", default=None, help="Log level (default: $TERRASPEC_LOG or WARNING)")
@click.version_option(__version__, prog_name="terraspec")
def cli(
    spec_dir: str,
    config_dir: str,
    display_plan: bool,
    engine: Optional[str],
    terraform_bin: Optional[str],
    no_color: bool,
    log_level: Optional[str],
) -> None:
    """Run the assertions of every test case against the Terraform plan."""

    try:
        config = load_config(
            spec_dir=spec_dir,
            config_dir=config_dir,
            display_plan=display_plan,
            engine=engine,
            terraform_bin=terraform_bin,
            no_color=no_color,
            log_level=log_level,
        )
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc

    configure_logging(config.log_level)
    try:
        code = exec_terraspec(config)
    except TerraspecError as exc:
        click.echo(f"terraspec: {exc}", err=True)
        raise click.exceptions.Exit(EXIT_FATAL) from exc
    raise click.exceptions.Exit(code)


def main() -> None:
    cli()


__all__ = ["cli", "main"]
