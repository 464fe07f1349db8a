"""Main CLI entry point for the SAML IdP assertion builder.

This module provides the main Click command group for the saml-idp CLI.
"""

from pathlib import Path
from typing import Optional

import click

from saml_idp import __version__
from saml_idp.cli.assertion_commands import assertion_group
from saml_idp.config import load_config
from saml_idp.logging_audit import configure_logging_from_config
from saml_idp.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="saml-idp")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (e-mail addresses, NameIDs, attribute values) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """SAML IdP - Build SAML 2.0 assertions for service providers.

    Common usage:

        # Build an unsigned assertion for a principal
        saml-idp assertion build --principal user.json \\
            --issuer https://idp.example.com \\
            --audience https://sp.example.com \\
            --acs-url https://sp.example.com/acs

        # Use custom configuration file
        saml-idp --config custom/config.json assertion build ...

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file

    configure_logging_from_config(
        config_obj.logging,
        level="DEBUG" if verbose else None,
        log_file=log_file,
        redact_pii=redact_pii,
    )


cli.add_command(assertion_group)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        saml-idp config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo(f"\nSession expiry: {config_obj.session_expiry or 'no limit'}")

        click.echo("\nNameID:")
        click.echo(f"  Formats:         {', '.join(config_obj.name_id.formats) or 'none'}")
        click.echo(f"  Default format:  {config_obj.name_id.default_format or 'first in catalog'}")

        click.echo(f"\nAttributes:       {', '.join(config_obj.attributes) or 'none'}")

        click.echo("\nSigning:")
        click.echo(f"  Cert path:   {config_obj.signing.cert_path or 'Not configured'}")
        click.echo(f"  Key path:    {config_obj.signing.key_path or 'Not configured'}")
        click.echo(f"  Algorithm:   {config_obj.signing.algorithm}")

        click.echo("\nEncryption:")
        click.echo(f"  Cert path:   {config_obj.encryption.cert_path or 'Not configured'}")
        click.echo(f"  Block:       {config_obj.encryption.block_encryption}")
        click.echo(f"  Key:         {config_obj.encryption.key_transport}")

        click.echo("\nLogging:")
        click.echo(f"  Level:       {config_obj.logging.level}")
        click.echo(f"  Log file:    {config_obj.logging.log_file}")
        click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"saml-idp version {__version__}")


if __name__ == "__main__":
    cli()
