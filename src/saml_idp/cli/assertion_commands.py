"""Assertion CLI commands.

This module provides the ``saml-idp assertion build`` command, which builds a
SAML 2.0 assertion for a principal read from a JSON file, with optional
signing and encryption.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

import click

from saml_idp.config.schema import IdpConfig
from saml_idp.models.saml import AssertionRequest, EncryptionParams, SAMLAssertion
from saml_idp.namespaces import (
    AUTHN_CONTEXT_PASSWORD_PROTECTED_TRANSPORT,
    BLOCK_ENCRYPTION_ALGORITHMS,
    KEY_TRANSPORT_ALGORITHMS,
    SIGNATURE_ALGORITHMS,
)
from saml_idp.saml import (
    AssertionBuilder,
    AssertionEncryptor,
    load_certificate,
    load_certificate_from_string,
    pretty_print_xml,
    time_window_strings,
)
from saml_idp.utils.exceptions import (
    ConfigurationError,
    SAMLError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@click.group(name="assertion")
def assertion_group() -> None:
    """SAML assertion commands."""
    pass


def _load_principal(principal_file: Path) -> Dict[str, Any]:
    """Read the principal from a JSON object file.

    Raises:
        ValidationError: If the file is not a JSON object
    """
    try:
        principal = json.loads(principal_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Invalid JSON in principal file {principal_file}: {e}. "
            f"Provide a JSON object with the principal's attributes."
        ) from e

    if not isinstance(principal, dict):
        raise ValidationError(
            f"Principal file {principal_file} must contain a JSON object, "
            f"got {type(principal).__name__}."
        )
    return principal


def _encryption_params(
    config: IdpConfig,
    encryption_cert: Optional[Path],
    block_encryption: Optional[str],
    key_transport: Optional[str],
) -> EncryptionParams:
    cert_path = encryption_cert or config.encryption.cert_path
    if cert_path is None:
        raise ConfigurationError(
            "Encryption requires --encryption-cert or encryption.cert_path in the "
            "configuration file."
        )
    return EncryptionParams(
        cert=load_certificate_from_string(Path(cert_path)),
        block_encryption=block_encryption or config.encryption.block_encryption,
        key_transport=key_transport or config.encryption.key_transport,
    )


def _cert_password(config: IdpConfig, cert_password: Optional[str]) -> Optional[bytes]:
    if cert_password:
        return cert_password.encode("utf-8")
    env_var = config.signing.pkcs12_password_env_var
    env_password = os.getenv(env_var) if env_var else None
    return env_password.encode("utf-8") if env_password else None


def _format_xml_output(xml_content: str, format_type: str) -> str:
    if format_type == "pretty":
        return pretty_print_xml(xml_content)
    return xml_content


def _display_assertion_metadata(assertion: SAMLAssertion) -> None:
    """Display SAML assertion metadata in readable format."""
    times = time_window_strings(assertion.time_window)
    click.echo(f"ID:             {assertion.assertion_id}")
    click.echo(f"Issuer:         {assertion.issuer}")
    click.echo(f"Audience:       {assertion.audience}")
    click.echo(f"NameID Format:  {assertion.name_id.format_uri}")
    click.echo(f"Issue Instant:  {times['issued_at']}")
    click.echo(f"Valid From:     {times['not_before']}")
    click.echo(f"Valid Until:    {times['not_on_or_after_condition']}")
    click.echo(f"Session Until:  {times['session_not_on_or_after'] or 'no limit'}")
    click.echo(f"Attributes:     {len(assertion.attributes)}")
    if assertion.certificate_subject:
        click.echo(f"Signed By:      {assertion.certificate_subject}")


@assertion_group.command(name="build")
@click.option(
    "--principal",
    "principal_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON file with the principal's attributes",
)
@click.option(
    "--reference-id",
    type=str,
    default=None,
    help="Reference id for the assertion ID and SessionIndex (default: random)",
)
@click.option("--issuer", type=str, required=True, help="Identity provider entity ID")
@click.option("--audience", type=str, required=True, help="Service provider entity ID")
@click.option("--acs-url", type=str, required=True, help="Assertion consumer service URL")
@click.option(
    "--request-id",
    type=str,
    default=None,
    help="ID of the AuthnRequest being answered (omit for IdP-initiated flows)",
)
@click.option(
    "--algorithm",
    type=click.Choice(SIGNATURE_ALGORITHMS),
    default=None,
    help="Signature algorithm (default: from configuration)",
)
@click.option(
    "--authn-context",
    type=str,
    default=AUTHN_CONTEXT_PASSWORD_PROTECTED_TRANSPORT,
    show_default=True,
    help="Authentication context class reference",
)
@click.option(
    "--expiry",
    type=click.IntRange(min=1),
    default=3600,
    show_default=True,
    help="Assertion validity in seconds",
)
@click.option(
    "--session-expiry",
    type=click.IntRange(min=0),
    default=None,
    help="Session validity in seconds, 0 for no limit (default: from configuration)",
)
@click.option("--sign", is_flag=True, help="Sign assertion with certificate")
@click.option(
    "--cert",
    type=click.Path(exists=True, path_type=Path),
    help="Certificate file path (PEM/PKCS12/DER)",
)
@click.option(
    "--key",
    type=click.Path(exists=True, path_type=Path),
    help="Private key file path (if separate from cert)",
)
@click.option("--cert-password", type=str, help="Certificate password (for PKCS12)")
@click.option("--encrypt", is_flag=True, help="Encrypt assertion for the service provider")
@click.option(
    "--encryption-cert",
    type=click.Path(exists=True, path_type=Path),
    help="Service provider encryption certificate (PEM or DER)",
)
@click.option(
    "--block-encryption",
    type=click.Choice(list(BLOCK_ENCRYPTION_ALGORITHMS)),
    default=None,
    help="Block cipher (default: from configuration)",
)
@click.option(
    "--key-transport",
    type=click.Choice(list(KEY_TRANSPORT_ALGORITHMS)),
    default=None,
    help="Key transport algorithm (default: from configuration)",
)
@click.option("--output", type=click.Path(path_type=Path), help="Save assertion to file")
@click.option(
    "--format",
    type=click.Choice(["xml", "pretty"]),
    default="xml",
    help="Output format (default: xml)",
)
@click.pass_context
def build(
    ctx: click.Context,
    principal_file: Path,
    reference_id: Optional[str],
    issuer: str,
    audience: str,
    acs_url: str,
    request_id: Optional[str],
    algorithm: Optional[str],
    authn_context: str,
    expiry: int,
    session_expiry: Optional[int],
    sign: bool,
    cert: Optional[Path],
    key: Optional[Path],
    cert_password: Optional[str],
    encrypt: bool,
    encryption_cert: Optional[Path],
    block_encryption: Optional[str],
    key_transport: Optional[str],
    output: Optional[Path],
    format: str,
) -> None:
    """Build a SAML 2.0 assertion for a principal.

    The NameID format catalog and attribute release catalog come from the
    configuration file.

    Examples:

        # Unsigned assertion answering an AuthnRequest
        saml-idp assertion build --principal user.json \\
            --issuer https://idp.example.com \\
            --audience https://sp.example.com \\
            --acs-url https://sp.example.com/acs \\
            --request-id _a1b2c3

        # Signed and encrypted assertion
        saml-idp assertion build --principal user.json \\
            --issuer https://idp.example.com \\
            --audience https://sp.example.com \\
            --acs-url https://sp.example.com/acs \\
            --sign --cert certs/idp.pem --key certs/idp-key.pem \\
            --encrypt --encryption-cert certs/sp.pem
    """
    ctx.ensure_object(dict)
    config: IdpConfig = ctx.obj.get("config") or IdpConfig()

    try:
        if sign and not (cert or config.signing.cert_path):
            raise click.UsageError(
                "Signing requires --cert parameter or signing.cert_path in the "
                "configuration file."
            )

        logger.info("Starting SAML assertion build")

        encryption_opts = None
        if encrypt:
            encryption_opts = _encryption_params(
                config, encryption_cert, block_encryption, key_transport
            )

        request = AssertionRequest(
            reference_id=reference_id or uuid.uuid4().hex,
            issuer_uri=issuer,
            principal=_load_principal(principal_file),
            audience_uri=audience,
            saml_request_id=request_id,
            saml_acs_url=acs_url,
            algorithm=algorithm or config.signing.algorithm,
            authn_context_classref=authn_context,
            expiry=expiry,
            encryption_opts=encryption_opts,
            session_expiry=session_expiry,
        )
        builder = AssertionBuilder(request, config=config)
        assertion = builder.build_assertion()

        if sign:
            cert_path = cert or config.signing.cert_path
            key_path = key or config.signing.key_path
            logger.info(f"Signing assertion with certificate: {cert_path}")
            cert_bundle = load_certificate(
                cert_path,  # type: ignore
                key_path=key_path,
                password=_cert_password(config, cert_password),
            )
            assertion = builder.sign(cert_bundle, assertion)
            click.echo(click.style("✓", fg="green", bold=True) + " SAML assertion signed")

        result_xml = assertion.xml_content
        if encrypt:
            result_xml = AssertionEncryptor(request.encryption_opts).encrypt(result_xml)
            click.echo(click.style("✓", fg="green", bold=True) + " SAML assertion encrypted")

        formatted_xml = _format_xml_output(result_xml, format)

        click.echo(click.style("\n=== SAML Assertion Metadata ===", bold=True))
        _display_assertion_metadata(assertion)

        if output:
            output.write_text(formatted_xml, encoding="utf-8")
            click.echo(
                click.style("\n✓", fg="green", bold=True)
                + f" SAML assertion saved to: {output}"
            )
        else:
            click.echo(click.style("\n=== SAML Assertion XML ===", bold=True))
            click.echo(formatted_xml)

        logger.info("SAML assertion build completed successfully")

    except click.UsageError:
        raise
    except ConfigurationError as e:
        click.echo(
            click.style("✗", fg="red", bold=True) + f" Configuration error: {e}",
            err=True,
        )
        logger.error(f"Configuration error during assertion build: {e}")
        raise click.exceptions.Exit(1)
    except ValidationError as e:
        click.echo(
            click.style("✗", fg="red", bold=True) + f" Validation error: {e}",
            err=True,
        )
        logger.error(f"Validation error during assertion build: {e}")
        raise click.exceptions.Exit(1)
    except SAMLError as e:
        click.echo(
            click.style("✗", fg="red", bold=True) + f" SAML error: {e}",
            err=True,
        )
        logger.error(f"SAML error during assertion build: {e}")
        raise click.exceptions.Exit(1)
