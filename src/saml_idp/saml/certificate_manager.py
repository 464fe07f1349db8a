"""Certificate management module for loading X.509 certificates and keys.

This module loads the identity provider signing credentials from PEM, DER or
PKCS12 files and the service provider encryption certificate from PEM text.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from ..models.saml import CertificateBundle, CertificateInfo
from ..utils.exceptions import CertificateLoadError

logger = logging.getLogger(__name__)

EXPIRATION_WARNING_DAYS = 30


def get_certificate_info(cert: x509.Certificate) -> CertificateInfo:
    """Extract certificate information for display and logging.

    Args:
        cert: X.509 certificate

    Returns:
        CertificateInfo dataclass with certificate details

    Example:
        >>> cert = load_pem_certificate(Path("certs/idp.pem"))
        >>> info = get_certificate_info(cert)
        >>> print(info.subject)
        CN=idp.example.com
    """
    public_key = cert.public_key()
    key_size = public_key.key_size if hasattr(public_key, "key_size") else None

    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        serial_number=cert.serial_number,
        key_size=key_size,
    )


def check_expiration_warning(
    cert: x509.Certificate, warning_days: int = EXPIRATION_WARNING_DAYS
) -> bool:
    """Log a warning if the certificate expires within ``warning_days``.

    Returns:
        True if the certificate is expired or expiring soon
    """
    now = datetime.now(timezone.utc)
    if cert.not_valid_after_utc < now + timedelta(days=warning_days):
        days_remaining = (cert.not_valid_after_utc - now).days
        logger.warning(
            f"Certificate expiring soon: {days_remaining} days remaining "
            f"(expires: {cert.not_valid_after_utc.strftime('%Y-%m-%d')})"
        )
        return True
    return False


def _read_file(path: Path, description: str) -> bytes:
    if not path.exists():
        raise CertificateLoadError(
            f"{description} file not found: {path}. "
            f"Ensure the file exists and path is correct."
        )
    with open(path, "rb") as f:
        return f.read()


def load_certificate_from_string(cert_data: Union[str, bytes, Path]) -> x509.Certificate:
    """Load an X.509 certificate from PEM text, DER bytes or a file path.

    PEM text without the BEGIN/END armour (as found in SAML metadata) is
    accepted as well.

    Args:
        cert_data: Certificate content or path

    Returns:
        Loaded X.509 certificate

    Raises:
        CertificateLoadError: If the certificate cannot be parsed
    """
    if isinstance(cert_data, Path):
        cert_data = _read_file(cert_data, "Certificate")

    if isinstance(cert_data, str):
        text = cert_data.strip()
        if "-----BEGIN" not in text:
            body = "".join(text.split())
            lines = "\n".join(body[i:i + 64] for i in range(0, len(body), 64))
            text = f"-----BEGIN CERTIFICATE-----\n{lines}\n-----END CERTIFICATE-----"
        cert_data = text.encode("ascii")

    try:
        if b"-----BEGIN" in cert_data:
            return x509.load_pem_x509_certificate(cert_data)
        return x509.load_der_x509_certificate(cert_data)
    except ValueError as e:
        raise CertificateLoadError(
            f"Failed to parse certificate: {e}. "
            f"Provide a PEM or DER encoded X.509 certificate."
        ) from e


def load_pem_certificate(cert_path: Path) -> x509.Certificate:
    """Load X.509 certificate from PEM file.

    Raises:
        CertificateLoadError: If certificate cannot be loaded
    """
    cert_data = _read_file(cert_path, "Certificate")
    try:
        cert = x509.load_pem_x509_certificate(cert_data)
    except ValueError as e:
        raise CertificateLoadError(
            f"Failed to load PEM certificate from {cert_path}: {e}. "
            f"Ensure file is valid PEM format."
        ) from e

    logger.info(f"Loaded PEM certificate: {cert.subject.rfc4514_string()}")
    check_expiration_warning(cert)
    return cert


def load_der_certificate(cert_path: Path) -> x509.Certificate:
    """Load X.509 certificate from DER file.

    Raises:
        CertificateLoadError: If certificate cannot be loaded
    """
    cert_data = _read_file(cert_path, "Certificate")
    try:
        cert = x509.load_der_x509_certificate(cert_data)
    except ValueError as e:
        raise CertificateLoadError(
            f"Failed to load DER certificate from {cert_path}: {e}. "
            f"Ensure file is valid DER format."
        ) from e

    logger.info(f"Loaded DER certificate: {cert.subject.rfc4514_string()}")
    check_expiration_warning(cert)
    return cert


def load_pem_private_key(key_path: Path, password: Optional[bytes] = None) -> Any:
    """Load private key from PEM file.

    Args:
        key_path: Path to PEM private key file
        password: Optional password for encrypted private key

    Returns:
        Loaded private key

    Raises:
        CertificateLoadError: If private key cannot be loaded
    """
    key_data = _read_file(key_path, "Private key")
    try:
        private_key = serialization.load_pem_private_key(key_data, password=password)
    except TypeError as e:
        raise CertificateLoadError(
            f"Failed to load private key from {key_path}: Incorrect password. "
            f"If key is encrypted, provide correct password."
        ) from e
    except ValueError as e:
        raise CertificateLoadError(
            f"Failed to load PEM private key from {key_path}: {e}. "
            f"Ensure file is valid PEM format and password is correct if encrypted."
        ) from e

    # Never log key material
    logger.info(f"Loaded PEM private key from: {key_path.name}")
    return private_key


def load_pkcs12_certificate(
    p12_path: Path, password: Optional[bytes] = None
) -> Tuple[x509.Certificate, Any]:
    """Load certificate and private key from a PKCS12 file.

    Returns:
        Tuple of (certificate, private_key)

    Raises:
        CertificateLoadError: If PKCS12 cannot be loaded or lacks a cert or key
    """
    pkcs12_data = _read_file(p12_path, "PKCS12")
    try:
        private_key, certificate, _ = pkcs12.load_key_and_certificates(
            pkcs12_data, password=password
        )
    except (TypeError, ValueError) as e:
        raise CertificateLoadError(
            f"Failed to load PKCS12 from {p12_path}: {e}. "
            f"Ensure file is valid PKCS12 format and password is correct."
        ) from e

    if certificate is None:
        raise CertificateLoadError(f"No certificate found in PKCS12 file: {p12_path}")
    if private_key is None:
        raise CertificateLoadError(f"No private key found in PKCS12 file: {p12_path}")

    logger.info(f"Loaded PKCS12 certificate: {certificate.subject.rfc4514_string()}")
    check_expiration_warning(certificate)
    return certificate, private_key


def load_certificate(
    cert_path: Union[Path, str],
    key_path: Optional[Union[Path, str]] = None,
    password: Optional[bytes] = None,
) -> CertificateBundle:
    """Load signing credentials with format detection by file extension.

    Supports PEM (.pem, .crt), PKCS12 (.p12, .pfx) and DER (.der, .cer).

    Args:
        cert_path: Path to certificate file
        key_path: Optional path to separate PEM private key (for PEM/DER)
        password: Optional password for PKCS12 or encrypted PEM keys

    Returns:
        CertificateBundle containing certificate, key and info

    Raises:
        CertificateLoadError: If certificate cannot be loaded or format unsupported

    Example:
        >>> bundle = load_certificate(Path("certs/idp.pem"), key_path=Path("certs/idp-key.pem"))
        >>> print(bundle.info.key_size)
        2048
    """
    cert_path = Path(cert_path)
    resolved_key_path = Path(key_path) if key_path else None
    suffix = cert_path.suffix.lower()

    private_key = None
    if suffix in (".pem", ".crt"):
        certificate = load_pem_certificate(cert_path)
        if resolved_key_path:
            private_key = load_pem_private_key(resolved_key_path, password)
    elif suffix in (".p12", ".pfx"):
        certificate, private_key = load_pkcs12_certificate(cert_path, password)
    elif suffix in (".der", ".cer"):
        certificate = load_der_certificate(cert_path)
        if resolved_key_path:
            private_key = load_pem_private_key(resolved_key_path, password)
    else:
        raise CertificateLoadError(
            f"Unsupported certificate format: {suffix}. "
            f"Supported formats: .pem, .crt, .p12, .pfx, .der, .cer"
        )

    return CertificateBundle(
        certificate=certificate,
        private_key=private_key,
        info=get_certificate_info(certificate),
    )
