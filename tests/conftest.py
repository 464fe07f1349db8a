"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
certificates generated on the fly, a frozen clock and ready-made assertion
requests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from saml_idp.models.saml import AssertionRequest
from saml_idp.namespaces import AUTHN_CONTEXT_PASSWORD

FROZEN_NOW = datetime(2010, 6, 1, 13, 0, 0, tzinfo=timezone.utc)


@dataclass
class CertificateFiles:
    """Paths and objects for a generated test certificate."""

    cert_path: Path
    key_path: Path
    der_path: Path
    p12_path: Path
    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey
    p12_password: bytes


def _generate_certificate(common_name: str) -> tuple[x509.Certificate, rsa.RSAPrivateKey]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "TestOrg"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])

    now = datetime.now(timezone.utc)
    # signxml requires key identifier extensions on the signing certificate
    cert = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        private_key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(days=1)
    ).not_valid_after(
        now + timedelta(days=365)
    ).add_extension(
        x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
        critical=False,
    ).add_extension(
        x509.AuthorityKeyIdentifier.from_issuer_public_key(private_key.public_key()),
        critical=False,
    ).sign(private_key, hashes.SHA256())

    return cert, private_key


def _write_certificate_files(
    directory: Path, common_name: str, prefix: str
) -> CertificateFiles:
    cert, private_key = _generate_certificate(common_name)
    directory.mkdir(parents=True, exist_ok=True)

    cert_path = directory / f"{prefix}.pem"
    key_path = directory / f"{prefix}-key.pem"
    der_path = directory / f"{prefix}.der"
    p12_path = directory / f"{prefix}.p12"
    password = b"testpass"

    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    der_path.write_bytes(cert.public_bytes(serialization.Encoding.DER))
    p12_path.write_bytes(
        pkcs12.serialize_key_and_certificates(
            name=prefix.encode("utf-8"),
            key=private_key,
            cert=cert,
            cas=None,
            encryption_algorithm=serialization.BestAvailableEncryption(password),
        )
    )

    return CertificateFiles(
        cert_path=cert_path,
        key_path=key_path,
        der_path=der_path,
        p12_path=p12_path,
        certificate=cert,
        private_key=private_key,
        p12_password=password,
    )


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def idp_certificate(tmp_path_factory: pytest.TempPathFactory) -> CertificateFiles:
    """Identity provider signing certificate (PEM, DER and PKCS12)."""
    return _write_certificate_files(
        tmp_path_factory.mktemp("idp_certs"), "idp.example.com", "idp"
    )


@pytest.fixture(scope="session")
def sp_certificate(tmp_path_factory: pytest.TempPathFactory) -> CertificateFiles:
    """Service provider encryption certificate."""
    return _write_certificate_files(
        tmp_path_factory.mktemp("sp_certs"), "sp.example.com", "sp"
    )


@pytest.fixture
def frozen_clock() -> Callable[[], datetime]:
    """Clock fixed at 2010-06-01T13:00:00Z."""
    return lambda: FROZEN_NOW


@pytest.fixture
def make_request() -> Callable[..., AssertionRequest]:
    """
    Factory for assertion requests with sensible defaults.

    Keyword arguments override any AssertionRequest field.
    """

    def _make(**overrides) -> AssertionRequest:
        fields = {
            "reference_id": "abc",
            "issuer_uri": "http://sportngin.com",
            "principal": {"email": "foo@example.com"},
            "audience_uri": "http://example.com",
            "saml_request_id": "123",
            "saml_acs_url": "http://saml.acs.url",
            "algorithm": "sha256",
            "authn_context_classref": AUTHN_CONTEXT_PASSWORD,
            "expiry": 3 * 60 * 60,
        }
        fields.update(overrides)
        return AssertionRequest(**fields)

    return _make


@pytest.fixture
def decrypt_assertion(sp_certificate: CertificateFiles) -> Callable[[str], str]:
    """
    Decrypt an EncryptedAssertion envelope with the service provider key.

    Handles AES-CBC/GCM content with RSA-OAEP or RSA-1_5 key transport.
    """
    import base64

    from cryptography.hazmat.primitives import padding as sym_padding
    from cryptography.hazmat.primitives.asymmetric import padding
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM
    from lxml import etree

    ns = {
        "xenc": "http://www.w3.org/2001/04/xmlenc#",
        "ds": "http://www.w3.org/2000/09/xmldsig#",
    }

    def _decrypt(envelope_xml: str) -> str:
        envelope = etree.fromstring(envelope_xml.encode("utf-8"))
        key_method = envelope.find(".//xenc:EncryptedKey/xenc:EncryptionMethod", ns).get("Algorithm")
        encrypted_key = base64.b64decode(
            envelope.find(".//xenc:EncryptedKey/xenc:CipherData/xenc:CipherValue", ns).text
        )
        if key_method.endswith("rsa-1_5"):
            key_padding = padding.PKCS1v15()
        else:
            key_padding = padding.OAEP(
                mgf=padding.MGF1(algorithm=hashes.SHA1()),
                algorithm=hashes.SHA1(),
                label=None,
            )
        symmetric_key = sp_certificate.private_key.decrypt(encrypted_key, key_padding)

        data_method = envelope.find("xenc:EncryptedData/xenc:EncryptionMethod", ns).get("Algorithm")
        payload = base64.b64decode(
            envelope.find("xenc:EncryptedData/xenc:CipherData/xenc:CipherValue", ns).text
        )
        if data_method.endswith("-gcm"):
            plaintext = AESGCM(symmetric_key).decrypt(payload[:12], payload[12:], None)
        else:
            decryptor = Cipher(algorithms.AES(symmetric_key), modes.CBC(payload[:16])).decryptor()
            padded = decryptor.update(payload[16:]) + decryptor.finalize()
            unpadder = sym_padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")

    return _decrypt
