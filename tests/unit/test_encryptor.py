"""Unit tests for assertion encryption."""

import pytest
from lxml import etree

from saml_idp.models.saml import EncryptionParams
from saml_idp.saml.encryptor import AssertionEncryptor
from saml_idp.utils.exceptions import (
    ConfigurationError,
    EncryptionNotConfiguredError,
    UnsupportedCipherSuiteError,
)

NS = {
    "saml": "urn:oasis:names:tc:SAML:2.0:assertion",
    "xenc": "http://www.w3.org/2001/04/xmlenc#",
    "ds": "http://www.w3.org/2000/09/xmldsig#",
}

PLAINTEXT = (
    '<Assertion xmlns="urn:oasis:names:tc:SAML:2.0:assertion" ID="_abc" Version="2.0">'
    "<Issuer>http://sportngin.com</Issuer></Assertion>"
)


class TestEncryptorInitialization:
    """Test parameter validation."""

    def test_no_params(self):
        """Test missing parameters raise EncryptionNotConfiguredError."""
        with pytest.raises(EncryptionNotConfiguredError):
            AssertionEncryptor(None)

    def test_no_certificate(self):
        """Test missing certificate raises EncryptionNotConfiguredError."""
        with pytest.raises(EncryptionNotConfiguredError, match="certificate"):
            AssertionEncryptor(EncryptionParams(cert=None))

    def test_not_configured_is_configuration_error(self):
        """Test EncryptionNotConfiguredError belongs to the configuration errors."""
        assert issubclass(EncryptionNotConfiguredError, ConfigurationError)

    def test_unsupported_block_encryption(self, sp_certificate):
        """Test unknown block cipher is rejected."""
        params = EncryptionParams(cert=sp_certificate.certificate, block_encryption="des-cbc")

        with pytest.raises(UnsupportedCipherSuiteError) as exc_info:
            AssertionEncryptor(params)

        assert exc_info.value.algorithm == "des-cbc"

    def test_unsupported_key_transport(self, sp_certificate):
        """Test unknown key transport is rejected."""
        params = EncryptionParams(cert=sp_certificate.certificate, key_transport="rsa-oaep")

        with pytest.raises(UnsupportedCipherSuiteError, match="rsa-oaep"):
            AssertionEncryptor(params)

    def test_accepts_mapping(self, sp_certificate):
        """Test plain mapping parameters are accepted."""
        encryptor = AssertionEncryptor({"cert": sp_certificate.cert_path.read_text()})

        assert encryptor.params.block_encryption == "aes256-cbc"
        assert encryptor.params.key_transport == "rsa-oaep-mgf1p"

    @pytest.mark.parametrize("source", ["pem_text", "pem_bytes", "path", "bare_base64"])
    def test_certificate_sources(self, sp_certificate, source):
        """Test PEM text, PEM bytes, file paths and metadata-style base64."""
        pem_text = sp_certificate.cert_path.read_text()
        cert = {
            "pem_text": pem_text,
            "pem_bytes": pem_text.encode("ascii"),
            "path": sp_certificate.cert_path,
            "bare_base64": "".join(
                line for line in pem_text.splitlines() if "CERTIFICATE" not in line
            ),
        }[source]

        encryptor = AssertionEncryptor(EncryptionParams(cert=cert))

        assert encryptor.certificate == sp_certificate.certificate


class TestEncrypt:
    """Test the encrypted envelope."""

    def test_envelope_structure(self, sp_certificate):
        """Test EncryptedAssertion wraps EncryptedData with an EncryptedKey."""
        envelope = AssertionEncryptor(EncryptionParams(cert=sp_certificate.certificate)).encrypt(
            PLAINTEXT
        )

        root = etree.fromstring(envelope.encode("utf-8"))
        assert etree.QName(root).localname == "EncryptedAssertion"

        data = root.find("xenc:EncryptedData", NS)
        assert data.get("Type") == "http://www.w3.org/2001/04/xmlenc#Element"
        assert (
            data.find("xenc:EncryptionMethod", NS).get("Algorithm")
            == "http://www.w3.org/2001/04/xmlenc#aes256-cbc"
        )
        key = data.find("ds:KeyInfo/xenc:EncryptedKey", NS)
        assert (
            key.find("xenc:EncryptionMethod", NS).get("Algorithm")
            == "http://www.w3.org/2001/04/xmlenc#rsa-oaep-mgf1p"
        )
        assert key.find("ds:KeyInfo/ds:X509Data/ds:X509Certificate", NS).text
        assert data.find("xenc:CipherData/xenc:CipherValue", NS).text
        assert "sportngin" not in envelope

    @pytest.mark.parametrize(
        "block_encryption", ["aes128-cbc", "aes192-cbc", "aes256-cbc", "aes128-gcm", "aes256-gcm"]
    )
    @pytest.mark.parametrize("key_transport", ["rsa-oaep-mgf1p", "rsa-1_5"])
    def test_decrypts_to_plaintext(
        self, sp_certificate, decrypt_assertion, block_encryption, key_transport
    ):
        """Test every cipher suite decrypts back to the original document."""
        params = EncryptionParams(
            cert=sp_certificate.certificate,
            block_encryption=block_encryption,
            key_transport=key_transport,
        )

        envelope = AssertionEncryptor(params).encrypt(PLAINTEXT)

        assert decrypt_assertion(envelope) == PLAINTEXT

    def test_gcm_uses_xmlenc11_namespace(self, sp_certificate):
        """Test GCM algorithms use the XML Encryption 1.1 identifiers."""
        params = EncryptionParams(cert=sp_certificate.certificate, block_encryption="aes128-gcm")

        envelope = AssertionEncryptor(params).encrypt(PLAINTEXT)

        assert "http://www.w3.org/2009/xmlenc11#aes128-gcm" in envelope

    def test_fresh_key_per_call(self, sp_certificate):
        """Test two encryptions of the same document differ."""
        encryptor = AssertionEncryptor(EncryptionParams(cert=sp_certificate.certificate))

        assert encryptor.encrypt(PLAINTEXT) != encryptor.encrypt(PLAINTEXT)
