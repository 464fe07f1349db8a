"""Unit tests for SAML signer module.

Tests XML signing functionality using signxml library, covering:
- SAMLSigner initialization
- Assertion signing and signature placement
- Signature verification with the signing certificate
- Error handling
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives import serialization
from lxml import etree
from signxml import XMLVerifier
from signxml.exceptions import InvalidInput

from saml_idp.models.saml import CertificateBundle, CertificateInfo
from saml_idp.saml.assertion_builder import AssertionBuilder
from saml_idp.saml.certificate_manager import load_certificate
from saml_idp.saml.signer import SAMLSigner
from saml_idp.utils.exceptions import CertificateLoadError, SAMLError

NS = {
    "saml": "urn:oasis:names:tc:SAML:2.0:assertion",
    "ds": "http://www.w3.org/2000/09/xmldsig#",
}


@pytest.fixture
def cert_bundle(idp_certificate):
    """Load test certificate bundle."""
    return load_certificate(idp_certificate.cert_path, key_path=idp_certificate.key_path)


@pytest.fixture
def unsigned_assertion(make_request, frozen_clock):
    """Build unsigned SAML assertion for testing."""
    request = make_request(asserted_attributes_opts={"Email": {"getter": "email"}})
    return AssertionBuilder(request, clock=frozen_clock).build_assertion()


class TestSAMLSignerInitialization:
    """Test SAMLSigner initialization."""

    def test_signer_initialization_success(self, cert_bundle):
        """Test SAMLSigner initializes with valid certificate bundle."""
        signer = SAMLSigner(cert_bundle)

        assert signer.cert_bundle == cert_bundle
        assert signer.algorithm == "sha256"
        assert signer.signer is not None

    @pytest.mark.parametrize("algorithm", ["sha384", "sha512", "RSA-SHA256", "RSA-SHA512"])
    def test_signer_initialization_custom_algorithm(self, cert_bundle, algorithm):
        """Test SAMLSigner accepts every supported algorithm name."""
        assert SAMLSigner(cert_bundle, algorithm=algorithm).algorithm == algorithm

    def test_signer_initialization_invalid_algorithm(self, cert_bundle):
        """Test SAMLSigner rejects invalid signature algorithm."""
        with pytest.raises(ValueError, match="Unsupported signature algorithm"):
            SAMLSigner(cert_bundle, algorithm="md5")

    def test_signer_initialization_no_certificate(self):
        """Test SAMLSigner rejects bundle without certificate."""
        invalid_bundle = CertificateBundle(
            certificate=None,
            private_key=None,
            info=CertificateInfo(
                subject="CN=Test",
                issuer="CN=Test",
                not_before=datetime.now(timezone.utc),
                not_after=datetime.now(timezone.utc),
                serial_number=0,
                key_size=None,
            ),
        )

        with pytest.raises(CertificateLoadError, match="must contain a valid certificate"):
            SAMLSigner(invalid_bundle)

    def test_signer_initialization_no_private_key(self, idp_certificate):
        """Test SAMLSigner rejects bundle without private key."""
        cert_only_bundle = load_certificate(idp_certificate.cert_path)

        with pytest.raises(CertificateLoadError, match="must contain a private key"):
            SAMLSigner(cert_only_bundle)


class TestSignAssertion:
    """Test SAML assertion signing."""

    def test_sign_assertion_populates_metadata(self, cert_bundle, unsigned_assertion):
        """Test signing fills SignatureValue and certificate subject."""
        signed = SAMLSigner(cert_bundle).sign_assertion(unsigned_assertion)

        assert signed.signature
        assert "idp.example.com" in signed.certificate_subject
        assert signed.assertion_id == unsigned_assertion.assertion_id
        assert unsigned_assertion.signature == ""

    def test_signature_placed_after_issuer(self, cert_bundle, unsigned_assertion):
        """Test Signature is the element right after Issuer."""
        signed = SAMLSigner(cert_bundle).sign_assertion(unsigned_assertion)

        root = etree.fromstring(signed.xml_content.encode("utf-8"))
        children = [etree.QName(child).localname for child in root]
        assert children[:3] == ["Issuer", "Signature", "Subject"]

    def test_signed_content_preserved(self, cert_bundle, unsigned_assertion):
        """Test signing leaves assertion content untouched."""
        signed = SAMLSigner(cert_bundle).sign_assertion(unsigned_assertion)

        root = etree.fromstring(signed.xml_content.encode("utf-8"))
        assert root.get("ID") == "_abc"
        assert root.find("saml:Subject/saml:NameID", NS).text == "foo@example.com"
        assert root.find(".//saml:AttributeValue", NS).text == "foo@example.com"

    def test_signature_method_matches_algorithm(self, cert_bundle, unsigned_assertion):
        """Test SignatureMethod and DigestMethod follow the algorithm."""
        signed = SAMLSigner(cert_bundle, algorithm="sha384").sign_assertion(unsigned_assertion)

        root = etree.fromstring(signed.xml_content.encode("utf-8"))
        assert root.find(".//ds:SignatureMethod", NS).get("Algorithm").endswith("rsa-sha384")
        assert root.find(".//ds:DigestMethod", NS).get("Algorithm").endswith("sha384")

    def test_signature_verifies(self, cert_bundle, unsigned_assertion, idp_certificate):
        """Test signxml verifies the signature with the signing certificate."""
        signed = SAMLSigner(cert_bundle).sign_assertion(unsigned_assertion)
        cert_pem = idp_certificate.certificate.public_bytes(serialization.Encoding.PEM)

        result = XMLVerifier().verify(signed.xml_content.encode("utf-8"), x509_cert=cert_pem)

        assert etree.QName(result.signed_xml).localname == "Assertion"

    def test_sign_string(self, cert_bundle, unsigned_assertion):
        """Test sign() accepts serialized XML."""
        signed_xml = SAMLSigner(cert_bundle).sign(unsigned_assertion.xml_content)

        assert "SignatureValue" in signed_xml

    def test_sign_invalid_xml(self, cert_bundle):
        """Test malformed XML raises SAMLError."""
        with pytest.raises(SAMLError, match="Invalid XML structure"):
            SAMLSigner(cert_bundle).sign("<Assertion><unclosed></Assertion>")

    def test_sign_invalid_key_raises_saml_error(self, cert_bundle, unsigned_assertion):
        """Test signxml rejecting the key material surfaces as SAMLError."""
        signer = SAMLSigner(cert_bundle)

        with patch.object(signer.signer, "sign", side_effect=InvalidInput("bad key")):
            with pytest.raises(SAMLError, match="Invalid certificate or private key"):
                signer.sign_assertion(unsigned_assertion)
