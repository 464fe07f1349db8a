"""XML signing module using signxml library.

This module signs SAML assertions with an enveloped XML Signature (XMLDSig)
using exclusive C14N. The Signature element is placed right after Issuer, the
position the SAML 2.0 schema requires; the rest of the document is untouched.
"""

import logging
from dataclasses import replace

from cryptography.hazmat.primitives import serialization
from lxml import etree
from signxml import DigestAlgorithm, SignatureMethod, XMLSigner
from signxml.algorithms import CanonicalizationMethod
from signxml.exceptions import InvalidInput

from ..models.saml import CertificateBundle, SAMLAssertion
from ..namespaces import DS_NS, SAML_NS
from ..utils.exceptions import CertificateLoadError, SAMLError

logger = logging.getLogger(__name__)

# Algorithm identifier -> (signature method, digest method)
ALGORITHM_MAP = {
    "sha256": (SignatureMethod.RSA_SHA256, DigestAlgorithm.SHA256),
    "sha384": (SignatureMethod.RSA_SHA384, DigestAlgorithm.SHA384),
    "sha512": (SignatureMethod.RSA_SHA512, DigestAlgorithm.SHA512),
    "RSA-SHA256": (SignatureMethod.RSA_SHA256, DigestAlgorithm.SHA256),
    "RSA-SHA384": (SignatureMethod.RSA_SHA384, DigestAlgorithm.SHA384),
    "RSA-SHA512": (SignatureMethod.RSA_SHA512, DigestAlgorithm.SHA512),
}


class SAMLSigner:
    """Sign SAML assertions with XML digital signatures.

    Attributes:
        cert_bundle: Certificate bundle containing certificate and private key
        algorithm: Signature algorithm identifier (sha256, sha384, sha512)
        signer: XMLSigner instance configured with the algorithm

    Example:
        >>> cert_bundle = load_certificate(Path("certs/idp.pem"), key_path=Path("certs/idp-key.pem"))
        >>> signer = SAMLSigner(cert_bundle, algorithm="sha256")
        >>> signed_xml = signer.sign(builder.build())
        >>> assert "SignatureValue" in signed_xml
    """

    def __init__(self, cert_bundle: CertificateBundle, algorithm: str = "sha256") -> None:
        """Initialize SAML signer with certificate bundle.

        Args:
            cert_bundle: Certificate bundle containing certificate and private key
            algorithm: Signature algorithm identifier

        Raises:
            CertificateLoadError: If certificate bundle is invalid or missing key
            ValueError: If signature algorithm is unsupported
        """
        if not cert_bundle.certificate:
            raise CertificateLoadError(
                "Certificate bundle must contain a valid certificate. "
                "Ensure certificate was loaded correctly."
            )

        if not cert_bundle.private_key:
            raise CertificateLoadError(
                "Certificate bundle must contain a private key for signing. "
                "Ensure private key was loaded with certificate (use PKCS12 or provide key_path)."
            )

        if algorithm not in ALGORITHM_MAP:
            raise ValueError(
                f"Unsupported signature algorithm: {algorithm}. "
                f"Supported algorithms: {', '.join(ALGORITHM_MAP.keys())}"
            )

        self.cert_bundle = cert_bundle
        self.algorithm = algorithm

        signature_method, digest_method = ALGORITHM_MAP[algorithm]
        self.signer = XMLSigner(
            signature_algorithm=signature_method,
            digest_algorithm=digest_method,
            c14n_algorithm=CanonicalizationMethod.EXCLUSIVE_XML_CANONICALIZATION_1_0,
        )

        logger.info(
            f"SAMLSigner initialized: algorithm={algorithm}, "
            f"certificate={cert_bundle.info.subject}"
        )

    def _key_material(self) -> tuple[bytes, bytes]:
        cert_pem = self.cert_bundle.certificate.public_bytes(
            encoding=serialization.Encoding.PEM
        )
        key_pem = self.cert_bundle.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cert_pem, key_pem

    def sign_element(self, assertion_element: etree._Element) -> etree._Element:
        """Sign a parsed assertion element.

        Args:
            assertion_element: Assertion root element; the signature placeholder
                is inserted into it after Issuer

        Returns:
            New signed element

        Raises:
            SAMLError: If signxml rejects the certificate or private key
        """
        placeholder = etree.Element(
            f"{{{DS_NS}}}Signature", nsmap={"ds": DS_NS}, attrib={"Id": "placeholder"}
        )
        issuer = assertion_element.find(f"{{{SAML_NS}}}Issuer")
        if issuer is not None:
            issuer.addnext(placeholder)
        else:
            assertion_element.insert(0, placeholder)

        cert_pem, key_pem = self._key_material()
        try:
            return self.signer.sign(assertion_element, key=key_pem, cert=cert_pem)
        except InvalidInput as e:
            logger.error(f"Invalid certificate or private key: {e}")
            raise SAMLError(
                f"Invalid certificate or private key: {e}. "
                f"Verify certificate bundle is correct."
            ) from e

    def sign(self, xml_content: str) -> str:
        """Sign a serialized assertion.

        Args:
            xml_content: Unsigned assertion XML

        Returns:
            Signed assertion XML

        Raises:
            SAMLError: If the XML cannot be parsed
        """
        try:
            assertion_element = etree.fromstring(xml_content.encode("utf-8"))
        except etree.XMLSyntaxError as e:
            logger.error(f"Invalid XML structure in SAML assertion: {e}")
            raise SAMLError(
                f"Invalid XML structure in SAML assertion: {e}. "
                f"Ensure the assertion is well-formed before signing."
            ) from e

        signed_element = self.sign_element(assertion_element)
        return etree.tostring(signed_element, encoding="unicode")

    def sign_assertion(self, saml_assertion: SAMLAssertion) -> SAMLAssertion:
        """Sign an assembled assertion.

        Args:
            saml_assertion: Unsigned assertion

        Returns:
            New SAMLAssertion with the signed XML, SignatureValue and signing
            certificate subject populated
        """
        logger.info(f"Signing SAML assertion: {saml_assertion.assertion_id}")

        assertion_element = etree.fromstring(saml_assertion.xml_content.encode("utf-8"))
        signed_element = self.sign_element(assertion_element)

        sig_value_elem = signed_element.find(f".//{{{DS_NS}}}SignatureValue")
        if sig_value_elem is None or sig_value_elem.text is None:
            raise SAMLError(
                "Failed to extract SignatureValue from signed assertion. "
                "This indicates a signing operation error."
            )

        signed_assertion = replace(
            saml_assertion,
            xml_content=etree.tostring(signed_element, encoding="unicode"),
            signature=sig_value_elem.text,
            certificate_subject=self.cert_bundle.info.subject,
        )

        logger.info(f"SAML assertion signed successfully: {saml_assertion.assertion_id}")
        return signed_assertion
