"""XML encryption of SAML assertions.

Wraps a serialized assertion in ``saml:EncryptedAssertion`` carrying an
``xenc:EncryptedData`` element (W3C XML Encryption). The content is encrypted
with a random symmetric key, which is itself encrypted for the recipient's
certificate and embedded as ``xenc:EncryptedKey``.
"""

import base64
import logging
import os
from typing import Any, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, padding as sym_padding
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.serialization import Encoding
from lxml import etree

from ..models.saml import EncryptionParams
from ..namespaces import (
    BLOCK_ENCRYPTION_ALGORITHMS,
    DS_NS,
    KEY_TRANSPORT_ALGORITHMS,
    SAML_NS,
    XENC_NS,
)
from ..utils.exceptions import EncryptionNotConfiguredError, UnsupportedCipherSuiteError
from .certificate_manager import load_certificate_from_string

logger = logging.getLogger(__name__)

ELEMENT_TYPE = f"{XENC_NS}Element"

# Block cipher short name -> key length in bytes
KEY_SIZES = {
    "aes128-cbc": 16,
    "aes192-cbc": 24,
    "aes256-cbc": 32,
    "aes128-gcm": 16,
    "aes256-gcm": 32,
}

CBC_IV_SIZE = 16
GCM_NONCE_SIZE = 12


def _xenc(name: str) -> str:
    return f"{{{XENC_NS}}}{name}"


def _ds(name: str) -> str:
    return f"{{{DS_NS}}}{name}"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def encrypt_block(block_encryption: str, key: bytes, plaintext: bytes) -> bytes:
    """Encrypt content with the named block cipher.

    Returns:
        IV/nonce followed by the ciphertext (and GCM tag), as XML Encryption
        expects in CipherValue
    """
    if block_encryption.endswith("-gcm"):
        nonce = os.urandom(GCM_NONCE_SIZE)
        return nonce + AESGCM(key).encrypt(nonce, plaintext, None)

    iv = os.urandom(CBC_IV_SIZE)
    padder = sym_padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return iv + encryptor.update(padded) + encryptor.finalize()


def encrypt_key(key_transport: str, public_key: rsa.RSAPublicKey, key: bytes) -> bytes:
    """Encrypt the symmetric key for the recipient."""
    if key_transport == "rsa-1_5":
        return public_key.encrypt(key, padding.PKCS1v15())
    return public_key.encrypt(
        key,
        padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA1()),
            algorithm=hashes.SHA1(),
            label=None,
        ),
    )


class AssertionEncryptor:
    """Encrypt assertions for a service provider certificate.

    Attributes:
        params: Encryption parameters
        certificate: Parsed recipient certificate

    Example:
        >>> encryptor = AssertionEncryptor(EncryptionParams(cert=sp_cert_pem))
        >>> envelope = encryptor.encrypt(builder.build())
        >>> assert "EncryptedAssertion" in envelope
    """

    def __init__(self, params: Union[EncryptionParams, dict, None]) -> None:
        """Validate encryption parameters and load the recipient certificate.

        Raises:
            EncryptionNotConfiguredError: If parameters or certificate are missing
            UnsupportedCipherSuiteError: If an algorithm is not supported
        """
        if params is None:
            raise EncryptionNotConfiguredError(
                "Encryption parameters are required to encrypt an assertion. "
                "Provide encryption_opts with a recipient certificate."
            )
        if isinstance(params, dict):
            params = EncryptionParams.from_mapping(params)

        if not params.cert:
            raise EncryptionNotConfiguredError(
                "Encryption parameters must include the recipient certificate (cert). "
                "Use the service provider's encryption certificate from its metadata."
            )

        if params.block_encryption not in BLOCK_ENCRYPTION_ALGORITHMS:
            raise UnsupportedCipherSuiteError(
                params.block_encryption,
                f"Unsupported block encryption: {params.block_encryption}. "
                f"Supported: {', '.join(BLOCK_ENCRYPTION_ALGORITHMS)}",
            )

        if params.key_transport not in KEY_TRANSPORT_ALGORITHMS:
            raise UnsupportedCipherSuiteError(
                params.key_transport,
                f"Unsupported key transport: {params.key_transport}. "
                f"Supported: {', '.join(KEY_TRANSPORT_ALGORITHMS)}",
            )

        self.params = params
        self.certificate = self._load_certificate(params.cert)

        public_key = self.certificate.public_key()
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise UnsupportedCipherSuiteError(
                params.key_transport,
                f"Key transport {params.key_transport} requires an RSA certificate, "
                f"got {type(public_key).__name__}",
            )
        self.public_key = public_key

        logger.debug(
            f"AssertionEncryptor initialized: block={params.block_encryption}, "
            f"key_transport={params.key_transport}"
        )

    @staticmethod
    def _load_certificate(cert: Any) -> x509.Certificate:
        if isinstance(cert, x509.Certificate):
            return cert
        return load_certificate_from_string(cert)

    def _certificate_b64(self) -> str:
        return _b64(self.certificate.public_bytes(Encoding.DER))

    def _build_encrypted_key(self, parent: etree._Element, symmetric_key: bytes) -> None:
        key_info = etree.SubElement(parent, _ds("KeyInfo"))
        encrypted_key = etree.SubElement(key_info, _xenc("EncryptedKey"))
        etree.SubElement(
            encrypted_key,
            _xenc("EncryptionMethod"),
            attrib={"Algorithm": KEY_TRANSPORT_ALGORITHMS[self.params.key_transport]},
        )
        key_key_info = etree.SubElement(encrypted_key, _ds("KeyInfo"))
        x509_data = etree.SubElement(key_key_info, _ds("X509Data"))
        etree.SubElement(x509_data, _ds("X509Certificate")).text = self._certificate_b64()

        cipher_data = etree.SubElement(encrypted_key, _xenc("CipherData"))
        etree.SubElement(cipher_data, _xenc("CipherValue")).text = _b64(
            encrypt_key(self.params.key_transport, self.public_key, symmetric_key)
        )

    def encrypt(self, xml_content: str) -> str:
        """Encrypt a serialized assertion.

        Args:
            xml_content: Assertion XML (signed or unsigned)

        Returns:
            ``EncryptedAssertion`` XML envelope
        """
        block = self.params.block_encryption
        symmetric_key, ciphertext = self._encrypt_content(block, xml_content.encode("utf-8"))

        envelope = etree.Element(
            f"{{{SAML_NS}}}EncryptedAssertion",
            nsmap={"saml": SAML_NS, "xenc": XENC_NS, "ds": DS_NS},
        )
        encrypted_data = etree.SubElement(
            envelope, _xenc("EncryptedData"), attrib={"Type": ELEMENT_TYPE}
        )
        etree.SubElement(
            encrypted_data,
            _xenc("EncryptionMethod"),
            attrib={"Algorithm": BLOCK_ENCRYPTION_ALGORITHMS[block]},
        )
        self._build_encrypted_key(encrypted_data, symmetric_key)

        cipher_data = etree.SubElement(encrypted_data, _xenc("CipherData"))
        etree.SubElement(cipher_data, _xenc("CipherValue")).text = _b64(ciphertext)

        logger.info(
            f"Assertion encrypted: block={block}, key_transport={self.params.key_transport}"
        )
        return etree.tostring(envelope, encoding="unicode")

    @staticmethod
    def _encrypt_content(block: str, plaintext: bytes) -> Tuple[bytes, bytes]:
        symmetric_key = os.urandom(KEY_SIZES[block])
        return symmetric_key, encrypt_block(block, symmetric_key, plaintext)
