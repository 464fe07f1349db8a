"""Data models for SAML assertion assembly and certificate handling.

This module defines dataclasses for the assertion request, the catalogs that
drive NameID and attribute resolution, the derived validity windows, and the
certificate bundle used by the signing collaborator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Union

from cryptography import x509

from ..utils.exceptions import MissingRequiredFieldError


@dataclass(frozen=True)
class NamedAccessor:
    """Getter that reads a named attribute (or method) from the principal.

    Attributes:
        name: Attribute, method or mapping key looked up on the principal
    """

    name: str


@dataclass(frozen=True)
class CustomExtractor:
    """Getter that delegates extraction to an arbitrary callable.

    Attributes:
        func: Callable receiving the principal and returning the claim value
    """

    func: Callable[[Any], Any]


Getter = Union[NamedAccessor, CustomExtractor]


@dataclass(frozen=True)
class NameIdFormatEntry:
    """One entry of the NameID format catalog.

    Attributes:
        key: Catalog key (e.g. ``email_address``, ``persistent``)
        uri: Canonical NameID format URI
        getter: How to extract the identifier from the principal
        version: SAML version group the entry belongs to ("1.1" or "2.0")
    """

    key: str
    uri: str
    getter: Getter
    version: str = "2.0"


@dataclass(frozen=True)
class AttributeReleaseEntry:
    """One entry of the attribute release catalog.

    Attributes:
        friendly_name: Catalog key, emitted as FriendlyName
        name: Attribute Name emitted in the assertion
        name_format: Attribute NameFormat URI
        getter: Explicit getter, or None to derive the accessor from friendly_name
    """

    friendly_name: str
    name: str
    name_format: str
    getter: Optional[Getter] = None


@dataclass(frozen=True)
class ResolvedNameId:
    """Resolved subject identifier."""

    value: str
    format_uri: str
    format_key: str


@dataclass(frozen=True)
class ResolvedAttribute:
    """Resolved attribute ready for serialization."""

    name: str
    name_format: str
    friendly_name: str
    values: List[str]


@dataclass(frozen=True)
class TimeWindow:
    """Validity instants of a single assertion, all derived from one clock sample.

    Attributes:
        issued_at: IssueInstant and AuthnInstant
        not_before: Conditions NotBefore (issued_at minus clock skew)
        not_on_or_after_condition: Conditions NotOnOrAfter
        not_on_or_after_subject: Bearer SubjectConfirmationData NotOnOrAfter
        session_not_on_or_after: AuthnStatement SessionNotOnOrAfter, None when
            the session has no limit
    """

    issued_at: datetime
    not_before: datetime
    not_on_or_after_condition: datetime
    not_on_or_after_subject: datetime
    session_not_on_or_after: Optional[datetime] = None


@dataclass(frozen=True)
class EncryptionParams:
    """Encryption parameters for the encryption collaborator.

    Attributes:
        cert: Recipient certificate (PEM text, PEM bytes or x509.Certificate)
        block_encryption: Block cipher short name (e.g. ``aes256-cbc``)
        key_transport: Key transport short name (e.g. ``rsa-oaep-mgf1p``)
    """

    cert: Any
    block_encryption: str = "aes256-cbc"
    key_transport: str = "rsa-oaep-mgf1p"

    @classmethod
    def from_mapping(cls, opts: Mapping[str, Any]) -> "EncryptionParams":
        """Build parameters from a plain mapping (``cert``, ``block_encryption``, ``key_transport``)."""
        return cls(
            cert=opts.get("cert"),
            block_encryption=opts.get("block_encryption") or "aes256-cbc",
            key_transport=opts.get("key_transport") or "rsa-oaep-mgf1p",
        )


# Fields that must be present and non-empty on every request
REQUIRED_REQUEST_FIELDS = (
    "reference_id",
    "issuer_uri",
    "principal",
    "audience_uri",
    "saml_acs_url",
    "algorithm",
    "authn_context_classref",
)


@dataclass(frozen=True)
class AssertionRequest:
    """Inputs for a single assertion build.

    Attributes:
        reference_id: Reference used for the assertion ID and SessionIndex
        issuer_uri: Entity ID of the identity provider
        principal: Authenticated identity (any object or mapping)
        audience_uri: Entity ID of the service provider
        saml_acs_url: Assertion consumer service URL (bearer Recipient)
        algorithm: Signature algorithm identifier (e.g. ``sha256``)
        authn_context_classref: Authentication context class reference URI
        saml_request_id: ID of the inbound AuthnRequest, None for IdP-initiated flows
        expiry: Assertion validity in seconds
        encryption_opts: Encryption parameters, required only for encrypt()
        session_expiry: Session validity in seconds, None to use configuration
        name_id_formats_opts: Per-call NameID format catalog override
        asserted_attributes_opts: Per-call attribute release catalog override

    Raises:
        MissingRequiredFieldError: If a required field is None or empty
    """

    reference_id: str
    issuer_uri: str
    principal: Any
    audience_uri: str
    saml_acs_url: str
    algorithm: str
    authn_context_classref: str
    saml_request_id: Optional[str] = None
    expiry: int = 60 * 60
    encryption_opts: Optional[EncryptionParams] = None
    session_expiry: Optional[int] = None
    name_id_formats_opts: Optional[Mapping[str, Any]] = None
    asserted_attributes_opts: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        for name in REQUIRED_REQUEST_FIELDS:
            value = getattr(self, name)
            if value is None:
                raise MissingRequiredFieldError(name)
            if isinstance(value, (str, bytes)) and not value.strip():
                raise MissingRequiredFieldError(name)
        if isinstance(self.encryption_opts, Mapping):
            object.__setattr__(
                self, "encryption_opts", EncryptionParams.from_mapping(self.encryption_opts)
            )

    @property
    def reference_string(self) -> str:
        """Assertion ID and SessionIndex value (``_<reference_id>``)."""
        return f"_{self.reference_id}"


@dataclass
class CertificateInfo:
    """Certificate information for display and logging.

    Attributes:
        subject: Certificate subject Distinguished Name (DN)
        issuer: Certificate issuer Distinguished Name (DN)
        not_before: Certificate validity start date
        not_after: Certificate expiration date
        serial_number: Certificate serial number
        key_size: Public key size in bits (e.g., 2048, 4096)
    """

    subject: str
    issuer: str
    not_before: datetime
    not_after: datetime
    serial_number: int
    key_size: Optional[int]


@dataclass
class CertificateBundle:
    """Loaded certificate with its private key and metadata.

    Attributes:
        certificate: X.509 certificate
        private_key: Private key (if available)
        info: Extracted certificate information
    """

    certificate: x509.Certificate
    private_key: Optional[Any]
    info: CertificateInfo


@dataclass
class SAMLAssertion:
    """Assembled SAML 2.0 assertion with metadata.

    Attributes:
        assertion_id: Assertion ID (``_<reference_id>``)
        issuer: Assertion issuer (entity identifier)
        name_id: Resolved NameID
        audience: Intended audience (service provider entity ID)
        time_window: Validity instants used in the document
        attributes: Released attributes in catalog order
        xml_content: Serialized assertion XML
        signature: Base64 SignatureValue (empty until signed)
        certificate_subject: Subject DN of the signing certificate
    """

    assertion_id: str
    issuer: str
    name_id: ResolvedNameId
    audience: str
    time_window: TimeWindow
    xml_content: str
    signature: str = ""
    certificate_subject: str = ""
    attributes: List[ResolvedAttribute] = field(default_factory=list)
