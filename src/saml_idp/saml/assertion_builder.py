"""SAML 2.0 assertion assembly.

This module turns an AssertionRequest into a SAML 2.0 ``Assertion`` element:
it samples the clock once, resolves the NameID and the released attributes,
renders the document in schema order and serializes it with C14N. Signing and
encryption are separate steps delegated to SAMLSigner and AssertionEncryptor.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from lxml import etree

from ..config.schema import IdpConfig
from ..logging_audit.audit import log_audit_event
from ..models.saml import (
    AssertionRequest,
    CertificateBundle,
    ResolvedAttribute,
    ResolvedNameId,
    SAMLAssertion,
    TimeWindow,
)
from ..namespaces import BEARER_METHOD, ENTITY_FORMAT
from ..utils.exceptions import ConfigurationError, EncryptionNotConfiguredError, SamlIdpError
from .attributes import resolve_attributes, select_attribute_catalog
from .encryptor import AssertionEncryptor
from .name_id import build_name_id_catalog, resolve_name_id
from .serializer import root_element, serialize_assertion, sub_element
from .signer import SAMLSigner
from .time_window import compute_time_window, time_window_strings, utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _build_assertion_element(
    assertion_id: str, issue_instant: str, issuer: str
) -> etree._Element:
    """Create the Assertion root with its Issuer."""
    assertion = root_element(
        "Assertion",
        {"ID": assertion_id, "IssueInstant": issue_instant, "Version": "2.0"},
    )
    sub_element(assertion, "Issuer", issuer, {"Format": ENTITY_FORMAT})
    logger.debug(f"Built Assertion element: ID={assertion_id}, Issuer={issuer}")
    return assertion


def _add_subject_element(
    assertion: etree._Element,
    name_id: ResolvedNameId,
    request: AssertionRequest,
    not_on_or_after: str,
) -> None:
    """Add Subject with NameID and bearer SubjectConfirmation.

    InResponseTo is only written for SP-initiated flows (request id given).
    """
    subject = sub_element(assertion, "Subject")
    sub_element(
        subject,
        "NameID",
        name_id.value,
        {"Format": name_id.format_uri, "SPProvidedID": request.audience_uri},
    )

    confirmation = sub_element(subject, "SubjectConfirmation", attrib={"Method": BEARER_METHOD})
    confirmation_attrib = {}
    if request.saml_request_id is not None:
        confirmation_attrib["InResponseTo"] = str(request.saml_request_id)
    confirmation_attrib["NotOnOrAfter"] = not_on_or_after
    confirmation_attrib["Recipient"] = request.saml_acs_url
    sub_element(confirmation, "SubjectConfirmationData", attrib=confirmation_attrib)

    logger.debug(f"Added Subject element with NameID format {name_id.format_uri}")


def _add_conditions_element(
    assertion: etree._Element, not_before: str, not_on_or_after: str, audience: str
) -> None:
    conditions = sub_element(
        assertion,
        "Conditions",
        attrib={"NotBefore": not_before, "NotOnOrAfter": not_on_or_after},
    )
    restriction = sub_element(conditions, "AudienceRestriction")
    sub_element(restriction, "Audience", audience)
    logger.debug(f"Added Conditions element: NotBefore={not_before}, NotOnOrAfter={not_on_or_after}")


def _add_authn_statement(
    assertion: etree._Element,
    authn_instant: str,
    session_index: str,
    session_not_on_or_after: Optional[str],
    authn_context_classref: str,
) -> None:
    """Add AuthnStatement; SessionNotOnOrAfter only when the session is limited."""
    statement_attrib = {"AuthnInstant": authn_instant, "SessionIndex": session_index}
    if session_not_on_or_after is not None:
        statement_attrib["SessionNotOnOrAfter"] = session_not_on_or_after

    statement = sub_element(assertion, "AuthnStatement", attrib=statement_attrib)
    context = sub_element(statement, "AuthnContext")
    sub_element(context, "AuthnContextClassRef", authn_context_classref)
    logger.debug(f"Added AuthnStatement element: AuthnInstant={authn_instant}")


def _add_attribute_statement(
    assertion: etree._Element, attributes: List[ResolvedAttribute]
) -> None:
    """Add AttributeStatement, or nothing at all when no attributes are released.

    An attribute whose getter yields nothing is still emitted, with no values.
    """
    if not attributes:
        logger.debug("No attributes released, skipping AttributeStatement")
        return

    statement = sub_element(assertion, "AttributeStatement")
    for attribute in attributes:
        attr_elem = sub_element(
            statement,
            "Attribute",
            attrib={
                "Name": attribute.name,
                "NameFormat": attribute.name_format,
                "FriendlyName": attribute.friendly_name,
            },
        )
        for value in attribute.values:
            sub_element(attr_elem, "AttributeValue", value)

    logger.debug(f"Added AttributeStatement with {len(attributes)} attributes")


class AssertionBuilder:
    """Build SAML 2.0 assertions for one authenticated principal.

    The builder is bound to a single request. Each call to :meth:`build`
    samples the clock once, so every instant in the document is consistent.

    Attributes:
        request: Assertion inputs
        config: Read-only IdP configuration
        session_expiry: Effective session lifetime (request value, else config)

    Example:
        >>> request = AssertionRequest(
        ...     reference_id="abc",
        ...     issuer_uri="https://idp.example.com",
        ...     principal={"email": "foo@example.com"},
        ...     audience_uri="https://sp.example.com",
        ...     saml_acs_url="https://sp.example.com/acs",
        ...     algorithm="sha256",
        ...     authn_context_classref=AUTHN_CONTEXT_PASSWORD,
        ... )
        >>> xml = AssertionBuilder(request).build()
        >>> assert 'ID="_abc"' in xml
    """

    def __init__(
        self,
        request: AssertionRequest,
        config: Optional[IdpConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.request = request
        self.config = config or IdpConfig()
        self.clock = clock or utc_now

        if request.session_expiry is not None:
            self.session_expiry = request.session_expiry
        else:
            self.session_expiry = self.config.session_expiry

    def _name_id_catalog(self):
        raw = self.request.name_id_formats_opts
        if raw is None:
            raw = self.config.name_id.formats
        return build_name_id_catalog(raw)

    def _resolve(self, window: TimeWindow) -> SAMLAssertion:
        request = self.request
        name_id = resolve_name_id(
            self._name_id_catalog(),
            request.principal,
            self.config.name_id.default_format,
        )
        catalog = select_attribute_catalog(
            request.asserted_attributes_opts, request.principal, self.config.attributes
        )
        attributes = resolve_attributes(catalog, request.principal)

        times = time_window_strings(window)
        assertion_id = request.reference_string

        assertion = _build_assertion_element(assertion_id, times["issued_at"], request.issuer_uri)
        _add_subject_element(assertion, name_id, request, times["not_on_or_after_subject"])
        _add_conditions_element(
            assertion,
            times["not_before"],
            times["not_on_or_after_condition"],
            request.audience_uri,
        )
        _add_authn_statement(
            assertion,
            times["issued_at"],
            assertion_id,
            times["session_not_on_or_after"],
            request.authn_context_classref,
        )
        _add_attribute_statement(assertion, attributes)

        return SAMLAssertion(
            assertion_id=assertion_id,
            issuer=request.issuer_uri,
            name_id=name_id,
            audience=request.audience_uri,
            time_window=window,
            xml_content=serialize_assertion(assertion),
            attributes=attributes,
        )

    def build_assertion(self) -> SAMLAssertion:
        """Assemble the unsigned assertion with its metadata.

        Returns:
            SAMLAssertion holding the canonical XML and resolved values

        Raises:
            MissingPrincipalAttributeError: If the NameID accessor is not exposed
                by the principal
        """
        request = self.request
        window = compute_time_window(self.clock(), request.expiry, self.session_expiry)

        try:
            saml_assertion = self._resolve(window)
        except SamlIdpError as e:
            log_audit_event(
                "ASSERTION_BUILT",
                {
                    "status": "failure",
                    "assertion_id": request.reference_string,
                    "issuer": request.issuer_uri,
                    "audience": request.audience_uri,
                    "error_message": str(e),
                },
            )
            raise

        log_audit_event(
            "ASSERTION_BUILT",
            {
                "status": "success",
                "assertion_id": saml_assertion.assertion_id,
                "issuer": saml_assertion.issuer,
                "audience": saml_assertion.audience,
                "name_id_format": saml_assertion.name_id.format_uri,
                "attribute_count": len(saml_assertion.attributes),
            },
        )
        return saml_assertion

    def build(self) -> str:
        """Assemble the unsigned, unencrypted assertion XML."""
        return self.build_assertion().xml_content

    def _signer_for(self, signer: Union[SAMLSigner, CertificateBundle]) -> SAMLSigner:
        if isinstance(signer, CertificateBundle):
            return SAMLSigner(signer, algorithm=self.request.algorithm)
        return signer

    def sign(
        self,
        signer: Union[SAMLSigner, CertificateBundle],
        assertion: Optional[SAMLAssertion] = None,
    ) -> SAMLAssertion:
        """Build (unless given) and sign the assertion.

        Args:
            signer: Signing collaborator, or a certificate bundle to sign with
                    the request's algorithm
            assertion: Previously built assertion to sign

        Returns:
            Signed SAMLAssertion
        """
        saml_assertion = assertion or self.build_assertion()
        signed = self._signer_for(signer).sign_assertion(saml_assertion)
        log_audit_event(
            "ASSERTION_SIGNED",
            {
                "status": "success",
                "assertion_id": signed.assertion_id,
                "signed": True,
                "certificate_subject": signed.certificate_subject,
            },
        )
        return signed

    def encrypt(
        self,
        encryptor: Optional[AssertionEncryptor] = None,
        sign: bool = False,
        signer: Optional[Union[SAMLSigner, CertificateBundle]] = None,
    ) -> str:
        """Build the assertion and encrypt it for the service provider.

        Args:
            encryptor: Encryption collaborator; created from the request's
                       encryption_opts when None
            sign: Sign the assertion before encrypting it
            signer: Signing collaborator, required when sign is True

        Returns:
            EncryptedAssertion XML

        Raises:
            EncryptionNotConfiguredError: If the request has no encryption_opts
            ConfigurationError: If signing is requested without a signer
        """
        request = self.request
        if request.encryption_opts is None:
            log_audit_event(
                "ASSERTION_ENCRYPTED",
                {
                    "status": "failure",
                    "assertion_id": request.reference_string,
                    "error_message": "encryption_opts not set",
                },
            )
            raise EncryptionNotConfiguredError(
                "Must set encryption_opts to encrypt the assertion. "
                "Provide the service provider certificate and cipher options "
                "when creating the AssertionRequest."
            )

        if sign and signer is None:
            raise ConfigurationError(
                "Signing before encryption requires a signer. "
                "Pass signer=SAMLSigner(...) or a CertificateBundle."
            )

        encryptor = encryptor or AssertionEncryptor(request.encryption_opts)

        if sign:
            xml_content = self.sign(signer).xml_content
        else:
            xml_content = self.build()

        encrypted = encryptor.encrypt(xml_content)
        log_audit_event(
            "ASSERTION_ENCRYPTED",
            {
                "status": "success",
                "assertion_id": request.reference_string,
                "signed": sign,
                "encrypted": True,
            },
        )
        return encrypted
