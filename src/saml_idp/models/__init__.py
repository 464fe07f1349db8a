"""Models module.

This module provides data models and dataclasses for the application.
"""

from saml_idp.models.saml import (
    AssertionRequest,
    AttributeReleaseEntry,
    CertificateBundle,
    CertificateInfo,
    CustomExtractor,
    EncryptionParams,
    Getter,
    NameIdFormatEntry,
    NamedAccessor,
    ResolvedAttribute,
    ResolvedNameId,
    SAMLAssertion,
    TimeWindow,
)

__all__ = [
    "AssertionRequest",
    "AttributeReleaseEntry",
    "CertificateBundle",
    "CertificateInfo",
    "CustomExtractor",
    "EncryptionParams",
    "Getter",
    "NameIdFormatEntry",
    "NamedAccessor",
    "ResolvedAttribute",
    "ResolvedNameId",
    "SAMLAssertion",
    "TimeWindow",
]
