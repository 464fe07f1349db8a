"""Custom exception classes for the SAML IdP assertion builder.

All exceptions inherit from SamlIdpError to allow catching all custom exceptions.
Every error here signals caller misconfiguration, never a transient failure,
so none of them are retryable.
"""

from typing import Optional


class SamlIdpError(Exception):
    """Base exception for all SAML IdP custom exceptions."""

    pass


class ValidationError(SamlIdpError):
    """Raised when input data validation fails.

    Examples:
        - Required assertion request field missing
        - Malformed principal JSON
    """

    pass


class ConfigurationError(SamlIdpError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Missing required configuration
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class SAMLError(SamlIdpError):
    """Raised when SAML assembly, signing or encryption fails.

    Examples:
        - Principal does not expose the NameID accessor
        - Signing failure
        - Unsupported encryption algorithm
    """

    pass


class MissingRequiredFieldError(ValidationError):
    """Raised when a required assertion request field is absent or empty.

    Attributes:
        field_name: Name of the offending request field
    """

    def __init__(self, field_name: str, message: Optional[str] = None) -> None:
        self.field_name = field_name
        super().__init__(
            message
            or (
                f"Required assertion field '{field_name}' is missing or empty. "
                f"Provide a non-empty value for '{field_name}' when building the assertion."
            )
        )


class MissingPrincipalAttributeError(SAMLError):
    """Raised when the principal does not expose a required accessor.

    Attributes:
        accessor: Accessor name that was looked up on the principal
    """

    def __init__(self, accessor: str, message: Optional[str] = None) -> None:
        self.accessor = accessor
        super().__init__(
            message
            or (
                f"Principal does not expose '{accessor}'. "
                f"Add a '{accessor}' attribute to the principal or configure a "
                f"callable getter for this NameID format."
            )
        )


class EncryptionNotConfiguredError(ConfigurationError):
    """Raised when encryption is requested without encryption parameters.

    Examples:
        - encrypt() called on a builder created without encryption_opts
        - Encryption parameters without a recipient certificate
    """

    pass


class UnsupportedCipherSuiteError(SAMLError):
    """Raised when an encryption algorithm is not supported.

    Attributes:
        algorithm: Algorithm identifier that was rejected
    """

    def __init__(self, algorithm: str, message: Optional[str] = None) -> None:
        self.algorithm = algorithm
        super().__init__(message or f"Unsupported encryption algorithm: {algorithm}")


class CertificateLoadError(SAMLError):
    """Raised when certificate loading fails.

    Examples:
        - Certificate file not found
        - Invalid certificate format
        - Incorrect password for encrypted key
        - Corrupted certificate file
    """

    pass
