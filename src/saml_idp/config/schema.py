"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
Configuration objects are frozen: the assertion builder only ever reads them.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from saml_idp.namespaces import (
    BLOCK_ENCRYPTION_ALGORITHMS,
    KEY_TRANSPORT_ALGORITHMS,
    SIGNATURE_ALGORITHMS,
)


class NameIdConfig(BaseModel):
    """Configuration for NameID format selection.

    Attributes:
        formats: NameID format catalog, flat (``{"email_address": "email"}``) or
                 split by SAML version (``{"1.1": {...}, "2.0": {...}}``).
                 Getters are accessor names or callables.
        default_format: Format key preferred when the catalog offers several
    """

    model_config = ConfigDict(frozen=True)

    formats: dict[str, Any] = Field(
        default_factory=lambda: {"email_address": "email"},
        description="NameID format catalog",
    )
    default_format: Optional[str] = Field(
        default=None,
        description="Preferred NameID format key",
    )


class SigningConfig(BaseModel):
    """Configuration for the signing certificate.

    Attributes:
        cert_path: Path to certificate file (PEM, DER or PKCS12)
        key_path: Path to private key file (PEM, when separate from cert)
        algorithm: Default signature algorithm
        pkcs12_password_env_var: Environment variable name for PKCS12 password
    """

    model_config = ConfigDict(frozen=True)

    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    algorithm: str = Field(
        default="sha256",
        description="Signature algorithm: sha256, sha384 or sha512",
    )
    pkcs12_password_env_var: Optional[str] = Field(
        default="SAML_IDP_PKCS12_PASSWORD",
        description="Environment variable for PKCS12 password",
    )

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Validate signature algorithm.

        Raises:
            ValueError: If the algorithm is not supported by the signer
        """
        if v not in SIGNATURE_ALGORITHMS:
            raise ValueError(
                f"Invalid signature algorithm: {v}. "
                f"Must be one of: {', '.join(SIGNATURE_ALGORITHMS)}"
            )
        return v


class EncryptionConfig(BaseModel):
    """Configuration for assertion encryption.

    Attributes:
        cert_path: Path to the service provider's encryption certificate
        block_encryption: Block cipher (e.g. aes256-cbc)
        key_transport: Key transport algorithm (e.g. rsa-oaep-mgf1p)
    """

    model_config = ConfigDict(frozen=True)

    cert_path: Optional[Path] = None
    block_encryption: str = Field(default="aes256-cbc", description="Block cipher")
    key_transport: str = Field(default="rsa-oaep-mgf1p", description="Key transport")

    @field_validator("block_encryption")
    @classmethod
    def validate_block_encryption(cls, v: str) -> str:
        if v not in BLOCK_ENCRYPTION_ALGORITHMS:
            raise ValueError(
                f"Invalid block_encryption: {v}. "
                f"Must be one of: {', '.join(BLOCK_ENCRYPTION_ALGORITHMS)}"
            )
        return v

    @field_validator("key_transport")
    @classmethod
    def validate_key_transport(cls, v: str) -> str:
        if v not in KEY_TRANSPORT_ALGORITHMS:
            raise ValueError(
                f"Invalid key_transport: {v}. "
                f"Must be one of: {', '.join(KEY_TRANSPORT_ALGORITHMS)}"
            )
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    model_config = ConfigDict(frozen=True)

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/saml-idp.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level string

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class IdpConfig(BaseModel):
    """Root configuration model for the identity provider.

    Attributes:
        session_expiry: Default session lifetime in seconds (0 = no session limit)
        name_id: NameID format catalog configuration
        attributes: Attribute release catalog (friendly name -> options)
        signing: Signing certificate configuration
        encryption: Encryption configuration
        logging: Logging configuration

    Example:
        >>> config = IdpConfig(
        ...     session_expiry=8 * 60 * 60,
        ...     attributes={"GivenName": {"getter": "first_name"}},
        ... )
        >>> config.name_id.formats
        {'email_address': 'email'}
    """

    model_config = ConfigDict(frozen=True)

    session_expiry: int = Field(
        default=0,
        ge=0,
        description="Session lifetime in seconds, 0 for no limit",
    )
    name_id: NameIdConfig = NameIdConfig()
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Attribute release catalog",
    )
    signing: SigningConfig = SigningConfig()
    encryption: EncryptionConfig = EncryptionConfig()
    logging: LoggingConfig = LoggingConfig()
