"""Config module.

This module provides configuration management functionality.
"""

from saml_idp.config.manager import load_config
from saml_idp.config.schema import (
    EncryptionConfig,
    IdpConfig,
    LoggingConfig,
    NameIdConfig,
    SigningConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    # Configuration models
    "IdpConfig",
    "NameIdConfig",
    "SigningConfig",
    "EncryptionConfig",
    "LoggingConfig",
]
