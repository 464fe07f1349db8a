"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    # No session limit unless configured
    "session_expiry": 0,
    "name_id": {
        # Subject identified by e-mail address read from principal.email
        "formats": {"email_address": "email"},
        "default_format": None,
    },
    # No attributes released by default
    "attributes": {},
    "signing": {
        # No default certificate paths - must be provided by user
        "cert_path": None,
        "key_path": None,
        "algorithm": "sha256",
        "pkcs12_password_env_var": "SAML_IDP_PKCS12_PASSWORD",
    },
    "encryption": {
        "cert_path": None,
        "block_encryption": "aes256-cbc",
        "key_transport": "rsa-oaep-mgf1p",
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/saml-idp.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
