"""SAML 2.0 identity provider assertion builder."""

__version__ = "0.1.0"
