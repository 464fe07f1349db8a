"""Command-line interface for the SAML IdP assertion builder."""
