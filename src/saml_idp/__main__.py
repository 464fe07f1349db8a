"""Entry point for running saml_idp as a module.

This allows the package to be executed as:
    python -m saml_idp
"""

from saml_idp.cli.main import cli

if __name__ == "__main__":
    cli()
