"""SSO Wizard - SAML/OIDC configuration generation and validation."""

__version__ = "0.1.0"
