"""Okta profiles.

Okta organizations live on their own subdomain (``dev-123456.okta.com``
or ``company.okta.com``). The OIDC endpoints below belong to the org
authorization server; SAML metadata URLs carry an app id Okta assigns
when the application is created, so they are left unresolved.
"""

from __future__ import annotations

from dataclasses import replace

from ssowizard.providers.profiles import InputField, InputKind, Protocol, ProviderProfile

OKTA_DOMAIN = InputField(
    name="domain",
    label="Okta Domain",
    kind=InputKind.HOST,
    example="dev-123456.okta.com",
)

ATTRIBUTE_MAPPING = {
    "email": "user.email",
    "firstName": "user.firstName",
    "lastName": "user.lastName",
    "displayName": "user.displayName",
}

SAML_PROFILE = ProviderProfile(
    provider_id="okta",
    protocol=Protocol.SAML,
    display_name="Okta",
    inputs=(
        # Only used to build console links in the guide
        replace(OKTA_DOMAIN, required=False),
        InputField("entity_id", "Entity ID", InputKind.URL, example="https://example.com/saml/metadata"),
        InputField("acs_url", "ACS URL", InputKind.URL, example="https://example.com/saml/acs"),
        InputField("slo_url", "Single Logout URL", InputKind.URL, required=False),
    ),
    endpoint_templates={
        "acs": "{acs_url}",
        "slo": "{slo_url}",
    },
    attribute_mapping=ATTRIBUTE_MAPPING,
    runtime_assigned={
        "idp_metadata_url": (
            "Assigned by Okta once the SAML app exists: Sign On tab > SAML Signing Certificates > "
            "Actions > View IdP metadata (https://<domain>/app/<app id>/sso/saml/metadata)"
        ),
    },
    document_fields={"okta_domain": "{domain}"},
    guide_title="Next Steps: Configure Okta",
    guide_steps=(
        "Log in to the Okta Admin Console: https://{domain}/admin",
        "Go to Applications > Applications, click 'Create App Integration' and select 'SAML 2.0'",
        "Single Sign On URL: {acs_url}",
        "Audience URI (SP Entity ID): {entity_id}",
        "Name ID format: EmailAddress; Application username: Email",
        "Single Logout URL: {slo_url}",
        "Attribute statements: email -> user.email, firstName -> user.firstName, "
        "lastName -> user.lastName, displayName -> user.displayName",
        "Sign On tab > SAML Signing Certificates > Actions > View IdP metadata; "
        "save it as {output_dir}/idp-metadata.xml",
        "Assignments tab: assign the users or groups who should have access",
    ),
)

OIDC_PROFILE = ProviderProfile(
    provider_id="okta",
    protocol=Protocol.OIDC,
    display_name="Okta",
    inputs=(
        OKTA_DOMAIN,
        InputField("redirect_uri", "Redirect URI", InputKind.URL, example="https://example.com/oauth/callback"),
        InputField("post_logout_redirect_uri", "Post Logout Redirect URI", InputKind.URL, required=False),
    ),
    issuer_template="https://{domain}",
    endpoint_templates={
        "authorization": "https://{domain}/oauth2/v1/authorize",
        "token": "https://{domain}/oauth2/v1/token",
        "userinfo": "https://{domain}/oauth2/v1/userinfo",
        "jwks": "https://{domain}/oauth2/v1/keys",
        "end_session": "https://{domain}/oauth2/v1/logout",
    },
    attribute_mapping={"email": "email", "firstName": "given_name", "lastName": "family_name"},
    runtime_assigned={
        "client_id": "Application > General tab > Client Credentials > Client ID",
        "client_secret": "Application > General tab > Client Credentials > Client Secret",
    },
    guide_title="Next Steps: Configure Okta OIDC",
    guide_steps=(
        "Log in to the Okta Admin Console: https://{domain}/admin",
        "Go to Applications > Applications, click 'Create App Integration', "
        "select 'OIDC - OpenID Connect' and 'Web Application'",
        "Grant type: Authorization Code",
        "Sign-in redirect URIs: {redirect_uri}",
        "Sign-out redirect URIs: {post_logout_redirect_uri}",
        "Save, then copy the Client ID and Client Secret into {output_dir}/oidc-config.json",
        "Security > API > Trusted Origins: add your application's origin if it calls Okta from a browser",
        "Assignments tab: assign the users or groups who should have access",
    ),
)

PROFILES = (SAML_PROFILE, OIDC_PROFILE)
