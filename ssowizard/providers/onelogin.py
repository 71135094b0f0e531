"""OneLogin profiles.

Accounts are served from ``<company>.onelogin.com``. SAML connector URLs
embed an app id OneLogin assigns after the connector is added; the OIDC
endpoints use the version 2 OpenID Connect API.
"""

from __future__ import annotations

from ssowizard.providers.profiles import InputField, InputKind, Protocol, ProviderProfile

SUBDOMAIN = InputField(
    name="subdomain",
    label="OneLogin Subdomain",
    kind=InputKind.HOST,
    example="yourcompany.onelogin.com",
)

SAML_PROFILE = ProviderProfile(
    provider_id="onelogin",
    protocol=Protocol.SAML,
    display_name="OneLogin",
    inputs=(
        SUBDOMAIN,
        InputField("entity_id", "Entity ID", InputKind.URL, example="https://example.com/saml/metadata"),
        InputField("acs_url", "ACS URL", InputKind.URL, example="https://example.com/saml/acs"),
        InputField("slo_url", "Single Logout URL", InputKind.URL, required=False),
    ),
    endpoint_templates={"acs": "{acs_url}", "slo": "{slo_url}"},
    attribute_mapping={"email": "User.email", "firstName": "User.FirstName", "lastName": "User.LastName"},
    runtime_assigned={
        "idp_issuer": "SSO tab > Issuer URL (https://app.onelogin.com/saml/metadata/<app id>)",
        "idp_sso_url": "SSO tab > SAML 2.0 Endpoint (HTTP) (https://<subdomain>/trust/saml2/http-post/sso/<app id>)",
    },
    document_fields={"subdomain": "{subdomain}"},
    guide_title="Next Steps: Configure OneLogin",
    guide_steps=(
        "Log in to the OneLogin admin portal: https://{subdomain}/admin",
        "Applications > Add App > search 'SAML Custom Connector (Advanced)' and save",
        "Configuration tab: Audience (EntityID): {entity_id}",
        "Configuration tab: ACS (Consumer) URL and Recipient: {acs_url}",
        "Configuration tab: Single Logout URL: {slo_url}",
        "Parameters tab: map email, firstName and lastName to User.email, User.FirstName, User.LastName",
        "SSO tab: download the issuer metadata and save it as {output_dir}/idp-metadata.xml",
        "Users tab: assign the users or roles who should have access",
    ),
)

OIDC_PROFILE = ProviderProfile(
    provider_id="onelogin",
    protocol=Protocol.OIDC,
    display_name="OneLogin",
    inputs=(
        SUBDOMAIN,
        InputField("redirect_uri", "Redirect URI", InputKind.URL, example="https://example.com/oauth/callback"),
        InputField("post_logout_redirect_uri", "Post Logout Redirect URI", InputKind.URL, required=False),
    ),
    issuer_template="https://{subdomain}/oidc/2",
    endpoint_templates={
        "authorization": "https://{subdomain}/oidc/2/auth",
        "token": "https://{subdomain}/oidc/2/token",
        "userinfo": "https://{subdomain}/oidc/2/me",
        "jwks": "https://{subdomain}/oidc/2/certs",
        "end_session": "https://{subdomain}/oidc/2/logout",
    },
    attribute_mapping={"email": "email", "firstName": "given_name", "lastName": "family_name"},
    runtime_assigned={
        "client_id": "Applications > your OIDC app > SSO tab > Client ID",
        "client_secret": "Applications > your OIDC app > SSO tab > Client Secret (Show client secret)",
    },
    document_fields={"subdomain": "{subdomain}"},
    guide_title="Next Steps: Configure OneLogin OIDC",
    guide_steps=(
        "Log in to the OneLogin admin portal: https://{subdomain}/admin",
        "Applications > Add App > search 'OpenId Connect (OIDC)' and save",
        "Configuration tab: Login Url and Redirect URIs: {redirect_uri}",
        "Configuration tab: Post Logout Redirect URIs: {post_logout_redirect_uri}",
        "SSO tab: set Token Endpoint authentication to POST and copy the Client ID and Client Secret",
        "Paste the credentials into {output_dir}/oidc-config.json",
        "Access tab: assign the roles whose users should have access",
    ),
)

PROFILES = (SAML_PROFILE, OIDC_PROFILE)
