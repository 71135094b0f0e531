"""Google Workspace profiles.

Google's OIDC endpoints are global. For SAML, Google assigns an ``idpid``
per custom app, so the IdP entity ID and SSO URL are only known after the
app is created in the Admin console.
"""

from __future__ import annotations

from ssowizard.providers.profiles import InputField, InputKind, Protocol, ProviderProfile

SAML_PROFILE = ProviderProfile(
    provider_id="google-workspace",
    protocol=Protocol.SAML,
    display_name="Google Workspace",
    inputs=(
        InputField("domain", "Google Workspace Domain", InputKind.HOST, example="example.com"),
        InputField("entity_id", "Entity ID", InputKind.URL, example="https://example.com/saml/metadata"),
        InputField("acs_url", "ACS URL", InputKind.URL, example="https://example.com/saml/acs"),
    ),
    endpoint_templates={"acs": "{acs_url}"},
    attribute_mapping={"email": "email", "firstName": "firstName", "lastName": "lastName"},
    runtime_assigned={
        "idp_entity_id": "Shown as 'Entity ID' on the Google Identity Provider details page "
        "(https://accounts.google.com/o/saml2?idpid=<idp id>)",
        "idp_sso_url": "Shown as 'SSO URL' on the Google Identity Provider details page "
        "(https://accounts.google.com/o/saml2/idp?idpid=<idp id>)",
    },
    document_fields={"domain": "{domain}"},
    authn_requests_signed=False,
    guide_title="Next Steps: Configure Google Workspace",
    guide_steps=(
        "Log in to the Google Admin console: https://admin.google.com",
        "Apps > Web and mobile apps > Add app > Add custom SAML app",
        "Download the IdP metadata and save it as {output_dir}/idp-metadata.xml; note the SSO URL and Entity ID",
        "ACS URL: {acs_url}",
        "Entity ID: {entity_id}",
        "Name ID format: EMAIL; Name ID: Basic Information > Primary email",
        "Attribute mapping: Primary email -> email, First name -> firstName, Last name -> lastName",
        "User access: turn the app ON for everyone in {domain} or for specific organizational units",
    ),
)

OIDC_PROFILE = ProviderProfile(
    provider_id="google-workspace",
    protocol=Protocol.OIDC,
    display_name="Google Workspace",
    inputs=(
        InputField("redirect_uri", "Redirect URI", InputKind.URL, example="https://example.com/oauth/callback"),
        InputField("post_logout_redirect_uri", "Post Logout Redirect URI", InputKind.URL, required=False),
        InputField("hosted_domain", "Hosted Domain", InputKind.HOST, required=False, example="example.com"),
    ),
    issuer_template="https://accounts.google.com",
    endpoint_templates={
        "authorization": "https://accounts.google.com/o/oauth2/v2/auth",
        "token": "https://oauth2.googleapis.com/token",
        "userinfo": "https://openidconnect.googleapis.com/v1/userinfo",
        "jwks": "https://www.googleapis.com/oauth2/v3/certs",
    },
    attribute_mapping={"email": "email", "firstName": "given_name", "lastName": "family_name"},
    runtime_assigned={
        "client_id": "Google Cloud Console > APIs & Services > Credentials > OAuth client ID",
        "client_secret": "Google Cloud Console > APIs & Services > Credentials > OAuth client secret",
    },
    document_fields={"hosted_domain": "{hosted_domain}"},
    client_id_placeholder="YOUR_CLIENT_ID.apps.googleusercontent.com",
    guide_title="Next Steps: Configure Google OIDC",
    guide_steps=(
        "Open the Google Cloud Console: https://console.cloud.google.com",
        "APIs & Services > OAuth consent screen: choose Internal and add scopes openid, profile, email",
        "APIs & Services > Credentials > Create Credentials > OAuth client ID (Web application)",
        "Authorized redirect URIs: {redirect_uri}",
        "Restrict sign-in to your Workspace domain with the hd parameter: {hosted_domain}",
        "Copy the client ID and secret into {output_dir}/oidc-config.json",
    ),
)

PROFILES = (SAML_PROFILE, OIDC_PROFILE)
