"""Microsoft Entra ID (Azure AD) profiles.

Tenants are addressed by tenant GUID or a verified domain such as
``contoso.onmicrosoft.com``; both work in the login.microsoftonline.com
URLs. Federation metadata is published per tenant, so unlike the other
providers the SAML IdP metadata URL is known before the app exists.
"""

from __future__ import annotations

from ssowizard.providers.profiles import InputField, InputKind, Protocol, ProviderProfile

LOGIN_BASE = "https://login.microsoftonline.com/{tenant_id}"

WS_FED_CLAIMS = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims"

SAML_PROFILE = ProviderProfile(
    provider_id="azure-ad",
    protocol=Protocol.SAML,
    display_name="Azure AD (Microsoft Entra ID)",
    inputs=(
        InputField("tenant_id", "Tenant ID or Domain", InputKind.HOST, example="contoso.onmicrosoft.com"),
        InputField("entity_id", "Entity ID", InputKind.URL, example="https://example.com/saml/metadata"),
        InputField("acs_url", "Reply URL (ACS)", InputKind.URL, example="https://example.com/saml/acs"),
        InputField("slo_url", "Logout URL", InputKind.URL, required=False),
    ),
    endpoint_templates={
        "acs": "{acs_url}",
        "slo": "{slo_url}",
        "idp_metadata": LOGIN_BASE + "/federationmetadata/2007-06/federationmetadata.xml",
    },
    attribute_mapping={
        "email": f"{WS_FED_CLAIMS}/emailaddress",
        "firstName": f"{WS_FED_CLAIMS}/givenname",
        "lastName": f"{WS_FED_CLAIMS}/surname",
        "displayName": f"{WS_FED_CLAIMS}/name",
    },
    document_fields={"tenant_id": "{tenant_id}"},
    guide_title="Next Steps: Configure Azure AD",
    guide_steps=(
        "Log in to the Azure Portal: https://portal.azure.com",
        "Azure Active Directory > Enterprise applications > New application > Create your own application "
        "(Non-gallery)",
        "Single sign-on > SAML > Basic SAML Configuration",
        "Identifier (Entity ID): {entity_id}",
        "Reply URL (Assertion Consumer Service URL): {acs_url}",
        "Logout URL: {slo_url}",
        "Attributes & Claims: verify emailaddress, givenname, surname and name are configured",
        "SAML Signing Certificate: download 'Federation Metadata XML' and save it as "
        "{output_dir}/idp-metadata.xml",
        "Users and groups: assign the users or groups who should have access",
    ),
)

OIDC_PROFILE = ProviderProfile(
    provider_id="azure-ad",
    protocol=Protocol.OIDC,
    display_name="Azure AD (Microsoft Entra ID)",
    inputs=(
        InputField(
            "tenant_id", "Tenant ID", InputKind.HOST, example="xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"
        ),
        InputField("redirect_uri", "Redirect URI", InputKind.URL, example="https://example.com/oauth/callback"),
        InputField("post_logout_redirect_uri", "Post Logout Redirect URI", InputKind.URL, required=False),
    ),
    issuer_template=LOGIN_BASE + "/v2.0",
    endpoint_templates={
        "authorization": LOGIN_BASE + "/oauth2/v2.0/authorize",
        "token": LOGIN_BASE + "/oauth2/v2.0/token",
        "userinfo": "https://graph.microsoft.com/oidc/userinfo",
        "jwks": LOGIN_BASE + "/discovery/v2.0/keys",
        "end_session": LOGIN_BASE + "/oauth2/v2.0/logout",
    },
    attribute_mapping={"email": "email", "firstName": "given_name", "lastName": "family_name"},
    runtime_assigned={
        "client_id": "App registrations > your app > Overview > Application (client) ID",
        "client_secret": "App registrations > your app > Certificates & secrets > New client secret (the VALUE)",
    },
    document_fields={"tenant_id": "{tenant_id}", "response_mode": "query"},
    guide_title="Next Steps: Configure Azure AD OIDC",
    guide_steps=(
        "Log in to the Azure Portal: https://portal.azure.com",
        "Azure Active Directory > App registrations > New registration",
        "Redirect URI (platform Web): {redirect_uri}",
        "Copy the Application (client) ID and confirm the Directory (tenant) ID is {tenant_id}",
        "Certificates & secrets > New client secret; copy the secret VALUE, it is shown only once",
        "API permissions: Microsoft Graph delegated openid, profile, email, User.Read",
        "Authentication > Web: add logout URL {post_logout_redirect_uri}",
        "Replace the client_id and client_secret placeholders in {output_dir}/oidc-config.json",
    ),
)

PROFILES = (SAML_PROFILE, OIDC_PROFILE)
