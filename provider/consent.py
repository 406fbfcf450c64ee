"""
The seam between the authorization endpoint and the application's consent
UI.

Once an authorization request checks out, the endpoint calls the configured
consent view with the request and a ConsentRequest. The view shows whatever
it likes to the user and, when they have decided, returns grant() or deny()
for the same authorization handle; those build the redirect back to the
client.
"""
import logging
from dataclasses import dataclass

from django.http import HttpResponse

from provider.config import OAuthConfig
from provider.errors import AccessDeniedError
from provider.models import AuthRequest, Client
from provider.responses import OauthRedirect, bad_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsentRequest:
    client: Client
    scope: list[str]
    authorization: str
    response_type: str
    state: str | None


def pending_request(authorization) -> AuthRequest | None:
    """
    Returns the authorization request for this handle if it can still be
    decided.
    """
    auth_request = AuthRequest.find(authorization)
    if auth_request is None or auth_request.revoked or auth_request.decided:
        return None
    return auth_request


def consent_request(auth_request: AuthRequest) -> ConsentRequest | None:
    client = Client.find(auth_request.client_id)
    if client is None or client.revoked:
        return None
    return ConsentRequest(
        client=client,
        scope=auth_request.scopes,
        authorization=str(auth_request.id),
        response_type=auth_request.response_type,
        state=auth_request.state,
    )


def authorization_response(auth_request: AuthRequest) -> OauthRedirect:
    """
    Redirects back to the client with the outcome of a decided request.
    """
    scope = " ".join(auth_request.scopes)
    if auth_request.grant_code:
        params = {"code": auth_request.grant_code, "scope": scope}
    elif auth_request.access_token:
        params = {"access_token": auth_request.access_token, "scope": scope}
    else:
        params = AccessDeniedError().as_json()
    return OauthRedirect(
        auth_request.redirect_uri,
        auth_request.response_type,
        state=auth_request.state,
        **params,
    )


def grant(
    authorization, identity: str | None, config: OAuthConfig | None = None
) -> HttpResponse:
    """
    The user granted access on behalf of identity. Without an identity this
    is a denial.
    """
    if not identity:
        return deny(authorization)
    config = config or OAuthConfig.from_settings()
    auth_request = pending_request(authorization)
    if auth_request is None:
        logger.warning("Grant for invalid authorization request %s", authorization)
        return bad_request("Invalid authorization request")
    if not auth_request.grant(
        str(identity),
        grant_ttl=config.default_grant_ttl,
        token_ttl=config.access_token_ttl,
    ):
        return bad_request("Invalid authorization request")
    return authorization_response(auth_request)


def deny(authorization) -> HttpResponse:
    auth_request = pending_request(authorization)
    if auth_request is None:
        logger.warning("Denial for invalid authorization request %s", authorization)
        return bad_request("Invalid authorization request")
    if not auth_request.deny():
        return bad_request("Invalid authorization request")
    return authorization_response(auth_request)
