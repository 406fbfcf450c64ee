import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from django.views.generic import View

from core import scopes, sentry
from provider.assertions import JWT_BEARER, verify_jwt_bearer
from provider.config import OAuthConfig
from provider.credentials import client_credentials
from provider.errors import (
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
    InvalidScopeError,
    OAuthError,
    UnsupportedGrantTypeError,
)
from provider.models import AccessGrant, AccessToken, Client
from provider.responses import challenge, token_response
from provider.uris import parse_redirect_uri

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class TokenView(View):
    """
    Exchanges grants (authorization codes, password credentials, client
    credentials, assertions) for access tokens.
    """

    config: OAuthConfig | None = None
    http_method_names = ["post", "options"]

    def get_config(self) -> OAuthConfig:
        return self.config or OAuthConfig.from_settings()

    def post(self, request):
        config = self.get_config()
        credentials, used_basic = client_credentials(
            request.headers, request.POST, request.GET
        )
        grant_type = request.POST.get("grant_type")
        sentry.set_context("oauth", {"grant_type": grant_type})
        try:
            client = Client.authenticate(
                credentials.client_id, credentials.client_secret
            )
            sentry.set_oauth_client(client.client_id)
            handler = self.grant_handlers.get(grant_type or "")
            if handler is None:
                raise UnsupportedGrantTypeError()
            access_token = handler(self, request, client, config)
        except OAuthError as error:
            logger.warning(
                "Access token request error (%s): %s", grant_type, error
            )
            if isinstance(error, InvalidClientError) and used_basic:
                response = token_response(error.as_json(), status=401)
                response.headers["WWW-Authenticate"] = challenge(
                    config.realm_for(request), error
                )
                return response
            return token_response(error.as_json(), status=400)
        logger.info(
            "Access token granted to client %s, identity %s",
            client.client_id,
            access_token.identity,
        )
        return token_response(
            {"access_token": access_token.token, "scope": access_token.scope}
        )

    def requested_scope(self, request, client: Client) -> list[str]:
        """
        The scope asked for, or the client's whole scope if none was. Asking
        for more than the client is allowed is an error.
        """
        if not request.POST.get("scope"):
            return client.scopes
        requested = scopes.normalize(request.POST["scope"])
        if not scopes.is_subset(requested, client.scope):
            raise InvalidScopeError()
        return requested

    def authorization_code(self, request, client: Client, config: OAuthConfig):
        grant = AccessGrant.find_by_code(request.POST.get("code"))
        if grant is None or grant.client_id != client.client_id:
            raise InvalidGrantError()
        if client.redirect_uri:
            try:
                redirect_uri = parse_redirect_uri(request.POST.get("redirect_uri"))
            except InvalidRequestError:
                raise InvalidGrantError()
            if grant.redirect_uri != redirect_uri:
                raise InvalidGrantError()
        if grant.expired:
            raise InvalidGrantError()
        return grant.authorize(config.access_token_ttl)

    def password(self, request, client: Client, config: OAuthConfig):
        if config.authenticator is None:
            raise UnsupportedGrantTypeError()
        username = request.POST.get("username")
        password = request.POST.get("password")
        if not username or not password:
            raise InvalidGrantError()
        requested = self.requested_scope(request, client)
        identity = config.authenticate(username, password, client.client_id, requested)
        if not identity:
            raise InvalidGrantError()
        return AccessToken.get_or_create_for(
            str(identity), client, requested, config.access_token_ttl
        )

    def client_only(self, request, client: Client, config: OAuthConfig):
        requested = self.requested_scope(request, client)
        return AccessToken.create_token_for(client, requested, config.access_token_ttl)

    def assertion(self, request, client: Client, config: OAuthConfig):
        assertion_type = request.POST.get("assertion_type")
        assertion = request.POST.get("assertion")
        if not assertion_type or not assertion:
            raise InvalidGrantError("Missing assertion_type or assertion.")
        requested = self.requested_scope(request, client)
        if assertion_type == JWT_BEARER:
            identity = verify_jwt_bearer(assertion, config.assertion_audience)
        else:
            handler = config.assertion_handlers.get(assertion_type)
            if handler is None:
                raise InvalidGrantError(
                    f"Unsupported assertion type '{assertion_type}'."
                )
            identity = handler(client, assertion, requested)
            if not identity:
                raise InvalidGrantError()
        return AccessToken.get_or_create_for(
            str(identity), client, requested, config.access_token_ttl
        )

    grant_handlers = {
        "authorization_code": authorization_code,
        "password": password,
        "none": client_only,
        "client_credentials": client_only,
        "assertion": assertion,
    }
