import logging
from urllib.parse import urlencode

from django.core.exceptions import ImproperlyConfigured
from django.http import HttpResponseRedirect
from django.views.generic import View

from core import scopes
from provider.config import OAuthConfig
from provider.consent import consent_request, pending_request
from provider.errors import (
    InvalidRequestError,
    InvalidScopeError,
    OAuthError,
    RedirectUriMismatchError,
    UnsupportedResponseTypeError,
)
from provider.models import AuthRequest, Client
from provider.responses import bad_request, error_redirect
from provider.uris import parse_redirect_uri

logger = logging.getLogger(__name__)


class SeeOther(HttpResponseRedirect):
    status_code = 303


class AuthorizationView(View):
    """
    Starts the authorization flow.

    A fresh request (client_id, redirect_uri, response_type, scope, state)
    is checked and turned into an AuthRequest, and the browser is sent back
    here with only its handle. Requests carrying a handle are passed to the
    consent view, which decides them through provider.consent.
    """

    config: OAuthConfig | None = None

    def get_config(self) -> OAuthConfig:
        return self.config or OAuthConfig.from_settings()

    def get(self, request):
        config = self.get_config()
        if "authorization" in request.GET:
            return self.show_consent(request, config)
        state = request.GET.get("state")
        # Until the redirect URI is known good there is nowhere to send errors
        try:
            redirect_uri = parse_redirect_uri(request.GET.get("redirect_uri"))
        except InvalidRequestError as error:
            logger.warning(
                "Authorization request with invalid redirect_uri %r: %s",
                request.GET.get("redirect_uri"),
                error.message,
            )
            return bad_request(error.message)
        response_type = request.GET.get("response_type", "")
        try:
            client = Client.authenticate(
                request.GET.get("client_id"),
                request.GET.get("client_secret"),
                require_secret=config.authorize_requires_secret,
            )
            if client.redirect_uri and client.redirect_uri != redirect_uri:
                raise RedirectUriMismatchError()
            if response_type not in config.supported_response_types:
                raise UnsupportedResponseTypeError()
            requested_scope = scopes.normalize(request.GET.get("scope"))
            if not scopes.is_subset(requested_scope, client.scope):
                raise InvalidScopeError()
        except OAuthError as error:
            logger.warning("Authorization request error: %s", error)
            return error_redirect(redirect_uri, response_type, error, state)
        auth_request = AuthRequest.create(
            client, requested_scope, redirect_uri, response_type, state
        )
        logger.info(
            "Request %s: client %s requested %s with scope '%s'",
            auth_request.id,
            client.client_id,
            response_type,
            auth_request.scope,
        )
        return SeeOther(
            f"{config.authorize_path}?{urlencode({'authorization': auth_request.id})}"
        )

    def show_consent(self, request, config: OAuthConfig):
        auth_request = pending_request(request.GET["authorization"])
        consent = consent_request(auth_request) if auth_request else None
        if consent is None:
            logger.warning(
                "Invalid authorization request %s", request.GET["authorization"]
            )
            return bad_request("Invalid authorization request")
        if config.consent_view is None:
            raise ImproperlyConfigured("OAUTH['CONSENT_VIEW'] is not set")
        return config.consent_view(request, consent)
