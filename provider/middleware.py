import logging
from dataclasses import dataclass, field

from core import scopes, sentry
from provider.config import OAuthConfig
from provider.credentials import BearerCredentials, parse_credentials
from provider.errors import ExpiredTokenError, InvalidTokenError, OAuthError
from provider.models import AccessToken
from provider.responses import challenge, unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthContext:
    """
    What the resource middleware learned about a request's access token.
    """

    access_token: str | None = None
    identity: str | None = None
    client_id: str | None = None
    scope: list[str] = field(default_factory=list)

    @property
    def authenticated(self) -> bool:
        return self.access_token is not None

    def has_scope(self, scope: str) -> bool:
        return scope in self.scope


class ResourceProtectionMiddleware:
    """
    Authenticates requests that carry an access token and sets
    request.oauth. Requests with a bad token are refused with a 401; requests
    with none pass through unauthenticated unless their path is restricted.

    Views signal missing access or scope by marking their response (see
    provider.decorators); those responses get the matching WWW-Authenticate
    challenge here.
    """

    def __init__(self, get_response, config: OAuthConfig | None = None):
        self.get_response = get_response
        self.config = config or OAuthConfig.from_settings()

    def __call__(self, request):
        request.oauth = OAuthContext()
        if self.config.is_oauth_path(request.path):
            return self.get_response(request)
        # Only touch the body when form tokens are allowed
        read_form = self.config.param_authentication and request.method == "POST"
        credentials = parse_credentials(
            request.headers,
            request.POST if read_form else {},
            request.GET,
            param_authentication=self.config.param_authentication,
        )
        realm = self.config.realm_for(request)
        if isinstance(credentials, BearerCredentials):
            try:
                request.oauth = self.authenticate(credentials.token)
            except OAuthError as error:
                logger.info("HTTP authorization failed: %s", error.code)
                return unauthorized(realm, error)
            logger.debug("Authorized %s", request.oauth.identity)
        elif self.config.is_restricted(request.path):
            logger.info("Unauthenticated request to restricted path %s", request.path)
            return unauthorized(realm)
        response = self.get_response(request)
        return self.process_markers(response, realm)

    def authenticate(self, token: str) -> OAuthContext:
        access_token = AccessToken.from_token(token)
        if access_token is None:
            raise InvalidTokenError()
        if access_token.expired:
            raise ExpiredTokenError()
        access_token.access()
        sentry.set_oauth_client(access_token.client_id, access_token.identity)
        return OAuthContext(
            access_token=access_token.token,
            identity=access_token.identity,
            client_id=access_token.client_id,
            scope=access_token.scopes,
        )

    def process_markers(self, response, realm: str):
        no_scope = getattr(response, "oauth_no_scope", None)
        if no_scope is not None:
            response.status_code = 403
            response.headers["WWW-Authenticate"] = challenge(
                realm,
                error="insufficient_scope",
                scope=scopes.to_string(no_scope),
            )
        elif getattr(response, "oauth_no_access", False):
            response.status_code = 401
            response.headers["WWW-Authenticate"] = challenge(realm)
        return response
