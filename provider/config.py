import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

# Both return the identity, or None to refuse the credentials. They may also
# raise UnauthorizedClientError to refuse the client itself.
Authenticator = Callable[..., str | None]
AssertionHandler = Callable[[Any, str, list[str]], str | None]


def _load(value):
    """
    Settings may hold either a callable or its dotted import path.
    """
    if value is None or callable(value):
        return value
    return import_string(value)


@dataclass(frozen=True)
class OAuthConfig:
    """
    Everything the OAuth endpoints and the resource middleware need to know,
    fixed when they are constructed.
    """

    authorize_path: str = "/oauth/authorize"
    access_token_path: str = "/oauth/access_token"
    supported_response_types: tuple[str, ...] = ("code", "token")
    param_authentication: bool = False
    # Realm reported in WWW-Authenticate; defaults to the request host
    realm: str | None = None
    default_grant_ttl: int = 300
    access_token_ttl: int | None = None
    restricted_paths: tuple[str, ...] = ()
    authorize_requires_secret: bool = False
    assertion_audience: str | None = None
    authenticator: Authenticator | None = None
    assertion_handlers: Mapping[str, AssertionHandler] = field(
        default_factory=lambda: MappingProxyType({})
    )
    consent_view: Callable | None = None

    @classmethod
    def from_settings(cls) -> "OAuthConfig":
        options = getattr(settings, "OAUTH", {})
        return cls(
            authorize_path=options.get("AUTHORIZE_PATH", cls.authorize_path),
            access_token_path=options.get(
                "ACCESS_TOKEN_PATH", cls.access_token_path
            ),
            supported_response_types=tuple(
                options.get(
                    "SUPPORTED_RESPONSE_TYPES", cls.supported_response_types
                )
            ),
            param_authentication=options.get("PARAM_AUTHENTICATION", False),
            realm=options.get("REALM"),
            default_grant_ttl=options.get("GRANT_TTL", cls.default_grant_ttl),
            access_token_ttl=options.get("ACCESS_TOKEN_TTL"),
            restricted_paths=tuple(options.get("RESTRICTED_PATHS", ())),
            authorize_requires_secret=options.get(
                "AUTHORIZE_REQUIRES_SECRET", False
            ),
            assertion_audience=options.get("ASSERTION_AUDIENCE"),
            authenticator=_load(options.get("AUTHENTICATOR")),
            assertion_handlers=MappingProxyType(
                {
                    assertion_type: _load(handler)
                    for assertion_type, handler in options.get(
                        "ASSERTION_HANDLERS", {}
                    ).items()
                }
            ),
            consent_view=_load(options.get("CONSENT_VIEW")),
        )

    def realm_for(self, request) -> str:
        return self.realm or request.get_host().split(":")[0]

    def is_oauth_path(self, path: str) -> bool:
        return path in (self.authorize_path, self.access_token_path)

    def is_restricted(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.restricted_paths)

    def authenticate(
        self, username: str, password: str, client_id: str, scope: list[str]
    ) -> str | None:
        """
        Calls the configured authenticator, passing client_id and scope only
        if it accepts them.
        """
        if self.authenticator is None:
            return None
        try:
            inspect.signature(self.authenticator).bind(
                username, password, client_id, scope
            )
        except TypeError:
            return self.authenticator(username, password)
        except ValueError:
            # Builtins without a signature get the short form
            return self.authenticator(username, password)
        return self.authenticator(username, password, client_id, scope)
