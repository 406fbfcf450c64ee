import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import unquote


@dataclass(frozen=True)
class BasicCredentials:
    client_id: str | None
    client_secret: str | None


@dataclass(frozen=True)
class BearerCredentials:
    token: str


Credentials = BasicCredentials | BearerCredentials | None

# Query/form parameters accepted as access tokens when parameter
# authentication is enabled
TOKEN_PARAMS = ("oauth_token", "access_token")


def parse_authorization_header(header: str | None) -> Credentials:
    """
    Parses an Authorization header into client credentials (Basic) or an
    access token (OAuth/Bearer). Anything else is None.
    """
    if not header:
        return None
    parts = header.replace("\n", "").split()
    if len(parts) != 2:
        return None
    scheme, value = parts
    scheme = scheme.lower()
    if scheme == "basic":
        try:
            decoded = base64.b64decode(value, validate=True).decode("utf8")
        except (binascii.Error, UnicodeDecodeError):
            return BasicCredentials(None, None)
        client_id, _, client_secret = decoded.partition(":")
        return BasicCredentials(unquote(client_id), unquote(client_secret))
    if scheme in ("oauth", "bearer"):
        return BearerCredentials(value)
    return None


def parse_credentials(
    headers: Mapping[str, str],
    form: Mapping[str, str],
    query: Mapping[str, str],
    param_authentication: bool = False,
) -> Credentials:
    """
    Works out which credentials a request carries. The Authorization header
    wins; parameter tokens are only considered when enabled, and never on
    OAuth 1.0 callbacks (which carry oauth_verifier).
    """
    credentials = parse_authorization_header(headers.get("authorization"))
    if credentials is not None:
        return credentials
    if param_authentication and "oauth_verifier" not in query:
        for name in TOKEN_PARAMS:
            token = query.get(name) or form.get(name)
            if token:
                return BearerCredentials(token)
    return None


def client_credentials(
    headers: Mapping[str, str],
    form: Mapping[str, str],
    query: Mapping[str, str],
) -> tuple[BasicCredentials, bool]:
    """
    Returns the client credentials for a token request, and whether they
    came from HTTP Basic. Basic wins, then the POST body, then the query.
    """
    credentials = parse_authorization_header(headers.get("authorization"))
    if isinstance(credentials, BasicCredentials):
        return credentials, True
    if "client_id" in form:
        return BasicCredentials(form.get("client_id"), form.get("client_secret")), False
    return BasicCredentials(query.get("client_id"), query.get("client_secret")), False
