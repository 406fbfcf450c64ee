from django.http import HttpResponse, HttpResponseRedirect, JsonResponse

from provider.uris import merge_query, set_fragment
from provider.errors import OAuthError


class OauthRedirect(HttpResponseRedirect):
    """
    Redirects back to the client with the given parameters: in the fragment
    for the token (implicit) flow, so the token never reaches a server log,
    and merged into the query string otherwise.
    """

    allowed_schemes = ["http", "https"]

    def __init__(self, redirect_uri: str, response_type: str | None, **params):
        if response_type == "token":
            location = set_fragment(redirect_uri, params)
        else:
            location = merge_query(redirect_uri, params)
        super().__init__(location)


def error_redirect(
    redirect_uri: str, response_type: str | None, error: OAuthError, state: str | None
) -> OauthRedirect:
    return OauthRedirect(
        redirect_uri,
        response_type,
        error=error.code,
        error_description=error.message,
        state=state,
    )


def bad_request(message: str) -> HttpResponse:
    return HttpResponse(message, status=400, content_type="text/plain")


def token_response(data: dict, status: int = 200) -> JsonResponse:
    response = JsonResponse(data, status=status)
    response.headers["Cache-Control"] = "no-store"
    return response


def quoted(value) -> str:
    """
    Formats value as an HTTP quoted-string.
    """
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def challenge(realm: str, oauth_error: OAuthError | None = None, **extra) -> str:
    """
    Builds a WWW-Authenticate header value for the OAuth scheme.
    """
    parts = [f"OAuth realm={quoted(realm)}"]
    if oauth_error is not None:
        parts.append(f"error={quoted(oauth_error.code)}")
        parts.append(f"error_description={quoted(oauth_error.message)}")
    for key, value in extra.items():
        parts.append(f"{key}={quoted(value)}")
    return ", ".join(parts)


def unauthorized(realm: str, error: OAuthError | None = None) -> HttpResponse:
    response = HttpResponse(status=401)
    response.headers["WWW-Authenticate"] = challenge(realm, error)
    return response
