from functools import wraps

from django.http import HttpResponse

from core import scopes


def no_access() -> HttpResponse:
    """
    Refuses the request for lack of an access token. The resource
    middleware adds the WWW-Authenticate challenge.
    """
    response = HttpResponse(status=401)
    response.oauth_no_access = True
    return response


def no_scope(scope: scopes.ScopeInput) -> HttpResponse:
    """
    Refuses the request because the token lacks the given scope. The
    resource middleware turns this into a 403 insufficient_scope challenge.
    """
    response = HttpResponse(status=403)
    response.oauth_no_scope = scopes.normalize(scope)
    return response


def oauth_required(scope: str | None = None):
    """
    Requires an authenticated request, and optionally that its token has
    the given scope.
    """

    def decorator(function):
        @wraps(function)
        def inner(request, *args, **kwargs):
            oauth = getattr(request, "oauth", None)
            if oauth is None or not oauth.authenticated:
                return no_access()
            if scope and not oauth.has_scope(scope):
                return no_scope(scope)
            return function(request, *args, **kwargs)

        # Token-authenticated clients have no CSRF cookie
        inner.csrf_exempt = True  # type:ignore
        return inner

    return decorator
