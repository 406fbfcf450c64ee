from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from provider.errors import InvalidRequestError


def parse_redirect_uri(redirect_uri: str | None) -> str:
    """
    Parses the redirect URL and returns it in normalized form (lowercase
    scheme and host, empty path made "/").

    Raises InvalidRequestError if it is not an absolute HTTP/S URL.
    """
    if not redirect_uri:
        raise InvalidRequestError("Missing redirect URL")
    try:
        parts = urlsplit(redirect_uri.strip())
        # Accessing port validates it
        parts.port
    except ValueError:
        raise InvalidRequestError("Redirect URL looks fishy to me")
    if not parts.scheme or not parts.hostname:
        raise InvalidRequestError("Redirect URL must be absolute URL")
    scheme = parts.scheme.lower()
    if scheme not in ("http", "https"):
        raise InvalidRequestError("Redirect URL must point to HTTP/S location")
    netloc = parts.netloc
    host = netloc.rsplit("@", 1)[-1]
    netloc = netloc[: len(netloc) - len(host)] + host.lower()
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


def merge_query(uri: str, params: dict) -> str:
    """
    Adds params to the URI's query string, replacing any existing values
    with the same names. None values are skipped.
    """
    parts = urlsplit(uri)
    added = [(key, value) for key, value in params.items() if value is not None]
    replaced = {key for key, _ in added}
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in replaced
    ]
    return urlunsplit(parts._replace(query=urlencode(query + added)))


def set_fragment(uri: str, params: dict) -> str:
    """
    Replaces the URI's fragment with the encoded params. None values are
    skipped.
    """
    parts = urlsplit(uri)
    fragment = urlencode(
        {key: value for key, value in params.items() if value is not None}
    )
    return urlunsplit(parts._replace(fragment=fragment))
