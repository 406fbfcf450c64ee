class OAuthError(Exception):
    """
    Base class for all OAuth protocol errors. These map to the error codes
    in the OAuth 2.0 specification and carry the HTTP status they are
    normally reported with.
    """

    code: str = "invalid_request"
    message: str = "The request has the wrong parameters."
    status: int = 400

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.code}: {self.message}"

    def as_json(self) -> dict[str, str]:
        return {"error": self.code, "error_description": self.message}


class InvalidRequestError(OAuthError):
    """
    The request is missing a required parameter, includes an unsupported
    parameter or parameter value, or is otherwise malformed.
    """


class InvalidClientError(OAuthError):
    """
    The client identifier provided is invalid, the client failed to
    authenticate, or the client has been revoked.
    """

    code = "invalid_client"
    message = "Client ID and client secret do not match."
    status = 401


class InvalidGrantError(OAuthError):
    """
    The provided access grant is invalid, expired, revoked or already used
    (also bad end-user password credentials and bad assertions).
    """

    code = "invalid_grant"
    message = "This access grant is no longer valid."


class InvalidScopeError(OAuthError):
    code = "invalid_scope"
    message = "The requested scope is not supported."


class InvalidTokenError(OAuthError):
    code = "invalid_token"
    message = "The access token is no longer valid."
    status = 401


class ExpiredTokenError(OAuthError):
    code = "expired_token"
    message = "The access token has expired."
    status = 401


class UnauthorizedClientError(OAuthError):
    code = "unauthorized_client"
    message = "This client may not use this grant type."


class UnsupportedGrantTypeError(OAuthError):
    code = "unsupported_grant_type"
    message = "This access grant type is not supported by this server."


class UnsupportedResponseTypeError(OAuthError):
    code = "unsupported_response_type"
    message = "The requested response type is not supported."


class RedirectUriMismatchError(OAuthError):
    code = "redirect_uri_mismatch"
    message = "Must use the same redirect URI you registered with us."


class AccessDeniedError(OAuthError):
    code = "access_denied"
    message = "The resource owner denied the request."
    status = 403
