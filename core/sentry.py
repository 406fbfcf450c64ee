import sentry_sdk
from django.conf import settings

SENTRY_ENABLED = bool(settings.SETUP.SENTRY_DSN)


def noop(*args, **kwargs):
    pass


if SENTRY_ENABLED:
    set_context = sentry_sdk.set_context
    set_tag = sentry_sdk.set_tag
    set_user = sentry_sdk.set_user
else:
    set_context = noop
    set_tag = noop
    set_user = noop


def set_oauth_client(client_id: str | None, identity: str | None = None):
    """
    Tags the current Sentry scope with the OAuth client (and identity, if
    any) the request is acting for.
    """
    set_tag("gatehouse.client_id", client_id or "")
    if identity:
        set_user({"id": identity})
