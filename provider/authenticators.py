from django.contrib.auth import authenticate


def django_user(username: str, password: str) -> str | None:
    """
    Password grant authenticator backed by Django's authentication
    backends. The identity is the user's primary key.
    """
    user = authenticate(username=username, password=password)
    if user is None or not user.is_active:
        return None
    return str(user.pk)
