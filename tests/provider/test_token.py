import datetime

import pytest
from django.utils import timezone

from provider.errors import UnauthorizedClientError
from provider.models import AccessGrant, AccessToken, Client


def token_request(client, oauth_client, **params):
    data = {
        "client_id": oauth_client.client_id,
        "client_secret": oauth_client.secret,
    }
    data.update(params)
    return client.post(
        "/oauth/access_token", {k: v for k, v in data.items() if v is not None}
    )


@pytest.mark.django_db
def test_authorization_code(client, oauth_client):
    grant = AccessGrant.create("batman", oauth_client, "read")
    response = token_request(
        client,
        oauth_client,
        grant_type="authorization_code",
        code=grant.code,
        redirect_uri="http://uberclient.dot/callback",
    )
    assert response.status_code == 200
    assert response["Cache-Control"] == "no-store"
    body = response.json()
    assert set(body) == {"access_token", "scope"}
    assert body["scope"] == "read"
    access_token = AccessToken.from_token(body["access_token"])
    assert access_token.identity == "batman"

    # Replaying the code fails
    response = token_request(
        client,
        oauth_client,
        grant_type="authorization_code",
        code=grant.code,
        redirect_uri="http://uberclient.dot/callback",
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


@pytest.mark.django_db
def test_authorization_code_basic_auth(client, oauth_client, basic_auth):
    grant = AccessGrant.create("batman", oauth_client, "read write")
    response = client.post(
        "/oauth/access_token",
        {
            "grant_type": "authorization_code",
            "code": grant.code,
            "redirect_uri": "http://uberclient.dot/callback",
        },
        HTTP_AUTHORIZATION=basic_auth(oauth_client.client_id, oauth_client.secret),
    )
    assert response.status_code == 200
    assert response.json()["scope"] == "read write"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "redirect_uri",
    [None, "http://uberclient.dot/other", "not a uri"],
)
def test_authorization_code_redirect_mismatch(client, oauth_client, redirect_uri):
    grant = AccessGrant.create("batman", oauth_client, "read")
    response = token_request(
        client,
        oauth_client,
        grant_type="authorization_code",
        code=grant.code,
        redirect_uri=redirect_uri,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


@pytest.mark.django_db
def test_authorization_code_open_client(client, open_client):
    """
    Clients without a registered redirect URI needn't send one back
    """
    grant = AccessGrant.create(
        "batman", open_client, "read", redirect_uri="http://anywhere.dot/"
    )
    response = token_request(
        client, open_client, grant_type="authorization_code", code=grant.code
    )
    assert response.status_code == 200


@pytest.mark.django_db
def test_authorization_code_expired(client, oauth_client):
    grant = AccessGrant.create("batman", oauth_client, "read")
    AccessGrant.objects.filter(code=grant.code).update(
        expires_at=timezone.now() - datetime.timedelta(seconds=1)
    )
    response = token_request(
        client,
        oauth_client,
        grant_type="authorization_code",
        code=grant.code,
        redirect_uri="http://uberclient.dot/callback",
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


@pytest.mark.django_db
def test_authorization_code_wrong_client(client, oauth_client, open_client):
    grant = AccessGrant.create("batman", oauth_client, "read")
    response = token_request(
        client,
        open_client,
        grant_type="authorization_code",
        code=grant.code,
        redirect_uri="http://uberclient.dot/callback",
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"
    response = token_request(
        client, oauth_client, grant_type="authorization_code", code="madeup"
    )
    assert response.json()["error"] == "invalid_grant"


@pytest.mark.django_db
def test_access_token_ttl(client, oauth_client, oauth_options):
    oauth_options(ACCESS_TOKEN_TTL=60)
    response = token_request(client, oauth_client, grant_type="none")
    access_token = AccessToken.from_token(response.json()["access_token"])
    assert access_token.expires_at <= timezone.now() + datetime.timedelta(seconds=60)


@pytest.mark.django_db
def test_bad_client_credentials(client, oauth_client, basic_auth):
    response = token_request(client, oauth_client, client_secret="wrong", grant_type="none")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"
    assert "WWW-Authenticate" not in response

    response = client.post(
        "/oauth/access_token",
        {"grant_type": "none"},
        HTTP_AUTHORIZATION=basic_auth(oauth_client.client_id, "wrong"),
    )
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_client"
    assert response["WWW-Authenticate"].startswith('OAuth realm="testserver"')
    assert 'error="invalid_client"' in response["WWW-Authenticate"]


@pytest.mark.django_db
def test_unsupported_grant_type(client, oauth_client):
    for grant_type in ["magic", None]:
        response = token_request(client, oauth_client, grant_type=grant_type)
        assert response.status_code == 400
        assert response.json()["error"] == "unsupported_grant_type"


@pytest.mark.django_db
def test_get_not_allowed(client, oauth_client):
    response = client.get(
        "/oauth/access_token",
        {
            "client_id": oauth_client.client_id,
            "client_secret": oauth_client.secret,
            "grant_type": "none",
        },
    )
    assert response.status_code == 405


@pytest.mark.django_db
@pytest.mark.parametrize("grant_type", ["none", "client_credentials"])
def test_client_only(client, oauth_client, grant_type):
    response = token_request(client, oauth_client, grant_type=grant_type)
    assert response.status_code == 200
    body = response.json()
    # Without a scope, the client gets all it may have
    assert body["scope"] == "read write"
    access_token = AccessToken.from_token(body["access_token"])
    assert access_token.identity is None

    # Every request mints a new token
    response = token_request(client, oauth_client, grant_type=grant_type, scope="read")
    assert response.json()["scope"] == "read"
    assert response.json()["access_token"] != body["access_token"]


@pytest.mark.django_db
def test_empty_scope(client):
    scopeless = Client.create(display_name="Scopeless")
    response = token_request(client, scopeless, grant_type="none")
    assert response.status_code == 200
    assert response.json()["scope"] == ""


@pytest.mark.django_db
def test_invalid_scope(client, oauth_client):
    response = token_request(client, oauth_client, grant_type="none", scope="read sudo")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_scope"
    assert not AccessToken.objects.exists()


def check_password(username, password):
    if (username, password) == ("batman", "bruce"):
        return "batman"
    return None


@pytest.mark.django_db
def test_password(client, oauth_client, oauth_options):
    oauth_options(AUTHENTICATOR=check_password)
    response = token_request(
        client, oauth_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.status_code == 200
    body = response.json()
    assert body["scope"] == "read write"
    assert AccessToken.from_token(body["access_token"]).identity == "batman"

    # Same identity and scope gives the same token
    response = token_request(
        client, oauth_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.json()["access_token"] == body["access_token"]


@pytest.mark.django_db
@pytest.mark.parametrize(
    "username,password",
    [("batman", "wrong"), ("joker", "bruce"), ("batman", None), (None, "bruce")],
)
def test_password_refused(client, oauth_client, oauth_options, username, password):
    oauth_options(AUTHENTICATOR=check_password)
    response = token_request(
        client, oauth_client, grant_type="password", username=username, password=password
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"


@pytest.mark.django_db
def test_password_with_client_and_scope(client, oauth_client, oauth_options):
    calls = []

    def authenticator(username, password, client_id, scope):
        calls.append((username, password, client_id, scope))
        return "batman"

    oauth_options(AUTHENTICATOR=authenticator)
    response = token_request(
        client,
        oauth_client,
        grant_type="password",
        username="batman",
        password="bruce",
        scope="write",
    )
    assert response.status_code == 200
    assert response.json()["scope"] == "write"
    assert calls == [("batman", "bruce", oauth_client.client_id, ["write"])]


@pytest.mark.django_db
def test_password_not_configured(client, oauth_client):
    response = token_request(
        client, oauth_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.status_code == 400
    assert response.json()["error"] == "unsupported_grant_type"


@pytest.mark.django_db
def test_password_django_users(client, oauth_client, oauth_options, django_user_model):
    user = django_user_model.objects.create_user(username="batman", password="bruce")
    oauth_options(AUTHENTICATOR="provider.authenticators.django_user")
    response = token_request(
        client, oauth_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.status_code == 200
    access_token = AccessToken.from_token(response.json()["access_token"])
    assert access_token.identity == str(user.pk)

    user.is_active = False
    user.save()
    response = token_request(
        client, oauth_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.json()["error"] == "invalid_grant"


@pytest.mark.django_db
def test_password_refuses_client(client, oauth_client, open_client, oauth_options):
    def authenticator(username, password, client_id, scope):
        if client_id != open_client.client_id:
            raise UnauthorizedClientError()
        return username

    oauth_options(AUTHENTICATOR=authenticator)
    response = token_request(
        client, oauth_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.status_code == 400
    assert response.json()["error"] == "unauthorized_client"
    response = token_request(
        client, open_client, grant_type="password", username="batman", password="bruce"
    )
    assert response.status_code == 200


@pytest.mark.django_db
def test_revoked_client(client, oauth_client, basic_auth):
    grant = AccessGrant.create("batman", oauth_client, "read")
    oauth_client.revoke()
    response = token_request(
        client,
        oauth_client,
        grant_type="authorization_code",
        code=grant.code,
        redirect_uri="http://uberclient.dot/callback",
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"

    response = client.post(
        "/oauth/access_token",
        {"grant_type": "none"},
        HTTP_AUTHORIZATION=basic_auth(oauth_client.client_id, oauth_client.secret),
    )
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_client"
    assert not AccessToken.objects.exists()
