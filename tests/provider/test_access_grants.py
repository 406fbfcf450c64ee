import datetime
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connection
from django.utils import timezone

from core import scopes
from provider.errors import InvalidGrantError
from provider.models import AccessGrant, AccessToken


@pytest.mark.django_db
def test_create(oauth_client):
    grant = AccessGrant.create(
        "batman", oauth_client, "read admin", redirect_uri="http://elsewhere.dot/"
    )
    # Scope is limited to what the client may have
    assert grant.scope == "read"
    # The registered redirect URI wins
    assert grant.redirect_uri == "http://uberclient.dot/callback"
    assert not grant.expired
    lifetime = grant.expires_at - grant.created
    assert lifetime == datetime.timedelta(seconds=300)
    assert AccessGrant.find_by_code(grant.code) == grant


@pytest.mark.django_db
def test_create_without_registered_redirect(open_client):
    grant = AccessGrant.create(
        "batman", open_client, "read", redirect_uri="http://elsewhere.dot/", expires_in=60
    )
    assert grant.redirect_uri == "http://elsewhere.dot/"
    assert grant.expires_at - grant.created == datetime.timedelta(seconds=60)


@pytest.mark.django_db
def test_expired(oauth_client):
    grant = AccessGrant.create("batman", oauth_client, "read")
    grant.expires_at = timezone.now() - datetime.timedelta(seconds=1)
    assert grant.expired


@pytest.mark.django_db
def test_authorize_once(oauth_client):
    grant = AccessGrant.create("batman", oauth_client, "read write")
    access_token = grant.authorize()
    assert access_token.identity == "batman"
    assert access_token.client_id == oauth_client.client_id
    assert access_token.scope == "read write"
    assert grant.access_token == access_token.token
    assert grant.granted_at is not None

    with pytest.raises(InvalidGrantError):
        grant.authorize()
    stored = AccessGrant.objects.get(code=grant.code)
    assert stored.access_token == access_token.token


@pytest.mark.django_db
def test_authorize_race(oauth_client):
    """
    Two requests holding the same unredeemed grant: only one gets a token.
    """
    grant = AccessGrant.create("batman", oauth_client, "read")
    first = AccessGrant.find_by_code(grant.code)
    second = AccessGrant.find_by_code(grant.code)

    access_token = first.authorize()
    # The second copy still looks unredeemed in memory
    assert second.access_token is None
    with pytest.raises(InvalidGrantError):
        second.authorize()

    assert AccessToken.objects.filter(client_id=oauth_client.client_id).count() == 1
    assert AccessGrant.objects.get(code=grant.code).access_token == access_token.token


@pytest.mark.django_db(transaction=True)
def test_authorize_concurrently(oauth_client):
    """
    Many requests redeeming the same code at once: exactly one wins.
    """
    grant = AccessGrant.create("batman", oauth_client, "read")
    copies = [AccessGrant.find_by_code(grant.code) for _ in range(5)]
    barrier = threading.Barrier(len(copies))

    def redeem(copy):
        try:
            barrier.wait()
            try:
                return copy.authorize().token
            except InvalidGrantError:
                return None
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=len(copies)) as pool:
        outcomes = list(pool.map(redeem, copies))

    winners = [token for token in outcomes if token]
    assert len(winners) == 1
    assert outcomes.count(None) == len(copies) - 1
    assert AccessToken.objects.count() == 1
    assert AccessGrant.objects.get(code=grant.code).access_token == winners[0]
    oauth_client.refresh_from_db()
    assert oauth_client.tokens_granted == 1


@pytest.mark.django_db
def test_losing_redemption_keeps_no_token(oauth_client, monkeypatch):
    """
    A redemption that loses the race rolls back the token it minted.
    """

    def always_mint(cls, identity, client, scope, expires_in=None):
        scope = scopes.intersect(scope, client.scope)
        return cls._mint(identity, client, scope, expires_in)

    monkeypatch.setattr(AccessToken, "get_or_create_for", classmethod(always_mint))
    grant = AccessGrant.create("batman", oauth_client, "read")
    first = AccessGrant.find_by_code(grant.code)
    second = AccessGrant.find_by_code(grant.code)

    winner = first.authorize()
    with pytest.raises(InvalidGrantError):
        second.authorize()

    assert list(AccessToken.objects.values_list("token", flat=True)) == [winner.token]
    oauth_client.refresh_from_db()
    assert oauth_client.tokens_granted == 1


@pytest.mark.django_db
def test_authorize_with_expiry(oauth_client):
    grant = AccessGrant.create("batman", oauth_client, "read")
    access_token = grant.authorize(expires_in=3600)
    assert access_token.expires_at is not None
    assert access_token.expires_at > timezone.now() + datetime.timedelta(minutes=59)


@pytest.mark.django_db
def test_revoke(oauth_client):
    grant = AccessGrant.create("batman", oauth_client, "read")
    stale = AccessGrant.find_by_code(grant.code)
    grant.revoke()
    assert grant.revoked is not None
    assert AccessGrant.find_by_code(grant.code) is None
    with pytest.raises(InvalidGrantError):
        stale.authorize()
    assert not AccessToken.objects.exists()
    # Revoking again is harmless
    grant.revoke()
