import datetime
import logging
import secrets

from django.db import models, transaction
from django.utils import timezone

from core import scopes
from core.scopes import ScopeInput
from provider.errors import InvalidGrantError

logger = logging.getLogger(__name__)


class AccessGrant(models.Model):
    """
    An authorization code, good for redeeming one access token.

    Clients may send the same code several times (retries, duplicate
    requests), so redemption is decided by the database, not by the copy
    of the grant a request happens to hold.
    """

    code = models.CharField(max_length=200, primary_key=True)
    identity = models.CharField(max_length=500)
    client_id = models.CharField(max_length=100, db_index=True)
    # Redirect URI the code was issued for; redemption must match it
    redirect_uri = models.TextField(blank=True, null=True)
    scope = models.TextField(blank=True, default="")

    created = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    granted_at = models.DateTimeField(blank=True, null=True)
    # Set (once) to the token this grant was redeemed for
    access_token = models.CharField(max_length=200, blank=True, null=True)
    revoked = models.DateTimeField(blank=True, null=True)

    def __str__(self):
        return f"{self.client_id}/{self.identity}"

    @property
    def scopes(self) -> list[str]:
        return scopes.normalize(self.scope)

    @property
    def expired(self) -> bool:
        return self.expires_at <= timezone.now()

    @classmethod
    def create(
        cls,
        identity: str,
        client,
        scope: ScopeInput,
        redirect_uri: str | None = None,
        expires_in: int | None = None,
    ) -> "AccessGrant":
        """
        Creates a new grant, limited to the scope the client is allowed.
        """
        now = timezone.now()
        return cls.objects.create(
            code=secrets.token_urlsafe(43),
            identity=identity,
            client_id=client.client_id,
            redirect_uri=client.redirect_uri or redirect_uri,
            scope=scopes.to_string(scopes.intersect(scope, client.scope)),
            created=now,
            expires_at=now + datetime.timedelta(seconds=expires_in or 300),
        )

    @classmethod
    def find_by_code(cls, code: str | None) -> "AccessGrant | None":
        if not code:
            return None
        return cls.objects.filter(code=code, revoked__isnull=True).first()

    def authorize(self, expires_in: int | None = None):
        """
        Redeems this grant and returns its access token.

        Only one redemption can ever succeed: the token is recorded with an
        UPDATE that only matches while access_token and revoked are both
        still null, and every caller whose UPDATE matched nothing gets
        InvalidGrantError.
        """
        from provider.models import AccessToken, Client

        if self.access_token or self.revoked:
            raise InvalidGrantError("You can't use the same access grant twice")
        client = Client.find(self.client_id)
        if client is None:
            raise InvalidGrantError()
        granted_at = timezone.now()
        # A losing redemption rolls back any token it minted
        with transaction.atomic():
            access_token = AccessToken.get_or_create_for(
                self.identity, client, self.scope, expires_in
            )
            updated = AccessGrant.objects.filter(
                code=self.code,
                access_token__isnull=True,
                revoked__isnull=True,
            ).update(granted_at=granted_at, access_token=access_token.token)
            if not updated:
                logger.info(
                    "Access grant for client %s was already redeemed", self.client_id
                )
                raise InvalidGrantError("You can't use the same access grant twice")
        stored = (
            AccessGrant.objects.filter(code=self.code, revoked__isnull=True)
            .values_list("access_token", flat=True)
            .first()
        )
        if stored != access_token.token:
            raise InvalidGrantError()
        self.access_token = access_token.token
        self.granted_at = granted_at
        return access_token

    def revoke(self):
        now = timezone.now()
        if AccessGrant.objects.filter(code=self.code, revoked__isnull=True).update(
            revoked=now
        ):
            self.revoked = now
