import datetime
import logging
import secrets

from django.db import models
from django.db.models import Count, F, Q
from django.db.models.functions import TruncDate
from django.utils import timezone

from core import scopes
from core.scopes import ScopeInput

logger = logging.getLogger(__name__)


def hour_bucket(moment: datetime.datetime) -> datetime.datetime:
    return moment.replace(minute=0, second=0, microsecond=0)


class AccessToken(models.Model):
    """
    A bearer token clients use to access protected resources.

    Tokens are tied to a client and a scope, and usually to an identity
    (client-only tokens from the "none" grant have no identity). They may
    expire, and may be revoked; they are never deleted.
    """

    token = models.CharField(max_length=200, primary_key=True)
    identity = models.CharField(max_length=500, blank=True, null=True)
    client_id = models.CharField(max_length=100, db_index=True)
    scope = models.TextField(blank=True, default="")

    created = models.DateTimeField(default=timezone.now, db_index=True)
    expires_at = models.DateTimeField(blank=True, null=True)
    revoked = models.DateTimeField(blank=True, null=True)

    # Hour-granularity usage tracking
    last_access = models.DateTimeField(blank=True, null=True)
    prev_access = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(
                fields=["identity", "client_id", "scope"],
                name="ix_accesstoken_lookup",
            ),
        ]

    def __str__(self):
        return f"{self.client_id}/{self.identity or '-'}"

    @property
    def scopes(self) -> list[str]:
        return scopes.normalize(self.scope)

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= timezone.now()

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes

    @classmethod
    def _expiry(cls, expires_in: int | None) -> datetime.datetime | None:
        if expires_in is None:
            return None
        return timezone.now() + datetime.timedelta(seconds=expires_in)

    @classmethod
    def _mint(
        cls,
        identity: str | None,
        client,
        scope: list[str],
        expires_in: int | None,
    ) -> "AccessToken":
        from provider.models import Client

        token = cls.objects.create(
            token=secrets.token_urlsafe(43),
            identity=identity,
            client_id=client.client_id,
            scope=scopes.to_string(scope),
            expires_at=cls._expiry(expires_in),
        )
        Client.objects.filter(client_id=client.client_id).update(
            tokens_granted=F("tokens_granted") + 1
        )
        logger.info(
            "Issued access token for client %s, identity %s, scope '%s'",
            client.client_id,
            identity,
            token.scope,
        )
        return token

    @classmethod
    def create_token_for(
        cls, client, scope: ScopeInput, expires_in: int | None = None
    ) -> "AccessToken":
        """
        Always mints a new client-only token. Used by the "none" grant.
        """
        return cls._mint(None, client, scopes.intersect(scope, client.scope), expires_in)

    @classmethod
    def get_or_create_for(
        cls,
        identity: str,
        client,
        scope: ScopeInput,
        expires_in: int | None = None,
    ) -> "AccessToken":
        """
        Returns the live token for this identity, scope and client, creating
        one if there is none.

        Two concurrent calls may both create a token; either one grants the
        same rights, so this is tolerated rather than locked against.
        """
        scope = scopes.intersect(scope, client.scope)
        existing = (
            cls.objects.filter(
                identity=identity,
                client_id=client.client_id,
                scope=scopes.to_string(scope),
                revoked__isnull=True,
            )
            .filter(Q(expires_at__isnull=True) | Q(expires_at__gt=timezone.now()))
            .order_by("created")
            .first()
        )
        if existing:
            return existing
        return cls._mint(identity, client, scope, expires_in)

    @classmethod
    def from_token(cls, token: str | None) -> "AccessToken | None":
        """
        Returns the token if it exists and is not revoked.
        """
        if not token:
            return None
        return cls.objects.filter(token=token, revoked__isnull=True).first()

    @classmethod
    def from_identity(cls, identity: str):
        return cls.objects.filter(identity=identity).order_by("-created")

    @classmethod
    def for_client(cls, client_id: str, offset: int = 0, limit: int = 50):
        return cls.objects.filter(client_id=client_id).order_by("-created")[
            offset : offset + limit
        ]

    @classmethod
    def count(
        cls,
        client_id: str | None = None,
        days: int | None = None,
        revoked: bool | None = None,
    ) -> int:
        """
        Counts tokens, optionally for one client. With days, only counts
        tokens created (or, with revoked=True, revoked) in that many days.
        """
        queryset = cls.objects.all()
        if client_id:
            queryset = queryset.filter(client_id=client_id)
        since = timezone.now() - datetime.timedelta(days=days) if days else None
        if revoked:
            queryset = queryset.filter(revoked__isnull=False)
            if since:
                queryset = queryset.filter(revoked__gte=since)
        else:
            if revoked is False:
                queryset = queryset.filter(revoked__isnull=True)
            if since:
                queryset = queryset.filter(created__gte=since)
        return queryset.count()

    @classmethod
    def historical(cls, client_id: str | None = None, days: int = 60) -> list[dict]:
        """
        Returns per-day counts of granted and revoked tokens for the last
        `days` days, oldest first. Days with no activity are left out.
        """
        since = timezone.now() - datetime.timedelta(days=days)
        queryset = cls.objects.all()
        if client_id:
            queryset = queryset.filter(client_id=client_id)
        granted = (
            queryset.filter(created__gte=since)
            .annotate(day=TruncDate("created"))
            .values("day")
            .annotate(count=Count("token"))
        )
        revoked = (
            queryset.filter(revoked__gte=since)
            .annotate(day=TruncDate("revoked"))
            .values("day")
            .annotate(count=Count("token"))
        )
        days_seen: dict[datetime.date, dict] = {}
        for row in granted:
            days_seen.setdefault(row["day"], {"day": row["day"], "granted": 0, "revoked": 0})
            days_seen[row["day"]]["granted"] = row["count"]
        for row in revoked:
            days_seen.setdefault(row["day"], {"day": row["day"], "granted": 0, "revoked": 0})
            days_seen[row["day"]]["revoked"] = row["count"]
        return [days_seen[day] for day in sorted(days_seen)]

    def access(self):
        """
        Records that the token was used this hour. Only the first use in
        each hour writes anything.
        """
        bucket = hour_bucket(timezone.now())
        if self.last_access == bucket:
            return
        updated = (
            AccessToken.objects.filter(token=self.token)
            .exclude(last_access=bucket)
            .update(prev_access=F("last_access"), last_access=bucket)
        )
        if updated:
            self.prev_access = self.last_access
        self.last_access = bucket

    def revoke(self):
        """
        Revokes this token. Revoking twice does nothing the second time.
        """
        from provider.models import Client

        now = timezone.now()
        updated = AccessToken.objects.filter(
            token=self.token, revoked__isnull=True
        ).update(revoked=now)
        if updated:
            self.revoked = now
            Client.objects.filter(client_id=self.client_id).update(
                tokens_revoked=F("tokens_revoked") + 1
            )
            logger.info("Revoked access token for client %s", self.client_id)
        else:
            self.refresh_from_db(fields=["revoked"])
