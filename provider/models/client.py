import logging
import secrets

from django.db import models
from django.db.models import F
from django.utils import timezone

from core import scopes
from core.scopes import ScopeInput
from provider.errors import InvalidClientError
from provider.uris import parse_redirect_uri

logger = logging.getLogger(__name__)


class Client(models.Model):
    """
    A registered third-party application.
    """

    client_id = models.CharField(max_length=100, unique=True)
    secret = models.CharField(max_length=200)

    display_name = models.CharField(max_length=500, blank=True, db_index=True)
    link = models.TextField(blank=True, null=True, db_index=True)
    image_url = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    # If set, authorization requests must use exactly this redirect URI
    redirect_uri = models.TextField(blank=True, null=True)
    scope = models.TextField(blank=True, default="")

    tokens_granted = models.PositiveIntegerField(default=0)
    tokens_revoked = models.PositiveIntegerField(default=0)

    created = models.DateTimeField(default=timezone.now)
    revoked = models.DateTimeField(blank=True, null=True)

    def __str__(self):
        return self.display_name or self.client_id

    @property
    def scopes(self) -> list[str]:
        return scopes.normalize(self.scope)

    @classmethod
    def create(
        cls,
        display_name: str,
        link: str | None = None,
        image_url: str | None = None,
        redirect_uri: str | None = None,
        scope: ScopeInput = None,
        notes: str | None = None,
        client_id: str | None = None,
        secret: str | None = None,
    ) -> "Client":
        """
        Registers a new client. The id and secret are generated unless
        given (which is only useful for seeding known clients).
        """
        if redirect_uri:
            redirect_uri = parse_redirect_uri(redirect_uri)
        client = cls.objects.create(
            client_id=client_id or secrets.token_hex(12),
            secret=secret or secrets.token_urlsafe(40),
            display_name=display_name,
            link=link,
            image_url=image_url,
            redirect_uri=redirect_uri or None,
            scope=scopes.to_string(scope),
            notes=notes,
        )
        logger.info("Registered client %s (%s)", client.client_id, display_name)
        return client

    @classmethod
    def find(cls, client_id: str | None) -> "Client | None":
        """
        Returns the client with this identifier, revoked or not.
        """
        if not client_id:
            return None
        return cls.objects.filter(client_id=client_id).first()

    @classmethod
    def lookup(cls, field: str) -> "Client | None":
        """
        Finds a client by identifier, display name or link.
        """
        return (
            cls.find(field)
            or cls.objects.filter(display_name=field).first()
            or cls.objects.filter(link=field).first()
        )

    @classmethod
    def authenticate(
        cls,
        client_id: str | None,
        client_secret: str | None,
        require_secret: bool = True,
    ) -> "Client":
        """
        Returns the client these credentials identify, raising
        InvalidClientError if it doesn't exist, the secret doesn't match, or
        the client has been revoked.

        With require_secret off, a missing secret is accepted but a wrong
        one still is not.
        """
        client = cls.find(client_id)
        if client is None:
            raise InvalidClientError()
        if client_secret is not None or require_secret:
            if not secrets.compare_digest(
                (client_secret or "").encode("utf8"), client.secret.encode("utf8")
            ):
                raise InvalidClientError()
        if client.revoked:
            raise InvalidClientError()
        return client

    @classmethod
    def delete_client(cls, client_id: str):
        """
        Deletes the client along with all of its requests, grants and tokens.
        """
        from provider.models import AccessGrant, AccessToken, AuthRequest

        AuthRequest.objects.filter(client_id=client_id).delete()
        AccessGrant.objects.filter(client_id=client_id).delete()
        AccessToken.objects.filter(client_id=client_id).delete()
        cls.objects.filter(client_id=client_id).delete()
        logger.info("Deleted client %s", client_id)

    def update(
        self,
        display_name: str | None = None,
        link: str | None = None,
        image_url: str | None = None,
        redirect_uri: str | None = None,
        scope: ScopeInput = None,
        notes: str | None = None,
    ) -> "Client":
        """
        Updates the display fields and scope. Arguments left as None keep
        their current value.
        """
        if display_name is not None:
            self.display_name = display_name
        if link is not None:
            self.link = link
        if image_url is not None:
            self.image_url = image_url
        if redirect_uri is not None:
            self.redirect_uri = parse_redirect_uri(redirect_uri)
        if scope is not None:
            self.scope = scopes.to_string(scope)
        if notes is not None:
            self.notes = notes
        self.save(
            update_fields=[
                "display_name",
                "link",
                "image_url",
                "redirect_uri",
                "scope",
                "notes",
            ]
        )
        return self

    def revoke(self):
        """
        Revokes this client and every authorization request, access grant
        and access token issued to it.
        """
        from provider.models import AccessGrant, AccessToken, AuthRequest

        now = timezone.now()
        # Revocation is set-once
        if (
            Client.objects.filter(pk=self.pk, revoked__isnull=True).update(
                revoked=now
            )
            == 0
        ):
            self.refresh_from_db(fields=["revoked"])
            return
        self.revoked = now
        AuthRequest.objects.filter(client_id=self.client_id, revoked__isnull=True).update(
            revoked=now
        )
        AccessGrant.objects.filter(
            client_id=self.client_id, revoked__isnull=True
        ).update(revoked=now)
        revoked_tokens = AccessToken.objects.filter(
            client_id=self.client_id, revoked__isnull=True
        ).update(revoked=now)
        if revoked_tokens:
            Client.objects.filter(pk=self.pk).update(
                tokens_revoked=F("tokens_revoked") + revoked_tokens
            )
            self.refresh_from_db(fields=["tokens_revoked"])
        logger.info(
            "Revoked client %s and %s of its tokens", self.client_id, revoked_tokens
        )
