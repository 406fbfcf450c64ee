import logging
import uuid

from django.db import models
from django.utils import timezone

from core import scopes
from core.scopes import ScopeInput

logger = logging.getLogger(__name__)


class AuthRequest(models.Model):
    """
    Keeps the state of an authorization request between the client sending
    the user to us and the user granting or denying access.
    """

    class ResponseTypes(models.TextChoices):
        code = "code"
        token = "token"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client_id = models.CharField(max_length=100, db_index=True)
    scope = models.TextField(blank=True, default="")
    redirect_uri = models.TextField()
    state = models.TextField(blank=True, null=True)
    response_type = models.CharField(max_length=20, choices=ResponseTypes.choices)

    created = models.DateTimeField(default=timezone.now)

    # Outcome: which of these is set depends on response_type
    grant_code = models.CharField(max_length=200, blank=True, null=True)
    access_token = models.CharField(max_length=200, blank=True, null=True)
    authorized_at = models.DateTimeField(blank=True, null=True)
    revoked = models.DateTimeField(blank=True, null=True)

    def __str__(self):
        return f"{self.client_id} {self.response_type} {self.scope}"

    @property
    def scopes(self) -> list[str]:
        return scopes.normalize(self.scope)

    @property
    def decided(self) -> bool:
        return self.authorized_at is not None

    @property
    def granted(self) -> bool:
        return bool(self.grant_code or self.access_token)

    @classmethod
    def create(
        cls,
        client,
        scope: ScopeInput,
        redirect_uri: str,
        response_type: str,
        state: str | None,
    ) -> "AuthRequest":
        return cls.objects.create(
            client_id=client.client_id,
            scope=scopes.to_string(scope),
            redirect_uri=redirect_uri,
            response_type=response_type,
            state=state,
        )

    @classmethod
    def find(cls, request_id) -> "AuthRequest | None":
        try:
            request_uuid = uuid.UUID(str(request_id))
        except ValueError:
            return None
        return cls.objects.filter(id=request_uuid).first()

    def _decide(self, **fields) -> bool:
        """
        Records the decision if nobody has decided (or revoked) this request
        yet. Returns True if this call made the decision.
        """
        now = timezone.now()
        updated = AuthRequest.objects.filter(
            id=self.id, authorized_at__isnull=True, revoked__isnull=True
        ).update(authorized_at=now, **fields)
        if updated:
            self.authorized_at = now
            for name, value in fields.items():
                setattr(self, name, value)
        return bool(updated)

    def grant(self, identity: str, grant_ttl: int | None = None, token_ttl: int | None = None) -> bool:
        """
        Grants access to the given identity, creating an access grant (code
        flow) or access token (token flow) for the client.
        """
        from provider.models import AccessGrant, AccessToken, Client

        if not identity:
            raise ValueError("Must supply an identity")
        if self.revoked or self.decided:
            return False
        client = Client.find(self.client_id)
        if client is None:
            return False
        if self.response_type == self.ResponseTypes.code:
            access_grant = AccessGrant.create(
                identity, client, self.scope, self.redirect_uri, grant_ttl
            )
            decided = self._decide(grant_code=access_grant.code)
        else:
            access_token = AccessToken.get_or_create_for(
                identity, client, self.scope, token_ttl
            )
            decided = self._decide(access_token=access_token.token)
        if decided:
            logger.info(
                "Request %s: client %s granted %s",
                self.id,
                self.client_id,
                self.response_type,
            )
        return decided

    def deny(self) -> bool:
        decided = self._decide()
        if decided:
            logger.info("Request %s: client %s denied", self.id, self.client_id)
        return decided
