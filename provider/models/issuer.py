from django.db import models


class Issuer(models.Model):
    """
    A third party that issues assertions we accept in exchange for access
    tokens. Signatures are checked against the HMAC secret (HS* algorithms)
    or the RSA public key (RS* algorithms).
    """

    identifier = models.CharField(max_length=500, primary_key=True)
    hmac_secret = models.TextField(blank=True, null=True)
    public_key = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.identifier

    @classmethod
    def create(
        cls,
        identifier: str,
        hmac_secret: str | None = None,
        public_key: str | None = None,
        notes: str | None = None,
    ) -> "Issuer":
        return cls.objects.create(
            identifier=identifier,
            hmac_secret=hmac_secret,
            public_key=public_key,
            notes=notes,
        )

    @classmethod
    def from_identifier(cls, identifier: str | None) -> "Issuer | None":
        if not identifier:
            return None
        return cls.objects.filter(identifier=identifier).first()

    def update(
        self,
        hmac_secret: str | None = None,
        public_key: str | None = None,
        notes: str | None = None,
    ) -> "Issuer":
        # Only given values are changed
        if hmac_secret:
            self.hmac_secret = hmac_secret
        if public_key:
            self.public_key = public_key
        if notes:
            self.notes = notes
        self.save()
        return self
