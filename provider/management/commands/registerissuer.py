from django.core.management.base import BaseCommand

from provider.models import Issuer


class Command(BaseCommand):
    help = "Registers (or updates) an assertion issuer"

    def add_arguments(self, parser):
        parser.add_argument("identifier", help="The issuer's iss claim value")
        parser.add_argument("--hmac-secret", help="Shared secret for HS* assertions")
        parser.add_argument(
            "--public-key-file", help="PEM file with the RSA key for RS* assertions"
        )
        parser.add_argument("--notes")

    def handle(self, identifier: str, *args, **options):
        public_key = None
        if options["public_key_file"]:
            with open(options["public_key_file"]) as fh:
                public_key = fh.read()
        issuer = Issuer.from_identifier(identifier)
        if issuer:
            issuer.update(
                hmac_secret=options["hmac_secret"],
                public_key=public_key,
                notes=options["notes"],
            )
            self.stdout.write(f"Updated issuer {identifier}")
        else:
            Issuer.create(
                identifier,
                hmac_secret=options["hmac_secret"],
                public_key=public_key,
                notes=options["notes"],
            )
            self.stdout.write(f"Registered issuer {identifier}")
