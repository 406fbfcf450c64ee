import sys

from django.core.management.base import BaseCommand

from provider.errors import OAuthError
from provider.models import Client


class Command(BaseCommand):
    help = "Registers a new OAuth client, or updates an existing one"

    def add_arguments(self, parser):
        parser.add_argument("display_name", help="Name shown to users")
        parser.add_argument("--link", help="Link to the client's web site")
        parser.add_argument("--image-url", help="Image shown next to the name")
        parser.add_argument(
            "--redirect-uri",
            help="Registered redirect URI (any URI is accepted if left out)",
        )
        parser.add_argument(
            "--scope", help="Space-separated scope the client may use"
        )
        parser.add_argument("--notes")
        parser.add_argument(
            "--update",
            action="store_true",
            help="Update the client with this name, id or link instead",
        )

    def handle(self, display_name: str, update: bool, *args, **options):
        fields = {
            "link": options["link"],
            "image_url": options["image_url"],
            "redirect_uri": options["redirect_uri"],
            "scope": options["scope"],
            "notes": options["notes"],
        }
        try:
            if update:
                client = Client.lookup(display_name)
                if client is None:
                    self.stderr.write(f"No client matches {display_name!r}")
                    sys.exit(1)
                client.update(**fields)
            else:
                client = Client.create(display_name=display_name, **fields)
        except OAuthError as error:
            self.stderr.write(error.message)
            sys.exit(1)
        self.stdout.write(f"Client ID:     {client.client_id}")
        self.stdout.write(f"Client secret: {client.secret}")
        self.stdout.write(f"Scope:         {client.scope}")
