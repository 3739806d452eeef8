from django.core.management.base import BaseCommand

from core.identity import issue_identity_token


class Command(BaseCommand):
    help = "Print a signed identity token for local development and API testing."

    def add_arguments(self, parser):
        parser.add_argument("subject", help="Identity subject; becomes the Account id.")
        parser.add_argument("email")
        parser.add_argument("--name", default="", help="Display name claim.")

    def handle(self, *args, **options):
        token = issue_identity_token(options["subject"], options["email"], options["name"])
        self.stdout.write(token)
