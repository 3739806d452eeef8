from django.core.management.base import BaseCommand, CommandError

from core.models import Account, normalize_email


class Command(BaseCommand):
    help = "Grant the admin role to an existing account, looked up by subject or email."

    def add_arguments(self, parser):
        parser.add_argument("identifier", help="Account id (identity subject) or email.")

    def handle(self, *args, **options):
        identifier = options["identifier"].strip()
        account = Account.objects.filter(pk=identifier).first()
        if account is None:
            matches = Account.objects.filter(email=normalize_email(identifier))
            if matches.count() > 1:
                raise CommandError(f"More than one account uses {identifier}; pass the account id instead.")
            account = matches.first()
        if account is None:
            raise CommandError(f"No account found for {identifier}.")

        account.role = Account.ROLE_ADMIN
        account.is_active = True
        account.save(update_fields=["role", "is_active", "updated_at"])
        self.stdout.write(self.style.SUCCESS(f"{account.email} ({account.id}) is now an admin."))
