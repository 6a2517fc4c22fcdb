from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from users.models import User


class Command(BaseCommand):
    help = "Create the bootstrap admin account from DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD."

    def add_arguments(self, parser):
        parser.add_argument("--email", default=None)
        parser.add_argument("--password", default=None)
        parser.add_argument("--username", default="admin")

    def handle(self, *args, **options):
        email = (options["email"] or settings.DEFAULT_ADMIN_EMAIL).strip().lower()
        password = options["password"] or settings.DEFAULT_ADMIN_PASSWORD
        if not password:
            raise CommandError("DEFAULT_ADMIN_PASSWORD is not set (or pass --password).")

        if User.objects.filter(email=email).exists():
            raise CommandError(f"Admin user already exists with email: {email}")
        if User.objects.filter(username__iexact=options["username"]).exists():
            raise CommandError(f"Username already taken: {options['username']}")

        admin = User.objects.create_admin(
            options["username"],
            email,
            password,
            first_name="System",
            last_name="Administrator",
            bio="System administrator account",
        )
        self.stdout.write(self.style.SUCCESS(f"Admin user created: {admin.username} <{admin.email}>"))
        self.stdout.write(self.style.WARNING("Change the password after first login."))
