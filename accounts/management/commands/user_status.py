"""
Management command to activate or deactivate a dashboard account by email.

Usage:
    python manage.py user_status jane@example.com deactivate
    python manage.py user_status jane@example.com activate
"""
from django.core.management.base import BaseCommand, CommandError
from accounts.models import User


class Command(BaseCommand):
    help = 'Activate or deactivate a user by email. Actions: activate, deactivate'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Email address of the account')
        parser.add_argument(
            'action',
            type=str,
            choices=['activate', 'deactivate'],
            help='activate or deactivate',
        )

    def handle(self, *args, **options):
        email = options['email']
        action = options['action']

        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise CommandError(f"User with email '{email}' not found.")

        if action == 'deactivate':
            if user.is_deactivated:
                self.stdout.write(self.style.WARNING(f"User '{email}' is already deactivated."))
                return
            user.deactivate()
            self.stdout.write(self.style.SUCCESS(f"User '{email}' has been deactivated."))
        else:
            if not user.is_deactivated and user.is_active:
                self.stdout.write(self.style.WARNING(f"User '{email}' is already active."))
                return
            user.restore()
            self.stdout.write(self.style.SUCCESS(f"User '{email}' has been activated."))
