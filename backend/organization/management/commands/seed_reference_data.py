"""
Management command: seed_reference_data
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with one **Unit** per reporting office (SPKT) and,
optionally, an Admin account.

The command is **idempotent** — safe to run multiple times.  Existing
units are left untouched; an existing admin username is not modified.

Usage::

    python manage.py seed_reference_data
    python manage.py seed_reference_data --admin-email admin@polresta.local --admin-password '...'

Prerequisites::

    python manage.py migrate
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import UserRole
from organization.models import Unit
from reports.cache import ReportSnapshotCache
from reports.models import SPKT


class Command(BaseCommand):
    help = "Create the SPKT-aligned units and an optional Admin account (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--admin-email", help="Email of the Admin account to create.")
        parser.add_argument("--admin-password", help="Password of the Admin account.")

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for label in SPKT.labels:
            _, was_created = Unit.objects.get_or_create(name=label)
            if was_created:
                created += 1
                self.stdout.write(f"  + Unit {label}")
        self.stdout.write(self.style.SUCCESS(
            f"Units: {created} created, {len(SPKT.labels) - created} already present."
        ))

        email = options.get("admin_email")
        password = options.get("admin_password")
        if email or password:
            if not (email and password):
                raise CommandError("--admin-email and --admin-password must be given together.")
            self._ensure_admin(email, password)

        ReportSnapshotCache.invalidate_all()

    def _ensure_admin(self, email: str, password: str) -> None:
        User = get_user_model()
        username = email.split("@", 1)[0]
        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(f"Admin {email} already exists.")
            return
        User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=UserRole.ADMIN,
            is_staff=True,
        )
        self.stdout.write(self.style.SUCCESS(f"Admin {email} created."))
