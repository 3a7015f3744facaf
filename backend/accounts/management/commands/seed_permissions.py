# accounts/management/commands/seed_permissions.py


from django.core.management.base import BaseCommand
from accounts.permissions import seed_role_groups


class Command(BaseCommand):
    help = "Seed role groups (CONTROLLER, BOOKKEEPER, VIEWER) with ledger permissions"

    def add_arguments(self, parser):
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Drop permissions that are no longer role defaults.",
        )

    def handle(self, *args, **options):
        counts = seed_role_groups(overwrite=options["overwrite"])
        for role, count in counts.items():
            self.stdout.write(f"{role}: {count} permissions")

        self.stdout.write(self.style.SUCCESS(f"Done! Seeded {len(counts)} roles."))
