from django.core.management.base import BaseCommand, CommandError
from django.db import connection

from apps.checkout.bootstrap import apply_migrations, pending_migrations


class Command(BaseCommand):
    help = "Apply every pending migration, failing loudly (deploy step)."

    def handle(self, *args, **options):
        try:
            pending = pending_migrations(connection)
            if pending:
                apply_migrations()
        except Exception as e:
            raise CommandError(f"Migrations failed: {e}") from e
        finally:
            connection.close()
        self.stdout.write(f"Executed {len(pending)} migration(s).")
