from django.core.management.base import BaseCommand, CommandError

from apps.checkout.bootstrap import BootstrapSequencer
from apps.checkout.errors import BootstrapError


class Command(BaseCommand):
    help = "Prepare static assets, seed a fresh database and apply pending migrations."

    def add_arguments(self, parser):
        parser.add_argument("--role", choices=["server", "worker"], default="server")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit non-zero when seeding or migrations failed.",
        )

    def handle(self, *args, **options):
        sequencer = BootstrapSequencer()
        if options["role"] == "worker":
            report = sequencer.run_worker()
        else:
            report = sequencer.run_server()

        self.stdout.write(
            f"[setup] role={report.role} stage={report.stage.value} "
            f"fresh={report.fresh_install} applied={len(report.applied_migrations)}"
        )
        for error in report.errors:
            # startup goes on; the schema may be stale
            self.stderr.write(f"[setup] {error}")

        if options["strict"]:
            try:
                report.raise_for_errors()
            except BootstrapError as e:
                raise CommandError(str(e)) from e
