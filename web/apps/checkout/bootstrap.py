"""Startup sequencing: static assets, first-run seeding and migrations.

``BootstrapSequencer.run_server`` runs once per server process before it
accepts traffic:

1. Ensure the static directory layout and email templates exist.
2. Probe the database: a missing core table (or a failing probe) means a
   fresh install.
3. Fresh install only: create the schema and seed minimal data (channel,
   payment methods, superadmin) from the bundled payload, with catalog data
   stripped and the verification requirement relaxed for the seed.
4. Always: list pending migrations, apply them and close the connection.

Seed and migration failures are logged and recorded on the report, but do
not stop startup. Workers only run step 1.
"""

import json
import logging
import shutil
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import DatabaseError, connection as default_connection, transaction
from django.db.migrations.executor import MigrationExecutor

from .errors import BootstrapError
from .models import Channel, PaymentMethod

logger = logging.getLogger(__name__)

APP_DIR = Path(__file__).resolve().parent
BUNDLED_TEMPLATES_DIR = APP_DIR / "email_templates"
SEED_PATH = APP_DIR / "seed" / "initial_data.json"

PRODUCT_DATA_KEYS = ("products", "productVariants", "collections", "facets", "assets", "assetPaths")


class BootstrapStage(str, Enum):
    NOT_PROBED = "NOT_PROBED"
    PROBED = "PROBED"
    SEEDED = "SEEDED"
    MIGRATIONS_CHECKED = "MIGRATIONS_CHECKED"
    READY = "READY"


@dataclass(frozen=True)
class PopulateConfig:
    """Options of the schema creation + seed run.

    Attributes:
        require_verification: Whether seeded accounts must verify before
            they can sign in.
        synchronize: Create the schema before seeding.
    """

    require_verification: bool = True
    synchronize: bool = False


@dataclass
class BootstrapReport:
    role: str
    stage: BootstrapStage = BootstrapStage.NOT_PROBED
    fresh_install: Optional[bool] = None
    seeded: bool = False
    templates_copied: bool = False
    pending_migrations: list[str] = field(default_factory=list)
    applied_migrations: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise BootstrapError("; ".join(self.errors))


# ---------------- Static assets ---------------- #

def static_root() -> Path:
    return Path(getattr(settings, "STATIC_ROOT_DIR", Path.cwd() / "static"))


def create_directory_structure(root: Path) -> None:
    for sub in (("email", "test-emails"), ("email", "templates"), ("assets",)):
        root.joinpath(*sub).mkdir(parents=True, exist_ok=True)


def ensure_email_templates(root: Optional[Path] = None) -> bool:
    """Create the static layout and copy email templates when missing.

    Returns:
        bool: True when the bundled templates were copied.
    """
    root = root or static_root()
    create_directory_structure(root)
    template_dir = root / "email" / "templates"
    if (template_dir / "partials").exists():
        return False
    shutil.copytree(BUNDLED_TEMPLATES_DIR, template_dir, dirs_exist_ok=True)
    logger.info("Copied email templates to %s", template_dir)
    return True


# ---------------- Seed data ---------------- #

def load_seed(path: Path = SEED_PATH) -> dict[str, Any]:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def strip_product_data(initial_data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the seed payload without catalog data.

    Every catalog key present in the payload is replaced with an empty list;
    absent keys stay absent.
    """
    clone = dict(initial_data)
    for key in PRODUCT_DATA_KEYS:
        if key in clone:
            clone[key] = []
    return clone


def populate(initial_data: dict[str, Any], config: PopulateConfig) -> None:
    """Seed channel, payment methods and the superadmin in one transaction."""
    catalog = [k for k in PRODUCT_DATA_KEYS if initial_data.get(k)]
    if catalog:
        logger.warning("Ignoring catalog seed data: %s", ", ".join(catalog))

    with transaction.atomic():
        channel = initial_data.get("channel") or {}
        if channel:
            Channel.objects.update_or_create(
                code=channel["code"],
                defaults={
                    "currency_code": channel.get("currencyCode", "USD"),
                    "prices_include_tax": bool(channel.get("pricesIncludeTax", False)),
                },
            )
        for method in initial_data.get("paymentMethods") or []:
            PaymentMethod.objects.update_or_create(
                code=method["code"],
                defaults={"name": method.get("name", method["code"]), "handler": method["handler"]},
            )

        User = get_user_model()
        username = getattr(settings, "SUPERADMIN_USERNAME", "superadmin")
        if not User.objects.filter(username=username).exists():
            User.objects.create_superuser(
                username=username,
                email=None,
                password=getattr(settings, "SUPERADMIN_PASSWORD", "superadmin"),
                is_active=not config.require_verification,
            )


# ---------------- Migrations ---------------- #

def pending_migrations(connection=default_connection) -> list[str]:
    """Names (``app.migration``) of the migrations not yet applied."""
    executor = MigrationExecutor(connection)
    plan = executor.migration_plan(executor.loader.graph.leaf_nodes())
    return [f"{migration.app_label}.{migration.name}" for migration, backwards in plan if not backwards]


def apply_migrations() -> None:
    call_command("migrate", interactive=False, verbosity=0)


# ---------------- Sequencer ---------------- #

class BootstrapSequencer:
    """One-shot startup sequence for server and worker processes.

    The database connection is owned by the sequencer for the duration of
    the run and closed before it returns.
    """

    def __init__(
        self,
        connection=None,
        root: Optional[Path] = None,
        seed_path: Path = SEED_PATH,
        probe_table: Optional[str] = None,
    ):
        self.connection = connection or default_connection
        self.root = root or static_root()
        self.seed_path = seed_path
        self.probe_table = probe_table or getattr(settings, "BOOTSTRAP_PROBE_TABLE", "checkout_channel")
        self.config = PopulateConfig(require_verification=getattr(settings, "REQUIRE_VERIFICATION", True))

    def run_worker(self) -> BootstrapReport:
        report = BootstrapReport(role="worker")
        report.templates_copied = ensure_email_templates(self.root)
        report.stage = BootstrapStage.READY
        return report

    def run_server(self) -> BootstrapReport:
        report = BootstrapReport(role="server")
        report.templates_copied = ensure_email_templates(self.root)

        report.fresh_install = self.is_initial_run()
        report.stage = BootstrapStage.PROBED
        logger.info("Bootstrap probe done", extra={"fresh_install": report.fresh_install})

        if report.fresh_install:
            logger.info("Initial run - creating core schema and seeding minimal data")
            try:
                self.initial_setup()
            except Exception as e:
                logger.exception("Initial setup failed")
                report.errors.append(f"seed: {e}")
            else:
                report.seeded = True
                report.stage = BootstrapStage.SEEDED

        self.run_pending_migrations(report)
        report.stage = BootstrapStage.READY
        return report

    def is_initial_run(self) -> bool:
        """True when the core table is missing or the probe fails."""
        try:
            return self.probe_table not in self.connection.introspection.table_names()
        except DatabaseError as e:
            logger.warning("Database probe failed, assuming initial run: %s", e)
            return True
        finally:
            self.connection.close()

    def initial_setup(self) -> None:
        populate_config = replace(self.config, require_verification=False, synchronize=True)
        if populate_config.synchronize:
            apply_migrations()
        populate(strip_product_data(load_seed(self.seed_path)), populate_config)
        logger.info("Core schema created")

    def run_pending_migrations(self, report: BootstrapReport) -> None:
        """Apply pending migrations; failures are logged, never raised.

        Startup continues after a failure, so the server may run against a
        stale schema. The error is kept on the report for the caller.
        """
        logger.info("Checking and running migrations if needed")
        try:
            report.pending_migrations = pending_migrations(self.connection)
            logger.info("Pending migrations: %s", "yes" if report.pending_migrations else "no")
            if report.pending_migrations:
                apply_migrations()
                report.applied_migrations = list(report.pending_migrations)
                logger.info("Migrations applied", extra={"count": len(report.applied_migrations)})
        except Exception as e:
            logger.exception("Failed to run migrations")
            report.errors.append(f"migrations: {e}")
        finally:
            self.connection.close()
        report.stage = BootstrapStage.MIGRATIONS_CHECKED
