"""Tests for the startup sequencer: assets, first-run seeding and migrations."""
import json

import pytest
from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command

from apps.checkout import bootstrap
from apps.checkout.bootstrap import (
    PRODUCT_DATA_KEYS,
    BootstrapSequencer,
    BootstrapStage,
    ensure_email_templates,
    load_seed,
    pending_migrations,
    strip_product_data,
)
from apps.checkout.models import Channel, PaymentMethod


def test_strip_product_data_empties_present_catalog_keys_only():
    raw = {"channel": {"code": "c"}, "products": [{"name": "x"}], "facets": {"odd": "shape"}, "assets": []}
    stripped = strip_product_data(raw)
    assert stripped["products"] == [] and stripped["facets"] == [] and stripped["assets"] == []
    assert "collections" not in stripped
    assert stripped["channel"] == {"code": "c"}
    assert raw["products"] == [{"name": "x"}]  # input untouched


def test_bundled_seed_strips_to_no_catalog():
    stripped = strip_product_data(load_seed())
    assert all(not stripped.get(key) for key in PRODUCT_DATA_KEYS)
    assert {m["handler"] for m in stripped["paymentMethods"]} == {"braintree", "paypal", "dummy"}


def test_ensure_email_templates_is_idempotent(tmp_path):
    root = tmp_path / "static"
    assert ensure_email_templates(root) is True
    assert (root / "email" / "templates" / "partials" / "header.html").exists()
    assert (root / "email" / "test-emails").is_dir()
    assert (root / "assets").is_dir()

    custom = root / "email" / "templates" / "partials" / "header.html"
    custom.write_text("customized")
    assert ensure_email_templates(root) is False
    assert custom.read_text() == "customized"


def test_worker_role_only_prepares_assets(tmp_path, monkeypatch):
    def boom(*a, **k):
        raise AssertionError("workers must not touch migrations")

    monkeypatch.setattr(bootstrap, "pending_migrations", boom)
    report = BootstrapSequencer(root=tmp_path).run_worker()
    assert report.stage is BootstrapStage.READY
    assert report.fresh_install is None
    assert (tmp_path / "email" / "templates" / "partials").is_dir()


@pytest.mark.django_db(transaction=True)
def test_existing_database_skips_seed_and_checks_migrations(tmp_path):
    report = BootstrapSequencer(root=tmp_path).run_server()
    assert report.fresh_install is False
    assert report.seeded is False
    assert report.pending_migrations == []
    assert report.stage is BootstrapStage.READY
    assert report.ok


@pytest.mark.django_db(transaction=True)
def test_fresh_install_seeds_minimal_data(tmp_path, settings):
    settings.SUPERADMIN_USERNAME = "root"
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({
        "channel": {"code": "eu", "currencyCode": "EUR", "pricesIncludeTax": True},
        "paymentMethods": [{"code": "paypal", "name": "PayPal", "handler": "paypal"}],
        "products": [{"name": "ignored"}],
    }))

    report = BootstrapSequencer(root=tmp_path, seed_path=seed, probe_table="no_such_table").run_server()

    assert report.fresh_install is True
    assert report.seeded is True
    assert report.stage is BootstrapStage.READY
    channel = Channel.objects.get(code="eu")
    assert channel.currency_code == "EUR" and channel.prices_include_tax is True
    assert PaymentMethod.objects.filter(code="paypal").exists()
    admin = get_user_model().objects.get(username="root")
    # verification is relaxed for the seeded superadmin
    assert admin.is_superuser and admin.is_active


@pytest.mark.django_db(transaction=True)
def test_failed_migrations_do_not_abort_startup(tmp_path, monkeypatch, caplog):
    monkeypatch.setattr(bootstrap, "pending_migrations", lambda connection: ["checkout.0002_future"])

    def failing_migrate():
        raise RuntimeError("lock timeout")

    monkeypatch.setattr(bootstrap, "apply_migrations", failing_migrate)
    report = BootstrapSequencer(root=tmp_path).run_server()

    assert report.stage is BootstrapStage.READY
    assert report.pending_migrations == ["checkout.0002_future"]
    assert report.applied_migrations == []
    assert report.errors == ["migrations: lock timeout"]
    assert any("Failed to run migrations" in r.getMessage() for r in caplog.records)


@pytest.mark.django_db(transaction=True)
def test_failed_seed_is_reported_and_startup_continues(tmp_path, monkeypatch):
    def broken_populate(data, config):
        raise RuntimeError("seed exploded")

    monkeypatch.setattr(bootstrap, "populate", broken_populate)
    report = BootstrapSequencer(root=tmp_path, probe_table="no_such_table").run_server()
    assert report.seeded is False
    assert report.stage is BootstrapStage.READY
    assert report.errors == ["seed: seed exploded"]


@pytest.mark.django_db(transaction=True)
def test_pending_migrations_empty_on_migrated_db():
    assert pending_migrations() == []


@pytest.mark.django_db(transaction=True)
def test_setup_command_and_apply_migrations_command(capsys):
    call_command("setup", "--role", "worker")
    assert "role=worker stage=READY" in capsys.readouterr().out
    call_command("apply_migrations")
    assert "Executed 0 migration(s)." in capsys.readouterr().out


@pytest.mark.django_db(transaction=True)
def test_strict_setup_fails_on_migration_error(monkeypatch):
    monkeypatch.setattr(bootstrap, "pending_migrations", lambda connection: ["checkout.0002_future"])

    def failing_migrate():
        raise RuntimeError("lock timeout")

    monkeypatch.setattr(bootstrap, "apply_migrations", failing_migrate)
    call_command("setup")  # lenient by default
    with pytest.raises(CommandError, match="migrations: lock timeout"):
        call_command("setup", "--strict")
