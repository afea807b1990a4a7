from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.checkout.bootstrap import pending_migrations


def health_view(_request):
    """Liveness probe: database reachable and schema up to date.

    Pending migrations do not fail the probe (startup tolerates a failed
    migration run), they are reported so operators can see a stale schema.
    """
    db_ok = False
    pending: list[str] = []
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
        pending = pending_migrations(connection)
    except DatabaseError:
        db_ok = False

    code = 200 if db_ok else 503
    return JsonResponse(
        {
            "ok": db_ok,
            "components": {
                "db": {"ok": db_ok},
                "migrations": {"ok": not pending, "pending": pending},
            },
        },
        status=code,
    )
