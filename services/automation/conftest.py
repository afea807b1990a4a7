# The sandbox modules read DATABASE_URL at import time: point them at a throwaway SQLite file.
import os
import tempfile

os.environ["DATABASE_URL"] = f"sqlite:///{tempfile.mkdtemp()}/automation.db"
