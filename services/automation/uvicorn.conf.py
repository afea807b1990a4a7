import os

host = "0.0.0.0"
port = int(os.getenv("PORT", "3002"))
workers = int(os.getenv("UVICORN_WORKERS", "1"))
http = "h11"
log_level = os.getenv("LOG_LEVEL", "info")
