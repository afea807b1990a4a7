"""Automation sandbox built with FastAPI.

A local stand-in for the external order-automation system. It exposes the
endpoint the storefront's order webhook posts to, records each trigger with
the SQLAlchemy repository in ``repo.TriggersRepo`` and lets a developer report
a fulfillment back to the storefront's intake endpoint.
"""

import hmac
import logging
import os
import time
import uuid
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pythonjsonlogger import jsonlogger
from sqlalchemy import text

from repo import TriggersRepo, engine

app = FastAPI(title="Automation Sandbox")


@app.on_event("startup")
def _startup_db():
    # short active wait until the DB accepts connections
    deadline = time.time() + 30
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            break
        except Exception:
            if time.time() > deadline:
                raise
            time.sleep(1)


logger = logging.getLogger("automation")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(h)
    logger.setLevel(logging.INFO)


def _secret() -> str:
    return os.getenv("AUTOMATION_SECRET_KEY", "change-me")


def _storefront_url() -> str:
    return os.getenv("STOREFRONT_BASE_URL", "http://localhost:3000").rstrip("/")


def _storefront_client() -> httpx.Client:
    return httpx.Client(timeout=float(os.getenv("HTTP_TIMEOUT_SECS", "10")))


class FulfillOrdersIn(BaseModel):
    """Body posted by the storefront's order webhook.

    Attributes:
        order_code: Storefront order code.
        trigger: Order state that triggered the notification.
    """

    model_config = ConfigDict(populate_by_name=True)

    order_code: str = Field(alias="orderCode", min_length=1)
    trigger: str = Field(min_length=1)


class ReportFulfillmentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    method: str = "Automation"
    tracking_code: Optional[str] = Field(default=None, alias="trackingCode")


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/api/fulfill-orders", status_code=202)
def fulfill_orders(req: FulfillOrdersIn, secret: str = Query(default="")):
    """Accept a fulfillment trigger from the storefront.

    Raises:
        HTTPException: 403 when the shared secret does not match.
    """
    if not hmac.compare_digest(secret.encode(), _secret().encode()):
        raise HTTPException(status_code=403, detail="FORBIDDEN")
    trigger_id = TriggersRepo().record(order_code=req.order_code, trigger=req.trigger)
    logger.info("trigger received", extra={"order_code": req.order_code, "trigger": req.trigger})
    return {"accepted": True, "id": trigger_id}


@app.post("/api/orders/{order_code}/fulfill")
def report_fulfillment(order_code: str, req: ReportFulfillmentIn, request: Request):
    """Report a fulfillment for the last trigger received for ``order_code``.

    Calls the storefront's fulfillment intake with the shared secret.

    Raises:
        HTTPException: 404 when no trigger was received for the order; 502
            when the storefront rejects the fulfillment or is unreachable.
    """
    repo = TriggersRepo()
    trigger = repo.latest_for(order_code)
    if trigger is None:
        raise HTTPException(status_code=404, detail="NO_TRIGGER")

    headers = {"X-Automation-Secret": _secret(), "X-Request-ID": request.state.request_id}
    url = f"{_storefront_url()}/api/checkout/orders/{order_code}/fulfillments/"
    try:
        with _storefront_client() as client:
            resp = client.post(url, json=req.model_dump(by_alias=True, exclude_none=True), headers=headers)
    except httpx.HTTPError as e:
        logger.error("storefront unreachable", extra={"order_code": order_code, "error": str(e)})
        raise HTTPException(status_code=502, detail="STOREFRONT_UNAVAILABLE")

    if resp.status_code != 201:
        logger.error("storefront rejected fulfillment", extra={"order_code": order_code, "status": resp.status_code})
        raise HTTPException(status_code=502, detail=f"STOREFRONT_REJECTED_{resp.status_code}")

    repo.mark_fulfilled(trigger.id, req.tracking_code)
    return resp.json()


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = rid
    try:
        response = await call_next(request)
    finally:
        logger.info("request handled", extra={"request_id": rid, "path": request.url.path, "method": request.method})
    response.headers["X-Request-ID"] = rid
    return response
