import html
import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from settlement.auth import verify_token
from settlement.checkout import PaymentInitiator
from settlement.config import GatewaySettings
from settlement.database import SessionLocal
from settlement.errors import GatewayUnavailable, OrderNotFound
from settlement.orders import SqlOrderGateway
from settlement.paystack_client import PaystackClient
from settlement.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter()


class CheckoutRequest(BaseModel):
    email: Optional[str] = None


@lru_cache
def get_settings() -> GatewaySettings:
    # read once at startup
    return GatewaySettings.from_env()


def get_paystack_client(settings: GatewaySettings = Depends(get_settings)) -> PaystackClient:
    return PaystackClient(settings)


def get_order_gateway() -> SqlOrderGateway:
    return SqlOrderGateway(SessionLocal)


def get_reconciliation_service(
    client=Depends(get_paystack_client),
    gateway=Depends(get_order_gateway),
) -> ReconciliationService:
    return ReconciliationService(client, gateway)


def get_payment_initiator(
    settings: GatewaySettings = Depends(get_settings),
    client=Depends(get_paystack_client),
    gateway=Depends(get_order_gateway),
) -> PaymentInitiator:
    return PaymentInitiator(client, gateway, settings.site_url)


async def _webhook_reference(request: Request) -> Optional[str]:
    reference = request.query_params.get("reference")
    if reference:
        return reference
    # Paystack's event envelope carries the reference in data.reference
    try:
        payload = await request.json()
    except ValueError:
        return None
    data = payload.get("data") if isinstance(payload, dict) else None
    if isinstance(data, dict) and data.get("reference") is not None:
        return str(data["reference"])
    return None


@router.api_route("/webhooks/paystack", methods=["GET", "POST"], response_class=PlainTextResponse)
async def paystack_webhook(
    request: Request,
    settings: GatewaySettings = Depends(get_settings),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    if not settings.is_available():
        return PlainTextResponse("Payment gateway unavailable", status_code=503)

    reference = (await _webhook_reference(request) or "").strip()
    if not reference:
        return PlainTextResponse("Missing reference", status_code=400)
    if not (reference.isascii() and reference.isdigit()):
        return PlainTextResponse("Invalid reference", status_code=400)

    try:
        result = await run_in_threadpool(service.on_webhook_notified, reference)
    except OrderNotFound:
        return PlainTextResponse("Order not found", status_code=404)
    except GatewayUnavailable:
        return PlainTextResponse("Payment gateway unavailable", status_code=503)

    return PlainTextResponse(result.body, status_code=result.status_code)


def render_confirmation(profile_url: str) -> str:
    return (
        '<div><div class="status">'
        "<span>Payment Status</span>"
        "<span>Confirmed</span>"
        '</div><div class="cta">'
        f'<a class="button" href="{html.escape(profile_url)}">'
        "Go to Courses</a></div></div>"
    )


@router.get("/orders/{order_id}/received", response_class=HTMLResponse)
def order_received(
    order_id: int,
    settings: GatewaySettings = Depends(get_settings),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    if not settings.is_available():
        return HTMLResponse("")

    try:
        confirmed = service.on_buyer_returned(order_id)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except GatewayUnavailable:
        confirmed = False

    return HTMLResponse(render_confirmation(settings.profile_url) if confirmed else "")


@router.post("/checkout/{order_id}")
def checkout(
    order_id: int,
    body: Optional[CheckoutRequest] = None,
    settings: GatewaySettings = Depends(get_settings),
    initiator: PaymentInitiator = Depends(get_payment_initiator),
    auth=Depends(verify_token),
):
    if not settings.is_available():
        raise HTTPException(status_code=503, detail="Payment gateway unavailable")

    return initiator.process_payment(order_id, body.email if body else None)


@router.get("/health")
def health(settings: GatewaySettings = Depends(get_settings)):
    return {"status": "ok", "gateway_available": settings.is_available()}
