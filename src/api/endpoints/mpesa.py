import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from src.api.dependencies import get_relay_service
from src.integrations.policy.relay_service import RelayService

logger = logging.getLogger(__name__)

router = APIRouter()
mpesa_api = router


@router.post("/stkpush", tags=["M-Pesa"])
async def stk_push(request: Request, relay: RelayService = Depends(get_relay_service)):
    """
    Send an STK push prompt to the customer's phone.
    Returns Daraja's acknowledgment body as-is.
    """
    try:
        payload: Dict[str, Any] = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    return await relay.initiate_payment(payload.get("phone"), payload.get("amount"))


@router.post("/callback", tags=["M-Pesa"])
async def mpesa_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    relay: RelayService = Depends(get_relay_service),
):
    """
    Daraja result callback.
    Acknowledged immediately; the record is written after the response is sent.
    """
    body = await request.body()
    return relay.ingest_callback(body, background_tasks.add_task)


@router.get("/check-payment", tags=["M-Pesa"])
async def check_payment(
    phone: Optional[str] = Query(default=None, description="Phone in 2547XXXXXXXX format"),
    relay: RelayService = Depends(get_relay_service),
):
    return await relay.check_status(phone)
