"""Mock card approval provider speaking the encrypted test-provider protocol"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pg_gateway.config import settings
from pg_gateway.infrastructure.clients.base import approval_time, generate_approval_code
from pg_gateway.infrastructure.clients.simulator import evaluate_test_card
from pg_gateway.infrastructure.crypto.cipher import PayloadCipher, PayloadCipherError

app = FastAPI(title="Mock Approval Server", version="1.0.0")
cipher = PayloadCipher()


class EncryptedEnvelope(BaseModel):
    enc: str


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/api/v1/pay/credit-card")
def approve(envelope: EncryptedEnvelope, api_key: Optional[str] = Header(None, alias="API-KEY")):
    if not api_key or api_key != settings.approval_api_key:
        raise HTTPException(status_code=401)

    try:
        payload = json.loads(cipher.decrypt(envelope.enc, api_key, settings.approval_api_iv))
        parts = payload["cardNumber"].split("-")
        amount = Decimal(str(payload["amount"]))
    except (PayloadCipherError, ValueError, KeyError, TypeError, AttributeError, InvalidOperation):
        raise HTTPException(status_code=400, detail="malformed payload")

    if len(parts) != 4 or parts[:2] != parts[2:]:
        raise HTTPException(status_code=400, detail="Invalid card number.")

    card_bin, card_last4 = parts[0], parts[1]
    failure = evaluate_test_card(card_bin, card_last4, amount)
    if failure is not None:
        if failure.error is None:
            raise HTTPException(status_code=400, detail=failure.message)
        logging.info("Mock decline", extra={"error_code": failure.error.error_code})
        return JSONResponse(
            status_code=422,
            content={
                "code": failure.error.code,
                "errorCode": failure.error.error_code,
                "message": failure.error.message,
                "referenceId": failure.error.reference_id,
            },
        )

    return {
        "approvalCode": generate_approval_code(),
        "approvedAt": approval_time().isoformat(),
        "maskedCardLast4": card_last4,
        "amount": int(amount),
        "status": "APPROVED",
    }
