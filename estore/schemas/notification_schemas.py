# estore/schemas/notification_schemas.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, field_validator


class TransactionStatus(str, Enum):
    capture = "capture"
    settlement = "settlement"
    pending = "pending"
    cancel = "cancel"
    deny = "deny"
    expire = "expire"


@dataclass(frozen=True)
class Unrecognized:
    raw: str


GatewayStatus = Union[TransactionStatus, Unrecognized]


def parse_transaction_status(raw: str) -> GatewayStatus:
    # exact, case-sensitive match on the gateway's vocabulary
    try:
        return TransactionStatus(raw)
    except ValueError:
        return Unrecognized(raw)


class GatewayNotification(BaseModel):
    """Inbound payment-gateway callback body."""

    order_id: str
    transaction_status: str
    gross_amount: str
    signature_key: str
    fraud_status: Optional[str] = None
    status_code: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_type: Optional[str] = None

    @field_validator("gross_amount", mode="before")
    @classmethod
    def keep_amount_as_sent(cls, value):
        # the signature is computed over the amount text exactly as the gateway
        # sent it; a JSON float has already lost that text ("100000.00" -> 100000.0)
        if isinstance(value, (bool, float)):
            raise ValueError("must be sent as a string, e.g. \"100000.00\"")
        if isinstance(value, int):
            return str(value)
        return value
