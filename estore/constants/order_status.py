from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    cancelled = "cancelled"


# Transitions a gateway callback may apply. A captured payment outranks an
# earlier cancel/expire, a paid order is never cancelled by a late callback.
ALLOWED_TRANSITIONS = {
    "pending": ["paid", "cancelled"],
    "cancelled": ["paid"],
    "paid": [],
}


def sources_for(target: str):
    return [
        source
        for source, targets in ALLOWED_TRANSITIONS.items()
        if target in targets
    ]
