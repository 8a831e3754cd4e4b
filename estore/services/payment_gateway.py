import base64
import logging
from typing import Any, Dict, Optional

import requests

from estore.config import settings
from estore.errors import GatewayUnavailable
from estore.models.order import Order
from estore.models.user import User
from estore.schemas.checkout_schemas import CustomerDetails

logger = logging.getLogger(__name__)


class MidtransGateway:
    """Snap transaction creation. Callbacks arrive through the notification route."""

    def __init__(self, server_key: str, base_url: str, timeout: float = 10.0):
        self.server_key = server_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        auth = base64.b64encode(f"{self.server_key}:".encode()).decode()
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Basic {auth}",
        }

    def build_payload(
        self, order: Order, user: User, customer: Optional[CustomerDetails] = None
    ) -> Dict[str, Any]:
        if customer is None:
            customer = CustomerDetails(first_name=user.name, email=user.email)

        return {
            "transaction_details": {
                "order_id": order.external_order_id,
                "gross_amount": order.total_amount,
            },
            "item_details": [
                {
                    "id": str(line.product_id),
                    "price": line.unit_price,
                    "quantity": line.quantity,
                    "name": line.product_title[:50],
                }
                for line in order.lines
            ],
            "customer_details": customer.model_dump(exclude_none=True),
        }

    def create_transaction(
        self, order: Order, user: User, customer: Optional[CustomerDetails] = None
    ) -> Dict[str, str]:
        payload = self.build_payload(order, user, customer)

        try:
            response = requests.post(
                f"{self.base_url}/snap/v1/transactions",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Midtrans request failed for {order.external_order_id}: {e}")
            raise GatewayUnavailable("Failed to create transaction") from e

        if response.status_code >= 300:
            logger.error(
                f"Midtrans error for {order.external_order_id}: "
                f"{response.status_code} {response.text}"
            )
            raise GatewayUnavailable("Failed to create transaction")

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayUnavailable("Failed to create transaction") from e

        if "token" not in data:
            logger.error(f"Midtrans response without token for {order.external_order_id}: {data}")
            raise GatewayUnavailable("Failed to create transaction")

        logger.info(f"Midtrans transaction created for {order.external_order_id}")
        return {"token": data["token"], "redirect_url": data.get("redirect_url", "")}


def get_payment_gateway() -> MidtransGateway:
    return MidtransGateway(
        server_key=settings.MIDTRANS_SERVER_KEY,
        base_url=settings.snap_base_url,
        timeout=settings.MIDTRANS_TIMEOUT_SECONDS,
    )
