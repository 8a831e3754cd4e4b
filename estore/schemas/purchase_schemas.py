from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class PurchasedProduct(BaseModel):
    product_id: int
    title: str
    slug: str
    description: str
    preview_image: str
    unit_price: int
    quantity: int
    download_count: int = 0
    last_downloaded_at: Optional[datetime] = None


class PurchaseEntry(BaseModel):
    order_id: int
    external_order_id: str
    total_amount: int
    status: str
    order_date: datetime
    products: List[PurchasedProduct]


class DownloadGrant(BaseModel):
    download_url: str
    title: str
