from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class DownloadRecord(SQLModel, table=True):
    __tablename__ = "downloads"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", "order_id", name="uq_download_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    product_id: int = Field(foreign_key="products.id")
    order_id: int = Field(foreign_key="orders.id")

    download_count: int = Field(default=0, ge=0)
    last_downloaded_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)
    )
