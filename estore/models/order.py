from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime, timezone

from estore.constants.order_status import OrderStatus
from estore.models.order_line import OrderLine


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    id: Optional[int] = Field(default=None, primary_key=True)

    # shared with the payment gateway and echoed back in callbacks
    external_order_id: str = Field(index=True, unique=True)

    user_id: int = Field(foreign_key="users.id", index=True)
    total_amount: int = Field(ge=0)
    status: str = Field(default=OrderStatus.pending.value, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )

    lines: List["OrderLine"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
