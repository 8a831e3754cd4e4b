from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estore.models.order import Order


class OrderLine(SQLModel, table=True):
    __tablename__ = "order_items"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", ondelete="CASCADE", index=True)
    product_id: int = Field(foreign_key="products.id", index=True)

    # frozen at checkout time
    product_title: str
    unit_price: int
    quantity: int = 1

    order: Optional["Order"] = Relationship(back_populates="lines")

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity
