import enum
from sqlalchemy import Column, DateTime, Enum, Integer, Numeric, String, Text
from settlement.database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)              # doubles as the Paystack reference
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    total = Column(Numeric(12, 2), nullable=False)      # major units
    buyer_email = Column(String)
    payment_message = Column(Text)
    transaction_reference = Column(String)              # set once payment completes
    paid_at = Column(DateTime)
