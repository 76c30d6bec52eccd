from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base
import enum

from app.config import APPLICATION_TABLE

Base = declarative_base()

class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"

class GatewayOrderStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"

class ApplicationEntry(Base):
    # Owned by the application form; this service only writes the payment columns
    __tablename__ = APPLICATION_TABLE

    id = Column(String, primary_key=True, index=True)
    payment_order_id = Column(String, index=True, nullable=True)
    payment_amount = Column(String, nullable=True) # Decimal kept as text, e.g. "30.0"
    payment_status = Column(String, nullable=True) # PENDING, COMPLETE, FAILED
