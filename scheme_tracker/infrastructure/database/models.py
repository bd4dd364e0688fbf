"""SQLAlchemy ORM models for schemes and their payment rows"""

from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Date, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class SchemeRecord(Base):
    """Customer enrollment in a monthly payment scheme"""

    __tablename__ = "scheme"

    id = Column(String(64), primary_key=True)
    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=True)
    customer_address = Column(Text, nullable=True)
    customer_group_name = Column(Text, nullable=True, index=True)
    start_date = Column(Date, nullable=False)
    monthly_amount_cents = Column(BigInteger, nullable=False)
    duration_months = Column(Integer, nullable=False, default=12)
    closure_date = Column(Date, nullable=True)
    archived_date = Column(Date, nullable=True)

    # Display cache, recomputed by the status engine on every write
    status = Column(Text, nullable=False, default="Upcoming")
    total_collected_cents = Column(BigInteger, nullable=False, default=0)
    total_remaining_cents = Column(BigInteger, nullable=False, default=0)
    payments_made_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payments = relationship(
        "PaymentRecord",
        back_populates="scheme",
        cascade="all, delete-orphan",
        order_by="PaymentRecord.month_number",
    )


class PaymentRecord(Base):
    """One monthly installment of a scheme"""

    __tablename__ = "payment"

    id = Column(String(96), primary_key=True)
    scheme_id = Column(String(64), ForeignKey("scheme.id", ondelete="CASCADE"), nullable=False, index=True)
    month_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    amount_expected_cents = Column(BigInteger, nullable=False)
    amount_paid_cents = Column(BigInteger, nullable=True)
    payment_date = Column(Date, nullable=True)
    mode_of_payment = Column(JSON, nullable=True)  # list of PaymentMode values
    status = Column(Text, nullable=False, default="Upcoming")
    is_archived = Column(Boolean, nullable=False, default=False)
    archived_date = Column(Date, nullable=True)

    scheme = relationship("SchemeRecord", back_populates="payments")
