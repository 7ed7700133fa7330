"""SQLAlchemy ORM models for partners, fee policies and the payment ledger"""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY
Identifier = BigInteger().with_variant(Integer, "sqlite")


class PartnerRecord(Base):
    """Affiliated partner (maintained by administration tooling)"""

    __tablename__ = "partner"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class FeePolicyRecord(Base):
    """Partner fee terms, effective from a point in time"""

    __tablename__ = "partner_fee_policy"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    partner_id = Column(Identifier, ForeignKey("partner.id", ondelete="CASCADE"), nullable=False)
    effective_from = Column(DateTime(timezone=True), nullable=False)
    percentage = Column(Numeric(10, 6), nullable=False)
    fixed_fee = Column(Numeric(15, 2), nullable=False, default=0)

    __table_args__ = (
        Index("idx_fee_policy_partner_effective", "partner_id", "effective_from"),
    )


class PaymentRecord(Base):
    """Approved card payment ledger entry"""

    __tablename__ = "payment"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    partner_id = Column(Identifier, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    applied_fee_rate = Column(Numeric(10, 6), nullable=False)
    fee_amount = Column(Numeric(15, 2), nullable=False)
    net_amount = Column(Numeric(15, 2), nullable=False)
    card_bin = Column(String(8), nullable=True)
    card_last4 = Column(String(4), nullable=True)
    approval_code = Column(String(32), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=False)
    approved_by = Column(String(32), nullable=False, default="")
    simulated = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # Cursor pagination key: (created_at desc, id desc)
        Index("idx_payment_created_id", "created_at", "id"),
        Index("idx_payment_partner_created", "partner_id", "created_at"),
    )
