import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, Boolean, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin


class VoucherType(enum.IntEnum):
    RECEIPT = 1
    PAYMENT = 2
    PURCHASE = 3
    SALES = 4
    CONTRA = 5
    JOURNAL = 6
    EXTENDED_JOURNAL = 7


VOUCHER_TYPE_PREFIXES = {
    VoucherType.RECEIPT: "RV",
    VoucherType.PAYMENT: "PV",
    VoucherType.PURCHASE: "PUV",
    VoucherType.SALES: "SV",
    VoucherType.CONTRA: "CV",
    VoucherType.JOURNAL: "JV",
    VoucherType.EXTENDED_JOURNAL: "EJV",
}

# Voucher types that move money through a cash or bank account
PRIMARY_ACCOUNT_TYPES = (VoucherType.RECEIPT, VoucherType.PAYMENT, VoucherType.CONTRA)


def voucher_code(voucher_type, voucher_no):
    """Display code such as RV-007 for the seventh receipt voucher."""
    return f"{VOUCHER_TYPE_PREFIXES[VoucherType(voucher_type)]}-{voucher_no:03d}"


class Voucher(Base, AuditMixin):
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True, index=True)
    voucher_no = Column(Integer, nullable=False)
    type = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    name = Column(String, nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    coa_account_id = Column(Integer, ForeignKey("coa_accounts.id"), nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    is_post_dated = Column(Boolean, default=False, nullable=False)
    cheque_no = Column(String, nullable=True)
    cheque_date = Column(Date, nullable=True)
    cleared_date = Column(Date, nullable=True)
    is_auto = Column(Boolean, default=False, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    primary_account = relationship("CoaAccount")
    transactions = relationship("VoucherTransaction", back_populates="voucher", order_by="VoucherTransaction.id")

    __table_args__ = (
        CheckConstraint('type BETWEEN 1 AND 7', name='check_voucher_type'),
        Index("ix_vouchers_type", "type"),
    )

    @property
    def voucher_code(self):
        return voucher_code(self.type, self.voucher_no)


class VoucherTransaction(Base, AuditMixin):
    __tablename__ = "voucher_transactions"

    id = Column(Integer, primary_key=True, index=True)
    voucher_id = Column(Integer, ForeignKey("vouchers.id"), nullable=False, index=True)
    coa_account_id = Column(Integer, ForeignKey("coa_accounts.id"), nullable=False)
    debit = Column(Numeric(14, 2), CheckConstraint('debit >= 0'), nullable=False, default=0)
    credit = Column(Numeric(14, 2), CheckConstraint('credit >= 0'), nullable=False, default=0)
    description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    user_id = Column(String, index=True, nullable=False)

    # Relationships
    voucher = relationship("Voucher", back_populates="transactions")
    account = relationship("CoaAccount")

    __table_args__ = (
        CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0) OR (debit = 0 AND credit = 0)',
            name='check_debit_or_credit_exclusive'
        ),
        Index("ix_voucher_transactions_account_date", "coa_account_id", "date"),
    )
