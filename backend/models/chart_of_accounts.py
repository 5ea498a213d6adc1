import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class GroupParent(str, enum.Enum):
    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    CAPITAL = "Capital"
    REVENUES = "Revenues"
    EXPENSES = "Expenses"
    COST = "Cost"


# Sub-group types that drive the cash/bank account selectors
CASH_TYPE = "cash"
BANK_TYPE = "bank"
CASH_AND_BANK_TYPES = (CASH_TYPE, BANK_TYPE)


class CoaGroup(Base, TimestampMixin):
    __tablename__ = "coa_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, index=True)
    parent = Column(String(20), nullable=False)  # Assets, Liabilities, Capital, Revenues, Expenses, Cost
    is_active = Column(Boolean, default=True, nullable=False)
    user_id = Column(String, index=True, nullable=True)  # NULL = shared by every tenant

    sub_groups = relationship("CoaSubGroup", back_populates="group", order_by="CoaSubGroup.code")


class CoaSubGroup(Base, TimestampMixin):
    __tablename__ = "coa_sub_groups"

    id = Column(Integer, primary_key=True, index=True)
    coa_group_id = Column(Integer, ForeignKey("coa_groups.id"), nullable=False)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False)
    type = Column(String(30), nullable=True)  # 'cash' and 'bank' are reserved
    is_active = Column(Boolean, default=True, nullable=False)
    user_id = Column(String, index=True, nullable=True)

    group = relationship("CoaGroup", back_populates="sub_groups")
    accounts = relationship("CoaAccount", back_populates="sub_group", order_by="CoaAccount.code")

    __table_args__ = (
        Index("ix_coa_sub_groups_coa_group_id", "coa_group_id"),
    )


class CoaAccount(Base, TimestampMixin):
    __tablename__ = "coa_accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, index=True)
    coa_group_id = Column(Integer, ForeignKey("coa_groups.id"), nullable=False)
    coa_sub_group_id = Column(Integer, ForeignKey("coa_sub_groups.id"), nullable=False)
    person_id = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    user_id = Column(String, index=True, nullable=True)

    group = relationship("CoaGroup")
    sub_group = relationship("CoaSubGroup", back_populates="accounts")

    __table_args__ = (
        UniqueConstraint('user_id', 'code', name='_owner_account_code_uc'),
        Index("ix_coa_accounts_coa_sub_group_id", "coa_sub_group_id"),
    )
