from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List, Optional


# Account balance
class AccountBalance(BaseModel):
    account_id: int
    as_of: Optional[date] = None
    balance: Decimal


# Account ledger
class LedgerEntry(BaseModel):
    id: int
    date: date
    voucher_id: int
    voucher_no: int
    voucher_type: int
    voucher_code: str
    account_id: int
    account_name: str
    account_code: str
    description: Optional[str] = None
    debit: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")
    balance: Decimal  # running balance after this line


class AccountLedger(BaseModel):
    account_id: int
    account_name: Optional[str] = None
    account_code: Optional[str] = None
    date_from: Optional[date] = None
    date_to: date
    opening_balance: Decimal
    transactions: List[LedgerEntry]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal


# General journal
class JournalEntry(BaseModel):
    id: int
    date: date
    voucher_id: int
    voucher_no: int
    voucher_type: int
    voucher_code: str
    voucher_name: Optional[str] = None
    account_id: int
    account_name: str
    account_code: str
    description: Optional[str] = None
    debit: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")


class GeneralJournal(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    entries: List[JournalEntry]
    total_debit: Decimal
    total_credit: Decimal
