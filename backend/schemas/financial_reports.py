from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from decimal import Decimal


# Trial balance
class TrialBalanceAccount(BaseModel):
    id: int
    code: str
    name: str
    debit: Decimal
    credit: Decimal
    balance: Decimal  # debit - credit for the period
    group: str
    sub_group: str


class TrialBalanceTotals(BaseModel):
    debit: Decimal
    credit: Decimal
    difference: Decimal


class TrialBalance(BaseModel):
    date_from: date
    date_to: date
    assets: List[TrialBalanceAccount] = []
    liabilities: List[TrialBalanceAccount] = []
    capital: List[TrialBalanceAccount] = []
    revenues: List[TrialBalanceAccount] = []
    expenses: List[TrialBalanceAccount] = []
    cost: List[TrialBalanceAccount] = []
    totals: TrialBalanceTotals


# Balance sheet
class BalanceSheetAccount(BaseModel):
    id: int
    code: str
    name: str
    balance: Decimal
    group: str
    sub_group: str


class BalanceSheet(BaseModel):
    as_of: date
    assets: List[BalanceSheetAccount] = []
    liabilities: List[BalanceSheetAccount] = []
    capital: List[BalanceSheetAccount] = []
    revenue: Decimal
    expense: Decimal
    cost: Decimal
    rev_exp: Decimal  # revenue - expense - cost, folded into capital
    total_assets: Decimal
    total_liabilities: Decimal
    total_capital: Decimal


# Daily closing
class DailyClosingRequest(BaseModel):
    date: date
    account_ids: List[int] = Field(default_factory=list, alias="accountIds")

    class Config:
        populate_by_name = True


class DailyClosingEntry(BaseModel):
    voucher_id: int
    voucher_code: str
    description: Optional[str] = None
    amount: Decimal


class DailyClosingAccount(BaseModel):
    account_id: int
    account_name: str
    account_code: str
    opening_balance: Decimal
    debits: List[DailyClosingEntry] = []
    credits: List[DailyClosingEntry] = []
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal


class DailyClosingReport(BaseModel):
    date: date
    accounts: List[DailyClosingAccount] = []
