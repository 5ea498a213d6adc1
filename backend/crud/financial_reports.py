import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from crud import chart_of_accounts as crud_coa
from crud.balances import ZERO, get_account_balance, get_account_totals, posted_lines_filter
from exceptions import LedgerValidationError, RecordNotFound
from models.audit_mixin import local_now
from models.chart_of_accounts import CoaAccount, GroupParent
from models.vouchers import Voucher, VoucherTransaction, voucher_code
from schemas.financial_reports import (
    BalanceSheet,
    BalanceSheetAccount,
    DailyClosingAccount,
    DailyClosingEntry,
    DailyClosingReport,
    TrialBalance,
    TrialBalanceAccount,
    TrialBalanceTotals,
)
from schemas.ledgers import AccountLedger, GeneralJournal, JournalEntry, LedgerEntry
from utils import format_amount

logger = logging.getLogger(__name__)

TRIAL_BALANCE_BUCKETS = {
    GroupParent.ASSETS.value: "assets",
    GroupParent.LIABILITIES.value: "liabilities",
    GroupParent.CAPITAL.value: "capital",
    GroupParent.REVENUES.value: "revenues",
    GroupParent.EXPENSES.value: "expenses",
    GroupParent.COST.value: "cost",
}


def _check_range(date_from: Optional[date], date_to: Optional[date]):
    if date_from and date_to and date_from > date_to:
        raise LedgerValidationError(
            "'from' date must not be after 'to' date",
            details={"from": date_from.isoformat(), "to": date_to.isoformat()},
        )


def _posted_lines(db: Session, user_id: str):
    """Qualifying lines joined to their voucher and account, in journal order."""
    return (
        db.query(VoucherTransaction, Voucher, CoaAccount)
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .join(CoaAccount, VoucherTransaction.coa_account_id == CoaAccount.id)
        .filter(*posted_lines_filter(user_id))
        .order_by(VoucherTransaction.date, Voucher.voucher_no, VoucherTransaction.id)
    )


def get_account_ledger(
    db: Session,
    account_id: int,
    user_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> AccountLedger:
    """
    Statement of one account between two dates.

    The opening balance covers everything dated before ``date_from``, so
    closing - opening always equals the debits minus credits listed.
    """
    if date_to is None:
        # An open-ended statement runs to today, or to its start when that is later
        date_to = max(local_now().date(), date_from) if date_from else local_now().date()
    _check_range(date_from, date_to)

    account = crud_coa.get_account(db, account_id, user_id)
    if not account:
        raise RecordNotFound(f"Account {account_id} not found")

    opening_balance = ZERO
    if date_from:
        opening_balance = get_account_balance(db, account_id, user_id, date_from - timedelta(days=1))

    query = _posted_lines(db, user_id).filter(
        VoucherTransaction.coa_account_id == account_id,
        VoucherTransaction.date <= date_to,
    )
    if date_from:
        query = query.filter(VoucherTransaction.date >= date_from)

    entries = []
    running = opening_balance
    total_debit = total_credit = ZERO
    for line, voucher, line_account in query.all():
        running += line.debit - line.credit
        total_debit += line.debit
        total_credit += line.credit
        entries.append(LedgerEntry(
            id=line.id,
            date=line.date,
            voucher_id=voucher.id,
            voucher_no=voucher.voucher_no,
            voucher_type=voucher.type,
            voucher_code=voucher_code(voucher.type, voucher.voucher_no),
            account_id=line_account.id,
            account_name=line_account.name,
            account_code=line_account.code,
            description=line.description or voucher.name,
            debit=line.debit,
            credit=line.credit,
            balance=running,
        ))

    return AccountLedger(
        account_id=account.id,
        account_name=account.name,
        account_code=account.code,
        date_from=date_from,
        date_to=date_to,
        opening_balance=opening_balance,
        transactions=entries,
        total_debit=total_debit,
        total_credit=total_credit,
        closing_balance=get_account_balance(db, account_id, user_id, date_to),
    )


def _is_listed(account: CoaAccount) -> bool:
    """Active account under an active group and sub-group."""
    return (
        account.is_active
        and (account.group is None or account.group.is_active)
        and (account.sub_group is None or account.sub_group.is_active)
    )


def _report_accounts(db: Session, user_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None):
    """
    Visible accounts with their debit/credit totals for the window.

    Deactivated accounts (or accounts under a deactivated group or sub-group)
    are kept whenever they carry postings, otherwise the other side of those
    postings would be reported alone.
    """
    accounts = (
        db.query(CoaAccount)
        .options(selectinload(CoaAccount.group), selectinload(CoaAccount.sub_group))
        .filter(crud_coa.visible_to(CoaAccount, user_id))
        .order_by(CoaAccount.code)
        .all()
    )
    totals = get_account_totals(db, [a.id for a in accounts], user_id, date_from, date_to)

    result = []
    for account in accounts:
        account_totals = totals[account.id]
        if _is_listed(account) or account_totals["debit"] or account_totals["credit"]:
            result.append((account, account_totals))
    return result


def get_trial_balance(db: Session, user_id: str, date_from: date, date_to: date) -> TrialBalance:
    """Period debit/credit totals per account, bucketed by group classification."""
    _check_range(date_from, date_to)

    buckets = {bucket: [] for bucket in TRIAL_BALANCE_BUCKETS.values()}
    grand_debit = grand_credit = ZERO
    for account, totals in _report_accounts(db, user_id, date_from, date_to):
        bucket = TRIAL_BALANCE_BUCKETS.get(account.group.parent if account.group else None)
        if bucket is None:
            continue
        debit = totals["debit"]
        credit = totals["credit"]
        grand_debit += debit
        grand_credit += credit
        buckets[bucket].append(TrialBalanceAccount(
            id=account.id,
            code=account.code,
            name=account.name,
            debit=debit,
            credit=credit,
            balance=debit - credit,
            group=account.group.name,
            sub_group=account.sub_group.name if account.sub_group else "",
        ))

    if grand_debit != grand_credit:
        logger.warning(
            f"Trial balance for user {user_id} ({date_from} to {date_to}) is off by {format_amount(grand_debit - grand_credit)}"
        )

    return TrialBalance(
        date_from=date_from,
        date_to=date_to,
        totals=TrialBalanceTotals(debit=grand_debit, credit=grand_credit, difference=grand_debit - grand_credit),
        **buckets,
    )


def get_balance_sheet(db: Session, user_id: str, as_of: date) -> BalanceSheet:
    """
    Point-in-time balance sheet.

    Liability and capital balances are shown credit-positive. Revenue, expense
    and cost accounts are not listed; their net (revenue - expense - cost)
    is reported as rev_exp so that assets = liabilities + capital + rev_exp.
    """
    assets, liabilities, capital = [], [], []
    revenue = expense = cost = ZERO
    for account, totals in _report_accounts(db, user_id, date_to=as_of):
        group = account.group
        if group is None:
            continue
        balance = totals["debit"] - totals["credit"]
        entry = BalanceSheetAccount(
            id=account.id, code=account.code, name=account.name, balance=balance,
            group=group.name, sub_group=account.sub_group.name if account.sub_group else "",
        )

        if group.parent == GroupParent.ASSETS.value:
            assets.append(entry)
        elif group.parent == GroupParent.LIABILITIES.value:
            entry.balance = ZERO - balance
            liabilities.append(entry)
        elif group.parent == GroupParent.CAPITAL.value:
            entry.balance = ZERO - balance
            capital.append(entry)
        elif group.parent == GroupParent.REVENUES.value:
            revenue -= balance
        elif group.parent == GroupParent.EXPENSES.value:
            expense += balance
        elif group.parent == GroupParent.COST.value:
            cost += balance

    return BalanceSheet(
        as_of=as_of,
        assets=assets,
        liabilities=liabilities,
        capital=capital,
        revenue=revenue,
        expense=expense,
        cost=cost,
        rev_exp=revenue - expense - cost,
        total_assets=sum((a.balance for a in assets), ZERO),
        total_liabilities=sum((a.balance for a in liabilities), ZERO),
        total_capital=sum((a.balance for a in capital), ZERO),
    )


def get_general_journal(
    db: Session,
    user_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> GeneralJournal:
    _check_range(date_from, date_to)

    query = _posted_lines(db, user_id)
    if date_from:
        query = query.filter(VoucherTransaction.date >= date_from)
    if date_to:
        query = query.filter(VoucherTransaction.date <= date_to)

    entries = [
        JournalEntry(
            id=line.id,
            date=line.date,
            voucher_id=voucher.id,
            voucher_no=voucher.voucher_no,
            voucher_type=voucher.type,
            voucher_code=voucher_code(voucher.type, voucher.voucher_no),
            voucher_name=voucher.name,
            account_id=account.id,
            account_name=account.name,
            account_code=account.code,
            description=line.description,
            debit=line.debit,
            credit=line.credit,
        )
        for line, voucher, account in query.all()
    ]
    return GeneralJournal(
        date_from=date_from,
        date_to=date_to,
        entries=entries,
        total_debit=sum((e.debit for e in entries), ZERO),
        total_credit=sum((e.credit for e in entries), ZERO),
    )


def _group_by_voucher(rows, side: str) -> List[DailyClosingEntry]:
    grouped = OrderedDict()
    for line, voucher, _account in rows:
        amount = getattr(line, side)
        if amount <= 0:
            continue
        if voucher.id not in grouped:
            grouped[voucher.id] = DailyClosingEntry(
                voucher_id=voucher.id,
                voucher_code=voucher_code(voucher.type, voucher.voucher_no),
                description=line.description or voucher.name,
                amount=ZERO,
            )
        grouped[voucher.id].amount += amount
    return list(grouped.values())


def get_daily_closing(
    db: Session,
    user_id: str,
    report_date: date,
    account_ids: Optional[List[int]] = None,
) -> DailyClosingReport:
    """
    Cash book style closing for one day.

    Without explicit accounts the report covers every active cash and bank
    account. Each account shows the previous day's balance, the day's
    receipts and payments grouped by voucher, and the resulting closing.
    """
    if account_ids:
        accounts = (
            db.query(CoaAccount)
            .filter(CoaAccount.id.in_(account_ids), crud_coa.visible_to(CoaAccount, user_id))
            .order_by(CoaAccount.code)
            .all()
        )
        missing = sorted(set(account_ids) - {a.id for a in accounts})
        if missing:
            raise RecordNotFound(f"Account(s) not found: {missing}", details={"accountIds": missing})
    else:
        accounts = crud_coa.list_cash_and_bank_accounts(db, user_id, is_active=True)

    report = DailyClosingReport(date=report_date)
    for account in accounts:
        opening_balance = get_account_balance(db, account.id, user_id, report_date - timedelta(days=1))
        rows = _posted_lines(db, user_id).filter(
            VoucherTransaction.coa_account_id == account.id,
            VoucherTransaction.date == report_date,
        ).all()

        debits = _group_by_voucher(rows, "debit")
        credits = _group_by_voucher(rows, "credit")
        total_debit = sum((e.amount for e in debits), ZERO)
        total_credit = sum((e.amount for e in credits), ZERO)
        report.accounts.append(DailyClosingAccount(
            account_id=account.id,
            account_name=account.name,
            account_code=account.code,
            opening_balance=opening_balance,
            debits=debits,
            credits=credits,
            total_debit=total_debit,
            total_credit=total_credit,
            closing_balance=opening_balance + total_debit - total_credit,
        ))
    return report
