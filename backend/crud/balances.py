from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.vouchers import Voucher, VoucherTransaction

ZERO = Decimal("0.00")


def posted_lines_filter(user_id: str):
    """
    Criteria for lines that count towards a balance.

    A line counts when it is approved and not deleted, and its voucher is
    neither deleted nor post-dated. The deleted_at checks are explicit because
    aggregate queries select no entity for the soft-delete listener to hook.
    """
    return (
        VoucherTransaction.user_id == user_id,
        VoucherTransaction.is_approved == True,
        VoucherTransaction.deleted_at.is_(None),
        Voucher.is_post_dated == False,
        Voucher.deleted_at.is_(None),
    )


def _as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(value).quantize(ZERO)


def get_account_balance(db: Session, account_id: int, user_id: str, as_of: Optional[date] = None) -> Decimal:
    """
    Raw balance of an account: sum(debit) - sum(credit).

    The result is debit-positive for every account type; liability, capital
    and revenue accounts come out negative and are flipped by the reports.
    An account without postings (or one that does not exist) has balance 0.
    """
    query = (
        db.query(
            func.coalesce(func.sum(VoucherTransaction.debit), 0),
            func.coalesce(func.sum(VoucherTransaction.credit), 0),
        )
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .filter(VoucherTransaction.coa_account_id == account_id, *posted_lines_filter(user_id))
    )
    if as_of is not None:
        query = query.filter(VoucherTransaction.date <= as_of)

    total_debit, total_credit = query.one()
    return _as_decimal(total_debit) - _as_decimal(total_credit)


def get_account_totals(
    db: Session,
    account_ids: Iterable[int],
    user_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Dict[int, Dict[str, Decimal]]:
    """Per-account debit and credit totals in one grouped query, keyed by account id."""
    account_ids = list(account_ids)
    if not account_ids:
        return {}

    query = (
        db.query(
            VoucherTransaction.coa_account_id,
            func.coalesce(func.sum(VoucherTransaction.debit), 0),
            func.coalesce(func.sum(VoucherTransaction.credit), 0),
        )
        .join(Voucher, VoucherTransaction.voucher_id == Voucher.id)
        .filter(VoucherTransaction.coa_account_id.in_(account_ids), *posted_lines_filter(user_id))
    )
    if date_from is not None:
        query = query.filter(VoucherTransaction.date >= date_from)
    if date_to is not None:
        query = query.filter(VoucherTransaction.date <= date_to)

    totals = {account_id: {"debit": ZERO, "credit": ZERO} for account_id in account_ids}
    for account_id, total_debit, total_credit in query.group_by(VoucherTransaction.coa_account_id).all():
        totals[account_id] = {"debit": _as_decimal(total_debit), "credit": _as_decimal(total_credit)}
    return totals
