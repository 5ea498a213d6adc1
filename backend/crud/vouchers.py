import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import create_audit_log
from crud.chart_of_accounts import visible_to
from database import commit_or_rollback
from exceptions import (
    InvalidAccountReference,
    LedgerValidationError,
    MissingPrimaryAccount,
    ProtectedRecord,
    RecordNotFound,
    UnbalancedVoucher,
)
from models.audit_mixin import local_now
from models.chart_of_accounts import CASH_AND_BANK_TYPES, CoaAccount, CoaSubGroup
from models.vouchers import PRIMARY_ACCOUNT_TYPES, Voucher, VoucherTransaction, VoucherType
from schemas.audit_log import AuditLogCreate
from schemas.vouchers import VoucherCreate
from utils import format_amount

logger = logging.getLogger(__name__)

# Debits and credits closer than one cent are considered equal
BALANCE_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0.00")


def get_next_voucher_no(db: Session, voucher_type: int, user_id: str) -> int:
    """Next number in the owner's series for a voucher type; deleted vouchers keep their numbers."""
    last_no = db.query(func.max(Voucher.voucher_no)).filter(
        Voucher.type == voucher_type,
        Voucher.user_id == user_id,
    ).execution_options(include_deleted=True).scalar()
    return (last_no or 0) + 1


def _resolve_line_accounts(db: Session, account_ids, user_id: str):
    accounts = db.query(CoaAccount).filter(CoaAccount.id.in_(account_ids), visible_to(CoaAccount, user_id)).all()
    found = {account.id for account in accounts}
    missing = sorted(set(account_ids) - found)
    if missing:
        raise InvalidAccountReference(
            f"Voucher references unknown account(s): {', '.join(str(i) for i in missing)}",
            details={"accountIds": missing},
        )
    return {account.id: account for account in accounts}


def _resolve_primary_account(db: Session, account_id: int, user_id: str) -> CoaAccount:
    account = (
        db.query(CoaAccount)
        .join(CoaSubGroup, CoaAccount.coa_sub_group_id == CoaSubGroup.id)
        .filter(
            CoaAccount.id == account_id,
            visible_to(CoaAccount, user_id),
            CoaSubGroup.type.in_(CASH_AND_BANK_TYPES),
        )
        .first()
    )
    if not account:
        raise MissingPrimaryAccount(
            f"Account {account_id} is not a cash or bank account",
            details={"accountId": account_id},
        )
    return account


def _primary_line(voucher_type: VoucherType, lines, total_amount: Optional[Decimal]):
    """
    The generated posting on the primary cash/bank account, as (debit, credit).

    Receipts debit the primary account and payments credit it; a contra
    takes whichever side balances the supplied lines.
    """
    net_credit = sum((line["credit"] - line["debit"] for line in lines), ZERO)

    if voucher_type == VoucherType.RECEIPT:
        amount = total_amount if total_amount is not None else net_credit
        return (amount, ZERO) if amount > 0 else None
    if voucher_type == VoucherType.PAYMENT:
        amount = total_amount if total_amount is not None else -net_credit
        return (ZERO, amount) if amount > 0 else None

    # Contra
    if net_credit == 0:
        return None
    amount = total_amount if total_amount is not None else abs(net_credit)
    return (amount, ZERO) if net_credit > 0 else (ZERO, amount)


def create_voucher(db: Session, voucher: VoucherCreate, user_id: str) -> Voucher:
    """
    Post a voucher with all of its lines in one transaction.

    Everything is validated before the first write, so a rejected voucher
    leaves no header or line behind.
    """
    voucher_type = VoucherType(voucher.type)
    if not voucher.lines:
        raise LedgerValidationError("A voucher needs at least one line")

    _resolve_line_accounts(db, {line.account.id for line in voucher.lines}, user_id)

    primary_account = None
    if voucher_type in PRIMARY_ACCOUNT_TYPES:
        if voucher.account is None:
            raise MissingPrimaryAccount(
                f"{voucher_type.name.replace('_', ' ').title()} vouchers require a cash or bank account",
                details={"type": int(voucher_type)},
            )
        primary_account = _resolve_primary_account(db, voucher.account.id, user_id)
    elif voucher.account is not None:
        primary_account = _resolve_line_accounts(db, {voucher.account.id}, user_id)[voucher.account.id]

    lines = [
        {
            "coa_account_id": line.account.id,
            "debit": line.dr,
            "credit": line.cr,
            "description": line.description,
        }
        for line in voucher.lines
    ]

    if voucher_type in PRIMARY_ACCOUNT_TYPES:
        generated = _primary_line(voucher_type, lines, voucher.total_amount)
        if generated:
            lines.append({
                "coa_account_id": primary_account.id,
                "debit": generated[0],
                "credit": generated[1],
                "description": voucher.name or f"{voucher_type.name.replace('_', ' ').title()} Voucher",
            })

    total_debit = sum((line["debit"] for line in lines), ZERO)
    total_credit = sum((line["credit"] for line in lines), ZERO)
    if abs(total_debit - total_credit) >= BALANCE_TOLERANCE:
        logger.warning(f"Unbalanced voucher rejected for user {user_id}: debit {total_debit}, credit {total_credit}")
        raise UnbalancedVoucher(
            f"Total debit ({total_debit}) must equal total credit ({total_credit})",
            details={"totalDebit": str(total_debit), "totalCredit": str(total_credit)},
        )

    total_amount = max(total_debit, total_credit)
    if total_amount <= 0:
        raise LedgerValidationError("Voucher amount must be greater than zero")
    if voucher.total_amount is not None and abs(voucher.total_amount - total_amount) >= BALANCE_TOLERANCE:
        raise LedgerValidationError(
            f"totalAmount {voucher.total_amount} does not match the voucher lines ({total_amount})",
            details={"totalAmount": str(voucher.total_amount), "computed": str(total_amount)},
        )

    db_voucher = Voucher(
        voucher_no=get_next_voucher_no(db, voucher_type, user_id),
        type=int(voucher_type),
        date=voucher.date,
        name=voucher.name,
        total_amount=total_amount,
        coa_account_id=primary_account.id if primary_account else None,
        is_approved=False,
        is_post_dated=bool(voucher.cheque_no),
        cheque_no=voucher.cheque_no,
        cheque_date=voucher.cheque_date,
        is_auto=False,
        user_id=user_id,
        generated_at=local_now(),
        created_by=user_id,
    )
    db_voucher.transactions = [
        VoucherTransaction(
            **line,
            date=voucher.date,
            is_approved=False,
            user_id=user_id,
            created_by=user_id,
        )
        for line in lines
    ]
    db.add(db_voucher)
    commit_or_rollback(db)
    db.refresh(db_voucher)

    logger.info(
        f"Voucher {db_voucher.voucher_code} created by user {user_id} "
        f"with {len(lines)} lines, amount {format_amount(total_amount)}"
    )
    return db_voucher


def list_vouchers(
    db: Session,
    user_id: str,
    voucher_type: Optional[int] = None,
    is_approved: Optional[bool] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    voucher_no: Optional[int] = None,
    is_post_dated: Optional[bool] = None,
    coa_account_id: Optional[int] = None,
) -> List[Voucher]:
    query = db.query(Voucher).filter(Voucher.user_id == user_id)
    if voucher_type is not None:
        query = query.filter(Voucher.type == voucher_type)
    if is_approved is not None:
        query = query.filter(Voucher.is_approved == is_approved)
    if date_from is not None:
        query = query.filter(Voucher.date >= date_from)
    if date_to is not None:
        query = query.filter(Voucher.date <= date_to)
    if voucher_no is not None:
        query = query.filter(Voucher.voucher_no == voucher_no)
    if is_post_dated is not None:
        query = query.filter(Voucher.is_post_dated == is_post_dated)
    if coa_account_id is not None:
        query = query.filter(Voucher.transactions.any(VoucherTransaction.coa_account_id == coa_account_id))
    return query.order_by(Voucher.date.desc(), Voucher.id.desc()).all()


def get_voucher(db: Session, voucher_id: int, user_id: str) -> Voucher:
    db_voucher = (
        db.query(Voucher)
        .options(selectinload(Voucher.transactions).selectinload(VoucherTransaction.account))
        .filter(Voucher.id == voucher_id, Voucher.user_id == user_id)
        .first()
    )
    if not db_voucher:
        raise RecordNotFound(f"Voucher {voucher_id} not found")
    return db_voucher


def toggle_approval(db: Session, voucher_id: int, user_id: str) -> Voucher:
    """Flip the approval flag on the voucher and every one of its lines."""
    db_voucher = get_voucher(db, voucher_id, user_id)
    new_status = not db_voucher.is_approved

    db_voucher.is_approved = new_status
    db_voucher.updated_by = user_id
    for line in db_voucher.transactions:
        line.is_approved = new_status
        line.updated_by = user_id

    create_audit_log(db, AuditLogCreate(
        table_name="vouchers",
        record_id=db_voucher.id,
        changed_by=user_id,
        action="APPROVE" if new_status else "UNAPPROVE",
        old_values={"is_approved": not new_status},
        new_values={"is_approved": new_status},
    ))
    commit_or_rollback(db)
    db.refresh(db_voucher)
    logger.info(f"Voucher {db_voucher.voucher_code} {'approved' if new_status else 'unapproved'} by user {user_id}")
    return db_voucher


def clear_post_dated(db: Session, voucher_id: int, user_id: str, cleared_date: date) -> Voucher:
    """Release a post-dated (cheque) voucher into the books on the clearing date."""
    db_voucher = get_voucher(db, voucher_id, user_id)
    if not db_voucher.is_post_dated:
        raise LedgerValidationError(
            f"Voucher {db_voucher.voucher_code} is not post-dated",
            details={"id": voucher_id},
        )

    old_date = db_voucher.date
    db_voucher.is_post_dated = False
    db_voucher.cleared_date = cleared_date
    db_voucher.date = cleared_date
    db_voucher.updated_by = user_id
    for line in db_voucher.transactions:
        line.date = cleared_date
        line.updated_by = user_id

    create_audit_log(db, AuditLogCreate(
        table_name="vouchers",
        record_id=db_voucher.id,
        changed_by=user_id,
        action="CLEAR_POST_DATED",
        old_values={"is_post_dated": True, "date": old_date.isoformat()},
        new_values={"is_post_dated": False, "date": cleared_date.isoformat()},
    ))
    commit_or_rollback(db)
    db.refresh(db_voucher)
    logger.info(f"Post-dated voucher {db_voucher.voucher_code} cleared on {cleared_date} by user {user_id}")
    return db_voucher


def delete_voucher(db: Session, voucher_id: int, user_id: str) -> None:
    """Soft delete the voucher together with its lines."""
    db_voucher = get_voucher(db, voucher_id, user_id)
    if db_voucher.is_auto:
        raise ProtectedRecord(
            f"Voucher {db_voucher.voucher_code} was generated automatically and cannot be deleted",
            details={"id": voucher_id},
        )

    code = db_voucher.voucher_code
    deleted_at = local_now()
    db_voucher.deleted_at = deleted_at
    db_voucher.deleted_by = user_id
    for line in db_voucher.transactions:
        line.deleted_at = deleted_at
        line.deleted_by = user_id

    create_audit_log(db, AuditLogCreate(
        table_name="vouchers",
        record_id=db_voucher.id,
        changed_by=user_id,
        action="DELETE",
        old_values={"voucher_code": code, "total_amount": str(db_voucher.total_amount)},
        new_values=None,
    ))
    commit_or_rollback(db)
    logger.info(f"Voucher {code} deleted by user {user_id}")
