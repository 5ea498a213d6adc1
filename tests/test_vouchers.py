"""Voucher posting, numbering, approval, post-dated clearing and deletion."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

import models
from conftest import OTHER_USER_ID, USER_ID, line
from crud import vouchers as crud_vouchers
from crud.balances import get_account_balance
from exceptions import (
    InvalidAccountReference,
    LedgerValidationError,
    MissingPrimaryAccount,
    ProtectedRecord,
    RecordNotFound,
    UnbalancedVoucher,
)
from schemas.vouchers import VoucherCreate


def _voucher(lines, voucher_type=6, account=None, **extra):
    payload = {"type": voucher_type, "date": date(2024, 1, 15), "list": lines, **extra}
    if account is not None:
        payload["account"] = {"id": account.id}
    return VoucherCreate(**payload)


class TestCreateVoucher:
    def test_balanced_journal(self, db, accounts):
        voucher = crud_vouchers.create_voucher(
            db, _voucher([line(accounts["rent"], dr=100), line(accounts["supplier"], cr=100)]), USER_ID
        )

        assert voucher.voucher_code == "JV-001"
        assert voucher.total_amount == Decimal("100.00")
        assert voucher.is_approved is False
        assert voucher.is_post_dated is False
        assert [(t.debit, t.credit) for t in voucher.transactions] == [
            (Decimal("100.00"), Decimal("0.00")),
            (Decimal("0.00"), Decimal("100.00")),
        ]
        assert all(t.date == date(2024, 1, 15) for t in voucher.transactions)

    def test_unbalanced_voucher_persists_nothing(self, db, accounts, post):
        post([line(accounts["rent"], dr=40), line(accounts["supplier"], cr=40)])
        before = get_account_balance(db, accounts["rent"].id, USER_ID)
        lines_before = db.query(models.VoucherTransaction).count()

        with pytest.raises(UnbalancedVoucher) as exc_info:
            crud_vouchers.create_voucher(
                db, _voucher([line(accounts["rent"], dr=100), line(accounts["supplier"], cr=99)]), USER_ID
            )

        assert exc_info.value.details == {"totalDebit": "100.00", "totalCredit": "99.00"}
        assert exc_info.value.kind == "ValidationError"
        assert db.query(models.VoucherTransaction).count() == lines_before
        assert db.query(models.Voucher).count() == 1
        assert get_account_balance(db, accounts["rent"].id, USER_ID) == before

    def test_unknown_account(self, db, accounts):
        with pytest.raises(InvalidAccountReference) as exc_info:
            crud_vouchers.create_voucher(
                db, _voucher([line(accounts["rent"], dr=10), {"account": {"id": 999}, "cr": "10"}]), USER_ID
            )

        assert exc_info.value.details == {"accountIds": [999]}
        assert db.query(models.Voucher).count() == 0

    def test_other_owners_account_is_unknown(self, db, accounts):
        with pytest.raises(InvalidAccountReference):
            crud_vouchers.create_voucher(
                db, _voucher([line(accounts["rent"], dr=10), line(accounts["sales"], cr=10)]), OTHER_USER_ID
            )

    def test_needs_a_line(self, accounts):
        with pytest.raises(ValidationError):
            _voucher([])

    def test_line_cannot_carry_both_sides(self, accounts):
        with pytest.raises(ValidationError):
            _voucher([line(accounts["rent"], dr=10, cr=10)])

    def test_total_amount_must_match_lines(self, db, accounts):
        with pytest.raises(LedgerValidationError):
            crud_vouchers.create_voucher(
                db,
                _voucher([line(accounts["rent"], dr=50), line(accounts["supplier"], cr=50)], totalAmount="60"),
                USER_ID,
            )

    def test_zero_amount_voucher(self, db, accounts):
        with pytest.raises(LedgerValidationError):
            crud_vouchers.create_voucher(db, _voucher([line(accounts["rent"])]), USER_ID)

    def test_numbers_run_per_type_and_owner(self, db, accounts, post):
        first = post([line(accounts["rent"], dr=1), line(accounts["supplier"], cr=1)])
        second = post([line(accounts["rent"], dr=2), line(accounts["supplier"], cr=2)])
        sales = post([line(accounts["inventory"], dr=3), line(accounts["sales"], cr=3)], voucher_type=4)
        other = post(
            [line(accounts["inventory"], dr=4), line(accounts["sales"], cr=4)], user_id=OTHER_USER_ID
        )

        assert (first.voucher_no, second.voucher_no) == (1, 2)
        assert sales.voucher_code == "SV-001"
        assert other.voucher_code == "JV-001"

    def test_deleted_vouchers_keep_their_numbers(self, db, accounts, post):
        first = post([line(accounts["rent"], dr=1), line(accounts["supplier"], cr=1)])
        crud_vouchers.delete_voucher(db, first.id, USER_ID)

        second = post([line(accounts["rent"], dr=2), line(accounts["supplier"], cr=2)])

        assert second.voucher_no == 2


class TestPrimaryAccountVouchers:
    def test_receipt_debits_primary_account(self, db, accounts):
        voucher = crud_vouchers.create_voucher(
            db, _voucher([line(accounts["sales"], cr=1000)], voucher_type=1, account=accounts["cash"]), USER_ID
        )

        assert voucher.voucher_code == "RV-001"
        assert voucher.coa_account_id == accounts["cash"].id
        primary = [t for t in voucher.transactions if t.coa_account_id == accounts["cash"].id]
        assert [(t.debit, t.credit) for t in primary] == [(Decimal("1000.00"), Decimal("0.00"))]
        assert voucher.total_amount == Decimal("1000.00")

    def test_payment_credits_primary_account(self, db, accounts):
        voucher = crud_vouchers.create_voucher(
            db, _voucher([line(accounts["rent"], dr=250)], voucher_type=2, account=accounts["bank"]), USER_ID
        )

        primary = [t for t in voucher.transactions if t.coa_account_id == accounts["bank"].id]
        assert [(t.debit, t.credit) for t in primary] == [(Decimal("0.00"), Decimal("250.00"))]

    def test_contra_balances_transfer(self, db, accounts):
        voucher = crud_vouchers.create_voucher(
            db, _voucher([line(accounts["bank"], dr=300)], voucher_type=5, account=accounts["cash"]), USER_ID
        )

        primary = [t for t in voucher.transactions if t.coa_account_id == accounts["cash"].id]
        assert [(t.debit, t.credit) for t in primary] == [(Decimal("0.00"), Decimal("300.00"))]
        assert voucher.voucher_code == "CV-001"

    def test_receipt_total_disagreeing_with_lines(self, db, accounts):
        with pytest.raises(UnbalancedVoucher):
            crud_vouchers.create_voucher(
                db,
                _voucher([line(accounts["sales"], cr=1000)], voucher_type=1, account=accounts["cash"], totalAmount="900"),
                USER_ID,
            )

    def test_receipt_without_primary_account(self, db, accounts):
        with pytest.raises(MissingPrimaryAccount):
            crud_vouchers.create_voucher(db, _voucher([line(accounts["sales"], cr=1000)], voucher_type=1), USER_ID)

    def test_primary_account_must_be_cash_or_bank(self, db, accounts):
        with pytest.raises(MissingPrimaryAccount):
            crud_vouchers.create_voucher(
                db, _voucher([line(accounts["sales"], cr=10)], voucher_type=1, account=accounts["inventory"]), USER_ID
            )
        assert db.query(models.Voucher).count() == 0


class TestApproval:
    def test_approval_cascades_to_lines(self, db, accounts):
        voucher = crud_vouchers.create_voucher(
            db, _voucher([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)]), USER_ID
        )

        approved = crud_vouchers.toggle_approval(db, voucher.id, USER_ID)
        assert approved.is_approved is True
        assert all(t.is_approved for t in approved.transactions)

        unapproved = crud_vouchers.toggle_approval(db, voucher.id, USER_ID)
        assert unapproved.is_approved is False
        assert not any(t.is_approved for t in unapproved.transactions)

    def test_approval_is_audited(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)])

        log = db.query(models.AuditLog).filter(
            models.AuditLog.table_name == "vouchers", models.AuditLog.record_id == voucher.id
        ).one()
        assert log.action == "APPROVE"
        assert log.changed_by == USER_ID

    def test_other_owner_cannot_approve(self, db, accounts):
        voucher = crud_vouchers.create_voucher(
            db, _voucher([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)]), USER_ID
        )

        with pytest.raises(RecordNotFound):
            crud_vouchers.toggle_approval(db, voucher.id, OTHER_USER_ID)


class TestPostDated:
    def test_cheque_makes_voucher_post_dated(self, db, accounts, post):
        voucher = post(
            [line(accounts["sales"], cr=500)], voucher_type=1, account=accounts["bank"],
            chequeNo="000123", chequeDate=date(2024, 2, 1),
        )

        assert voucher.is_post_dated is True
        assert get_account_balance(db, accounts["bank"].id, USER_ID) == Decimal("0.00")

    def test_blank_cheque_is_not_post_dated(self, db, accounts, post):
        voucher = post([line(accounts["sales"], cr=500)], voucher_type=1, account=accounts["bank"], chequeNo="  ")

        assert voucher.is_post_dated is False
        assert voucher.cheque_no is None

    def test_clearing_moves_voucher_into_the_books(self, db, accounts, post):
        voucher = post(
            [line(accounts["sales"], cr=500)], voucher_type=1, account=accounts["bank"], chequeNo="000123",
        )

        cleared = crud_vouchers.clear_post_dated(db, voucher.id, USER_ID, date(2024, 2, 1))

        assert cleared.is_post_dated is False
        assert cleared.cleared_date == date(2024, 2, 1)
        assert cleared.date == date(2024, 2, 1)
        assert all(t.date == date(2024, 2, 1) for t in cleared.transactions)
        assert get_account_balance(db, accounts["bank"].id, USER_ID, date(2024, 1, 31)) == Decimal("0.00")
        assert get_account_balance(db, accounts["bank"].id, USER_ID, date(2024, 2, 1)) == Decimal("500.00")

    def test_clearing_a_regular_voucher(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)])

        with pytest.raises(LedgerValidationError):
            crud_vouchers.clear_post_dated(db, voucher.id, USER_ID, date(2024, 2, 1))


class TestDeleteVoucher:
    def test_soft_deletes_header_and_lines(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)])
        voucher_id = voucher.id

        crud_vouchers.delete_voucher(db, voucher_id, USER_ID)

        with pytest.raises(RecordNotFound):
            crud_vouchers.get_voucher(db, voucher_id, USER_ID)
        rows = db.query(models.VoucherTransaction).execution_options(include_deleted=True).filter(
            models.VoucherTransaction.voucher_id == voucher_id
        ).all()
        assert len(rows) == 2
        assert all(r.deleted_at is not None and r.deleted_by == USER_ID for r in rows)

    def test_delete_twice(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)])
        voucher_id = voucher.id
        crud_vouchers.delete_voucher(db, voucher_id, USER_ID)

        with pytest.raises(RecordNotFound):
            crud_vouchers.delete_voucher(db, voucher_id, USER_ID)

    def test_auto_vouchers_are_protected(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)])
        voucher.is_auto = True
        db.commit()

        with pytest.raises(ProtectedRecord):
            crud_vouchers.delete_voucher(db, voucher.id, USER_ID)


class TestListVouchers:
    def test_filters(self, db, accounts, post):
        post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)], on=date(2024, 1, 5))
        post([line(accounts["sales"], cr=20)], voucher_type=1, account=accounts["cash"], on=date(2024, 1, 10))
        post([line(accounts["rent"], dr=30)], voucher_type=2, account=accounts["bank"], on=date(2024, 1, 20),
             approve=False)

        everything = crud_vouchers.list_vouchers(db, USER_ID)
        assert [v.date for v in everything] == [date(2024, 1, 20), date(2024, 1, 10), date(2024, 1, 5)]
        assert [v.voucher_code for v in crud_vouchers.list_vouchers(db, USER_ID, voucher_type=1)] == ["RV-001"]
        assert len(crud_vouchers.list_vouchers(db, USER_ID, is_approved=False)) == 1
        assert len(crud_vouchers.list_vouchers(
            db, USER_ID, date_from=date(2024, 1, 6), date_to=date(2024, 1, 15))) == 1
        assert len(crud_vouchers.list_vouchers(db, USER_ID, coa_account_id=accounts["rent"].id)) == 2
        assert crud_vouchers.list_vouchers(db, OTHER_USER_ID) == []

    def test_deleted_vouchers_are_hidden(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)])
        crud_vouchers.delete_voucher(db, voucher.id, USER_ID)

        assert crud_vouchers.list_vouchers(db, USER_ID) == []
