"""Balance engine: which lines count, and how balances add up over time."""

from datetime import date
from decimal import Decimal

from conftest import OTHER_USER_ID, USER_ID, line
from crud import vouchers as crud_vouchers
from crud.balances import get_account_balance, get_account_totals


class TestAccountBalance:
    def test_no_postings_is_zero(self, db, accounts):
        assert get_account_balance(db, accounts["rent"].id, USER_ID) == Decimal("0.00")

    def test_unknown_account_is_zero(self, db):
        assert get_account_balance(db, 12345, USER_ID) == Decimal("0.00")

    def test_debit_positive_for_every_account_type(self, db, accounts, post):
        post([line(accounts["rent"], dr=70), line(accounts["supplier"], cr=70)])

        assert get_account_balance(db, accounts["rent"].id, USER_ID) == Decimal("70.00")
        assert get_account_balance(db, accounts["supplier"].id, USER_ID) == Decimal("-70.00")

    def test_as_of_date_is_inclusive(self, db, accounts, post):
        post([line(accounts["rent"], dr=70), line(accounts["supplier"], cr=70)], on=date(2024, 1, 15))

        assert get_account_balance(db, accounts["rent"].id, USER_ID, date(2024, 1, 14)) == Decimal("0.00")
        assert get_account_balance(db, accounts["rent"].id, USER_ID, date(2024, 1, 15)) == Decimal("70.00")

    def test_additivity_between_dates(self, db, accounts, post):
        postings = [
            (date(2024, 1, 3), 100, 0),
            (date(2024, 1, 10), 0, 30),
            (date(2024, 1, 20), 45, 0),
            (date(2024, 2, 2), 0, 12.5),
            (date(2024, 2, 28), 8, 0),
        ]
        for on, dr, cr in postings:
            if dr:
                post([line(accounts["inventory"], dr=dr), line(accounts["supplier"], cr=dr)], on=on)
            else:
                post([line(accounts["supplier"], dr=cr), line(accounts["inventory"], cr=cr)], on=on)

        d1, d2 = date(2024, 1, 10), date(2024, 2, 28)
        expected = sum(
            (Decimal(str(dr)) - Decimal(str(cr)) for on, dr, cr in postings if d1 < on <= d2),
            Decimal("0"),
        )
        delta = (
            get_account_balance(db, accounts["inventory"].id, USER_ID, d2)
            - get_account_balance(db, accounts["inventory"].id, USER_ID, d1)
        )
        assert delta == expected == Decimal("40.50")

    def test_receipt_scenario(self, db, accounts, post):
        as_of = date(2024, 1, 31)
        cash_before = get_account_balance(db, accounts["cash"].id, USER_ID, as_of)
        sales_before = get_account_balance(db, accounts["sales"].id, USER_ID, as_of)

        voucher = post([line(accounts["sales"], cr=1000)], voucher_type=1, account=accounts["cash"],
                       on=date(2024, 1, 15))

        assert voucher.voucher_code == "RV-001"
        assert get_account_balance(db, accounts["cash"].id, USER_ID, as_of) - cash_before == Decimal("1000.00")
        assert get_account_balance(db, accounts["sales"].id, USER_ID, as_of) - sales_before == Decimal("-1000.00")

    def test_unapproved_voucher_is_ignored(self, db, accounts, post):
        post([line(accounts["rent"], dr=70), line(accounts["supplier"], cr=70)], approve=False)

        assert get_account_balance(db, accounts["rent"].id, USER_ID) == Decimal("0.00")

    def test_unapproving_removes_the_effect(self, db, accounts, post):
        voucher = post([line(accounts["rent"], dr=70), line(accounts["supplier"], cr=70)])
        crud_vouchers.toggle_approval(db, voucher.id, USER_ID)

        assert get_account_balance(db, accounts["rent"].id, USER_ID) == Decimal("0.00")

    def test_deleted_voucher_is_ignored(self, db, accounts, post):
        post([line(accounts["rent"], dr=20), line(accounts["supplier"], cr=20)])
        before = get_account_balance(db, accounts["rent"].id, USER_ID)
        voucher = post([line(accounts["rent"], dr=500), line(accounts["supplier"], cr=500)])
        assert get_account_balance(db, accounts["rent"].id, USER_ID) == before + Decimal("500.00")

        crud_vouchers.delete_voucher(db, voucher.id, USER_ID)

        assert get_account_balance(db, accounts["rent"].id, USER_ID) == before

    def test_post_dated_voucher_is_ignored(self, db, accounts, post):
        post([line(accounts["sales"], cr=90)], voucher_type=1, account=accounts["cash"], chequeNo="42")

        assert get_account_balance(db, accounts["cash"].id, USER_ID) == Decimal("0.00")

    def test_balances_are_per_owner(self, db, accounts, post):
        post([line(accounts["inventory"], dr=60), line(accounts["sales"], cr=60)])
        post([line(accounts["inventory"], dr=15), line(accounts["sales"], cr=15)], user_id=OTHER_USER_ID)

        assert get_account_balance(db, accounts["inventory"].id, USER_ID) == Decimal("60.00")
        assert get_account_balance(db, accounts["inventory"].id, OTHER_USER_ID) == Decimal("15.00")


class TestAccountTotals:
    def test_grouped_totals_in_range(self, db, accounts, post):
        post([line(accounts["rent"], dr=10), line(accounts["supplier"], cr=10)], on=date(2024, 1, 1))
        post([line(accounts["rent"], dr=25), line(accounts["supplier"], cr=25)], on=date(2024, 1, 20))
        post([line(accounts["supplier"], dr=5), line(accounts["rent"], cr=5)], on=date(2024, 1, 21))

        totals = get_account_totals(
            db, [accounts["rent"].id, accounts["cash"].id], USER_ID, date(2024, 1, 15), date(2024, 1, 31)
        )

        assert totals[accounts["rent"].id] == {"debit": Decimal("25.00"), "credit": Decimal("5.00")}
        assert totals[accounts["cash"].id] == {"debit": Decimal("0.00"), "credit": Decimal("0.00")}

    def test_empty_account_list(self, db):
        assert get_account_totals(db, [], USER_ID) == {}
