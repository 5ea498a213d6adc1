"""
Shared pytest fixtures.

Every test runs against a fresh in-memory SQLite database holding the
shared default chart of accounts plus a few accounts owned by the test user.
"""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "erp-accounts-test-logs"))
os.environ.setdefault("JWT_SECRET", "test-secret")

from database import Base, build_engine, build_session_factory  # noqa: E402
import models  # noqa: E402,F401
from crud import chart_of_accounts as crud_coa  # noqa: E402
from crud import vouchers as crud_vouchers  # noqa: E402
from schemas.chart_of_accounts import CoaAccountCreate  # noqa: E402
from schemas.vouchers import VoucherCreate  # noqa: E402

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Session with the shared default chart already seeded."""
    session = build_session_factory(engine)()
    crud_coa.initialize_default_chart(session)
    yield session
    session.close()


def _account_by_code(db, code, user_id=None):
    return crud_coa.get_account_by_code(db, code, user_id)


def _sub_group(db, code):
    return db.query(models.CoaSubGroup).filter(models.CoaSubGroup.code == code).one()


@pytest.fixture
def accounts(db):
    """
    Accounts by short name.

    cash/bank/inventory/sales come from the shared chart; supplier, capital
    and rent are created for USER_ID.
    """
    result = {
        "cash": _account_by_code(db, "1001-001"),
        "bank": _account_by_code(db, "1002-001"),
        "inventory": _account_by_code(db, "1003-001"),
        "sales": _account_by_code(db, "4001-001"),
    }
    for key, code, name, sub_code in [
        ("supplier", "2001-001", "Supplier A", "2001"),
        ("capital", "3001-001", "Owner Capital", "3001"),
        ("rent", "5001-001", "Rent Expense", "5001"),
        ("cogs", "6001-001", "Cost of Sales", "6001"),
    ]:
        sub_group = _sub_group(db, sub_code)
        result[key] = crud_coa.create_account(
            db,
            CoaAccountCreate(
                name=name,
                code=code,
                coa_group_id=sub_group.coa_group_id,
                coa_sub_group_id=sub_group.id,
            ),
            USER_ID,
        )
    return result


def line(account, dr=0, cr=0, description=None):
    return {"account": {"id": account.id}, "dr": Decimal(str(dr)), "cr": Decimal(str(cr)), "description": description}


@pytest.fixture
def post(db):
    """Create (and by default approve) a voucher; returns the ORM voucher."""

    def _post(lines, voucher_type=6, on=date(2024, 1, 15), account=None, approve=True, user_id=USER_ID, **extra):
        payload = {"type": voucher_type, "date": on, "list": lines, **extra}
        if account is not None:
            payload["account"] = {"id": account.id}
        voucher = crud_vouchers.create_voucher(db, VoucherCreate(**payload), user_id)
        if approve:
            voucher = crud_vouchers.toggle_approval(db, voucher.id, user_id)
        return voucher

    return _post
