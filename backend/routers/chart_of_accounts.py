from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from database import get_db
from schemas.chart_of_accounts import (
    CoaAccount,
    CoaAccountCreate,
    CoaAccountUpdate,
    CoaGroup,
    CoaGroupCreate,
    CoaGroupTree,
    CoaSubGroup,
    CoaSubGroupCreate,
)
from schemas.ledgers import AccountBalance, AccountLedger
from crud import chart_of_accounts as crud_coa
from crud import financial_reports as crud_financial_reports
from crud.balances import get_account_balance
from exceptions import LedgerValidationError
from utils.tenancy import get_owner_scope

router = APIRouter(
    prefix="/accounts",
    tags=["Chart of Accounts"],
)


# Groups and sub-groups

@router.get("/coa-groups", response_model=List[CoaGroupTree])
def get_groups(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    """Active groups with their active sub-groups and accounts nested inside."""
    return crud_coa.list_groups(db, user_id=user_id)


@router.post("/coa-groups", response_model=CoaGroup, status_code=status.HTTP_201_CREATED)
def create_group(
    group: CoaGroupCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.create_group(db, group=group, user_id=user_id)


@router.get("/coa-sub-groups", response_model=List[CoaSubGroup])
def get_sub_groups(
    group_id: Optional[int] = Query(None, alias="groupId"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    if group_id is None:
        raise LedgerValidationError("groupId is required")
    return crud_coa.list_sub_groups(db, user_id=user_id, group_id=group_id)


@router.post("/coa-sub-groups", response_model=CoaSubGroup, status_code=status.HTTP_201_CREATED)
def create_sub_group(
    sub_group: CoaSubGroupCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.create_sub_group(db, sub_group=sub_group, user_id=user_id)


# Accounts

@router.get("/coa-accounts", response_model=List[CoaAccount])
def get_accounts(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    coa_group_id: Optional[int] = Query(None, alias="coaGroupId"),
    coa_sub_group_id: Optional[int] = Query(None, alias="coaSubGroupId"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.list_accounts(
        db,
        user_id=user_id,
        is_active=is_active,
        coa_group_id=coa_group_id,
        coa_sub_group_id=coa_sub_group_id,
    )


@router.post("/coa-accounts", response_model=CoaAccount, status_code=status.HTTP_201_CREATED)
def create_account(
    account: CoaAccountCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.create_account(db, account=account, user_id=user_id)


@router.put("/coa-accounts/{account_id}", response_model=CoaAccount)
def update_account(
    account_id: int,
    account_update: CoaAccountUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    """Update an account. Default accounts are rejected with 409."""
    return crud_coa.update_account(db, account_id=account_id, account_update=account_update, user_id=user_id)


@router.patch("/coa-accounts/toggle-status/{account_id}", response_model=CoaAccount)
def toggle_account_status(
    account_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.toggle_account_status(db, account_id=account_id, user_id=user_id)


# Cash / bank selectors used by voucher entry

@router.get("/cash-accounts", response_model=List[CoaAccount])
def get_cash_accounts(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.list_cash_accounts(db, user_id=user_id, is_active=is_active)


@router.get("/bank-accounts", response_model=List[CoaAccount])
def get_bank_accounts(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.list_bank_accounts(db, user_id=user_id)


@router.get("/except-cash", response_model=List[CoaAccount])
def get_accounts_except_cash_and_bank(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_coa.list_accounts_except_cash_and_bank(db, user_id=user_id)


# Balances

@router.get("/ledger/{account_id}", response_model=AccountLedger)
def get_account_ledger(
    account_id: int,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_financial_reports.get_account_ledger(
        db,
        account_id=account_id,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/balance/{account_id}", response_model=AccountBalance)
def get_balance(
    account_id: int,
    as_of: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    """Raw (debit-positive) balance; accounts without postings report 0."""
    balance = get_account_balance(db, account_id=account_id, user_id=user_id, as_of=as_of)
    return AccountBalance(account_id=account_id, as_of=as_of, balance=balance)
