from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from database import get_db
from schemas.vouchers import ClearPostDatedRequest, Voucher, VoucherCreate, VoucherDetail
from crud import vouchers as crud_vouchers
from utils.tenancy import get_owner_scope

router = APIRouter(
    prefix="/vouchers",
    tags=["Vouchers"],
)


@router.post("", response_model=VoucherDetail, status_code=status.HTTP_201_CREATED)
def create_voucher(
    voucher: VoucherCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    """
    Post a voucher with its lines.

    Debits must equal credits. Receipt, payment and contra vouchers need a
    cash or bank ``account``; its posting is generated from the lines.
    """
    db_voucher = crud_vouchers.create_voucher(db, voucher=voucher, user_id=user_id)
    return crud_vouchers.get_voucher(db, voucher_id=db_voucher.id, user_id=user_id)


@router.get("", response_model=List[Voucher])
def get_vouchers(
    voucher_type: Optional[int] = Query(None, alias="type", ge=1, le=7),
    is_approved: Optional[bool] = Query(None, alias="isApproved"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    voucher_no: Optional[int] = Query(None, alias="voucherNo"),
    is_post_dated: Optional[bool] = Query(None, alias="isPostDated"),
    coa_account_id: Optional[int] = Query(None, alias="coaAccountId"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_vouchers.list_vouchers(
        db,
        user_id=user_id,
        voucher_type=voucher_type,
        is_approved=is_approved,
        date_from=date_from,
        date_to=date_to,
        voucher_no=voucher_no,
        is_post_dated=is_post_dated,
        coa_account_id=coa_account_id,
    )


@router.get("/{voucher_id}", response_model=VoucherDetail)
def get_voucher(
    voucher_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_vouchers.get_voucher(db, voucher_id=voucher_id, user_id=user_id)


@router.post("/{voucher_id}/approve", response_model=VoucherDetail)
def toggle_voucher_approval(
    voucher_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    """Approve an unapproved voucher, or unapprove an approved one."""
    return crud_vouchers.toggle_approval(db, voucher_id=voucher_id, user_id=user_id)


@router.post("/{voucher_id}/clear-post-dated", response_model=VoucherDetail)
def clear_post_dated_voucher(
    voucher_id: int,
    request: ClearPostDatedRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_vouchers.clear_post_dated(db, voucher_id=voucher_id, user_id=user_id, cleared_date=request.date)


@router.delete("/{voucher_id}")
def delete_voucher(
    voucher_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    crud_vouchers.delete_voucher(db, voucher_id=voucher_id, user_id=user_id)
    return {"message": "Voucher deleted successfully"}
