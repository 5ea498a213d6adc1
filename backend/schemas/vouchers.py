from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal


class AccountRef(BaseModel):
    id: int = Field(..., gt=0)


class VoucherLineCreate(BaseModel):
    account: AccountRef
    dr: Decimal = Field(Decimal(0), ge=0, decimal_places=2)
    cr: Decimal = Field(Decimal(0), ge=0, decimal_places=2)
    description: Optional[str] = None

    @model_validator(mode='after')
    def check_single_side(self):
        if self.dr > 0 and self.cr > 0:
            raise ValueError('A voucher line cannot carry both a debit and a credit.')
        return self


class VoucherCreate(BaseModel):
    type: int = Field(..., ge=1, le=7)
    date: date
    total_amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2, alias="totalAmount")
    name: Optional[str] = None
    account: Optional[AccountRef] = None
    lines: List[VoucherLineCreate] = Field(..., min_length=1, alias="list")
    cheque_no: Optional[str] = Field(None, alias="chequeNo")
    cheque_date: Optional[date] = Field(None, alias="chequeDate")

    class Config:
        populate_by_name = True

    @field_validator('cheque_no')
    @classmethod
    def blank_cheque_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class ClearPostDatedRequest(BaseModel):
    date: date


# Response models

class VoucherLineAccount(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class VoucherTransaction(BaseModel):
    id: int
    voucher_id: int
    coa_account_id: int
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None
    date: date
    is_approved: bool
    account: Optional[VoucherLineAccount] = None

    class Config:
        from_attributes = True


class Voucher(BaseModel):
    id: int
    voucher_no: int
    voucher_code: str
    type: int
    date: date
    name: Optional[str] = None
    total_amount: Decimal
    coa_account_id: Optional[int] = None
    is_approved: bool
    is_post_dated: bool
    cheque_no: Optional[str] = None
    cheque_date: Optional[date] = None
    cleared_date: Optional[date] = None
    is_auto: bool
    user_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VoucherDetail(Voucher):
    transactions: List[VoucherTransaction] = []
