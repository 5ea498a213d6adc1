from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

VALID_GROUP_PARENTS = ["Assets", "Liabilities", "Capital", "Revenues", "Expenses", "Cost"]


class CoaGroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    parent: str  # Assets, Liabilities, Capital, Revenues, Expenses, Cost

    @field_validator('parent')
    @classmethod
    def validate_parent(cls, v):
        if v not in VALID_GROUP_PARENTS:
            raise ValueError(f"parent must be one of {VALID_GROUP_PARENTS}")
        return v


class CoaSubGroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    coa_group_id: int = Field(..., gt=0, alias="coaGroupId")
    type: Optional[str] = None

    class Config:
        populate_by_name = True


class CoaAccountCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    coa_group_id: int = Field(..., gt=0, alias="coaGroupId")
    coa_sub_group_id: int = Field(..., gt=0, alias="coaSubGroupId")
    person_id: Optional[str] = Field(None, alias="personId")
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class CoaAccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)
    coa_group_id: Optional[int] = Field(None, gt=0, alias="coaGroupId")
    coa_sub_group_id: Optional[int] = Field(None, gt=0, alias="coaSubGroupId")
    person_id: Optional[str] = Field(None, alias="personId")
    description: Optional[str] = None

    class Config:
        populate_by_name = True


# Response models

class CoaGroupRef(BaseModel):
    id: int
    name: str
    code: str
    parent: str
    is_active: bool

    class Config:
        from_attributes = True


class CoaSubGroupRef(BaseModel):
    id: int
    coa_group_id: int
    name: str
    code: str
    type: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class CoaAccountRef(BaseModel):
    id: int
    name: str
    code: str
    coa_group_id: int
    coa_sub_group_id: int
    is_active: bool
    is_default: bool

    class Config:
        from_attributes = True


class CoaAccount(CoaAccountRef):
    person_id: Optional[str] = None
    description: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    group: Optional[CoaGroupRef] = None
    sub_group: Optional[CoaSubGroupRef] = None


class CoaSubGroup(CoaSubGroupRef):
    user_id: Optional[str] = None
    group: Optional[CoaGroupRef] = None


class CoaSubGroupTree(CoaSubGroupRef):
    accounts: List[CoaAccountRef] = []


class CoaGroup(CoaGroupRef):
    user_id: Optional[str] = None


class CoaGroupTree(CoaGroupRef):
    sub_groups: List[CoaSubGroupTree] = []
