import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import create_audit_log
from database import commit_or_rollback
from exceptions import DuplicateCode, LedgerValidationError, ProtectedRecord, RecordNotFound
from models import chart_of_accounts as coa_model
from schemas.audit_log import AuditLogCreate
from schemas.chart_of_accounts import CoaAccountCreate, CoaAccountUpdate, CoaGroupCreate, CoaSubGroupCreate
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)

CoaGroup = coa_model.CoaGroup
CoaSubGroup = coa_model.CoaSubGroup
CoaAccount = coa_model.CoaAccount


def visible_to(model, user_id: Optional[str]):
    """Rows owned by the caller plus the shared (NULL owner) rows."""
    if user_id is None:
        return model.user_id.is_(None)
    return or_(model.user_id == user_id, model.user_id.is_(None))


def owned_by(model, user_id: Optional[str]):
    if user_id is None:
        return model.user_id.is_(None)
    return model.user_id == user_id


# Groups and sub-groups

def list_groups(db: Session, user_id: str) -> List[CoaGroup]:
    """Active groups with their active sub-groups and active accounts, ordered by code."""
    return (
        db.query(CoaGroup)
        .filter(CoaGroup.is_active == True, visible_to(CoaGroup, user_id))
        .options(
            selectinload(
                CoaGroup.sub_groups.and_(CoaSubGroup.is_active == True, visible_to(CoaSubGroup, user_id))
            ).selectinload(
                CoaSubGroup.accounts.and_(CoaAccount.is_active == True, visible_to(CoaAccount, user_id))
            )
        )
        .order_by(CoaGroup.code)
        .execution_options(populate_existing=True)
        .all()
    )


def get_group(db: Session, group_id: int, user_id: Optional[str]) -> Optional[CoaGroup]:
    return db.query(CoaGroup).filter(CoaGroup.id == group_id, visible_to(CoaGroup, user_id)).first()


def get_sub_group(db: Session, sub_group_id: int, user_id: Optional[str]) -> Optional[CoaSubGroup]:
    return db.query(CoaSubGroup).filter(CoaSubGroup.id == sub_group_id, visible_to(CoaSubGroup, user_id)).first()


def list_sub_groups(db: Session, user_id: str, group_id: Optional[int] = None) -> List[CoaSubGroup]:
    query = db.query(CoaSubGroup).filter(CoaSubGroup.is_active == True, visible_to(CoaSubGroup, user_id))
    if group_id is not None:
        query = query.filter(CoaSubGroup.coa_group_id == group_id)
    return query.order_by(CoaSubGroup.code).all()


def create_group(db: Session, group: CoaGroupCreate, user_id: Optional[str]) -> CoaGroup:
    db_group = CoaGroup(**group.model_dump(), is_active=True, user_id=user_id, created_by=user_id)
    db.add(db_group)
    commit_or_rollback(db)
    db.refresh(db_group)
    logger.info(f"COA group {db_group.code} created for owner {user_id}")
    return db_group


def create_sub_group(db: Session, sub_group: CoaSubGroupCreate, user_id: Optional[str]) -> CoaSubGroup:
    if not get_group(db, sub_group.coa_group_id, user_id):
        raise RecordNotFound(f"COA group {sub_group.coa_group_id} not found")

    db_sub_group = CoaSubGroup(**sub_group.model_dump(), is_active=True, user_id=user_id, created_by=user_id)
    db.add(db_sub_group)
    commit_or_rollback(db)
    db.refresh(db_sub_group)
    logger.info(f"COA sub-group {db_sub_group.code} created for owner {user_id}")
    return db_sub_group


# Accounts

def get_account(db: Session, account_id: int, user_id: Optional[str]) -> Optional[CoaAccount]:
    return db.query(CoaAccount).filter(CoaAccount.id == account_id, visible_to(CoaAccount, user_id)).first()


def get_account_by_code(db: Session, code: str, user_id: Optional[str]) -> Optional[CoaAccount]:
    """Exact-owner lookup; codes are unique per owner, not across the shared chart."""
    return db.query(CoaAccount).filter(CoaAccount.code == code, owned_by(CoaAccount, user_id)).first()


def list_accounts(
    db: Session,
    user_id: str,
    is_active: Optional[bool] = None,
    coa_group_id: Optional[int] = None,
    coa_sub_group_id: Optional[int] = None,
) -> List[CoaAccount]:
    query = (
        db.query(CoaAccount)
        .options(selectinload(CoaAccount.group), selectinload(CoaAccount.sub_group))
        .filter(visible_to(CoaAccount, user_id))
    )
    if is_active is not None:
        query = query.filter(CoaAccount.is_active == is_active)
    if coa_group_id is not None:
        query = query.filter(CoaAccount.coa_group_id == coa_group_id)
    if coa_sub_group_id is not None:
        query = query.filter(CoaAccount.coa_sub_group_id == coa_sub_group_id)
    return query.order_by(CoaAccount.code).all()


def _check_placement(db: Session, group_id: int, sub_group_id: int, user_id: Optional[str]):
    if not get_group(db, group_id, user_id):
        raise RecordNotFound(f"COA group {group_id} not found", details={"coaGroupId": group_id})
    sub_group = get_sub_group(db, sub_group_id, user_id)
    if not sub_group:
        raise RecordNotFound(f"COA sub-group {sub_group_id} not found", details={"coaSubGroupId": sub_group_id})
    if sub_group.coa_group_id != group_id:
        raise LedgerValidationError(
            f"Sub-group {sub_group.code} does not belong to group {group_id}",
            details={"coaGroupId": group_id, "coaSubGroupId": sub_group_id},
        )


def create_account(db: Session, account: CoaAccountCreate, user_id: Optional[str]) -> CoaAccount:
    if get_account_by_code(db, account.code, user_id):
        raise DuplicateCode(f"Account code {account.code} already exists", details={"code": account.code})
    _check_placement(db, account.coa_group_id, account.coa_sub_group_id, user_id)

    db_account = CoaAccount(
        **account.model_dump(),
        is_active=True,
        is_default=False,
        user_id=user_id,
        created_by=user_id,
    )
    db.add(db_account)
    commit_or_rollback(db)
    db.refresh(db_account)
    logger.info(f"COA account {db_account.code} created for owner {user_id}")
    return db_account


def update_account(db: Session, account_id: int, account_update: CoaAccountUpdate, user_id: str) -> CoaAccount:
    db_account = get_account(db, account_id, user_id)
    if not db_account:
        raise RecordNotFound(f"Account {account_id} not found")
    if db_account.is_default:
        raise ProtectedRecord("Default accounts cannot be updated", details={"id": account_id})

    update_data = account_update.model_dump(exclude_unset=True)
    new_code = update_data.get("code")
    if new_code and new_code != db_account.code:
        clash = get_account_by_code(db, new_code, db_account.user_id)
        if clash and clash.id != db_account.id:
            raise DuplicateCode(f"Account code {new_code} already exists", details={"code": new_code})
    if "coa_group_id" in update_data or "coa_sub_group_id" in update_data:
        # Placement is resolved in the account's own scope: shared accounts stay under shared groups
        _check_placement(
            db,
            update_data.get("coa_group_id") or db_account.coa_group_id,
            update_data.get("coa_sub_group_id") or db_account.coa_sub_group_id,
            db_account.user_id,
        )

    old_values = sqlalchemy_to_dict(db_account)
    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = user_id

    create_audit_log(db, AuditLogCreate(
        table_name="coa_accounts",
        record_id=db_account.id,
        changed_by=user_id,
        action="UPDATE",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_account),
    ))
    commit_or_rollback(db)
    db.refresh(db_account)
    return db_account


def toggle_account_status(db: Session, account_id: int, user_id: str) -> CoaAccount:
    db_account = get_account(db, account_id, user_id)
    if not db_account:
        raise RecordNotFound(f"Account {account_id} not found")
    if db_account.is_default:
        raise ProtectedRecord("Default accounts cannot be deactivated", details={"id": account_id})

    db_account.is_active = not db_account.is_active
    db_account.updated_by = user_id
    create_audit_log(db, AuditLogCreate(
        table_name="coa_accounts",
        record_id=db_account.id,
        changed_by=user_id,
        action="ACTIVATE" if db_account.is_active else "DEACTIVATE",
        old_values={"is_active": not db_account.is_active},
        new_values={"is_active": db_account.is_active},
    ))
    commit_or_rollback(db)
    db.refresh(db_account)
    return db_account


def _accounts_by_sub_group_type(db: Session, user_id: str, types, include: bool, is_active: Optional[bool]):
    query = (
        db.query(CoaAccount)
        .join(CoaSubGroup, CoaAccount.coa_sub_group_id == CoaSubGroup.id)
        .filter(visible_to(CoaAccount, user_id))
    )
    if include:
        query = query.filter(CoaSubGroup.type.in_(types))
    else:
        query = query.filter(or_(CoaSubGroup.type.is_(None), CoaSubGroup.type.notin_(types)))
    if is_active is not None:
        query = query.filter(CoaAccount.is_active == is_active)
    return query.order_by(CoaAccount.code).all()


def list_cash_accounts(db: Session, user_id: str, is_active: Optional[bool] = None) -> List[CoaAccount]:
    return _accounts_by_sub_group_type(db, user_id, [coa_model.CASH_TYPE], True, is_active)


def list_bank_accounts(db: Session, user_id: str, is_active: Optional[bool] = None) -> List[CoaAccount]:
    return _accounts_by_sub_group_type(db, user_id, [coa_model.BANK_TYPE], True, is_active)


def list_cash_and_bank_accounts(db: Session, user_id: str, is_active: Optional[bool] = None) -> List[CoaAccount]:
    return _accounts_by_sub_group_type(db, user_id, list(coa_model.CASH_AND_BANK_TYPES), True, is_active)


def list_accounts_except_cash_and_bank(db: Session, user_id: str, is_active: Optional[bool] = None) -> List[CoaAccount]:
    return _accounts_by_sub_group_type(db, user_id, list(coa_model.CASH_AND_BANK_TYPES), False, is_active)


# Default chart

DEFAULT_CHART = [
    {
        "code": "1000", "name": "Assets", "parent": coa_model.GroupParent.ASSETS.value,
        "sub_groups": [
            {"code": "1001", "name": "Cash", "type": coa_model.CASH_TYPE, "accounts": [
                {"code": "1001-001", "name": "Main Cash Account", "is_default": True},
            ]},
            {"code": "1002", "name": "Bank", "type": coa_model.BANK_TYPE, "accounts": [
                {"code": "1002-001", "name": "Main Bank Account", "is_default": True},
            ]},
            {"code": "1003", "name": "Inventory", "type": "inventory", "accounts": [
                {"code": "1003-001", "name": "Inventory Account"},
            ]},
        ],
    },
    {
        "code": "2000", "name": "Liabilities", "parent": coa_model.GroupParent.LIABILITIES.value,
        "sub_groups": [{"code": "2001", "name": "Accounts Payable", "accounts": []}],
    },
    {
        "code": "3000", "name": "Capital", "parent": coa_model.GroupParent.CAPITAL.value,
        "sub_groups": [{"code": "3001", "name": "Capital", "accounts": []}],
    },
    {
        "code": "4000", "name": "Revenues", "parent": coa_model.GroupParent.REVENUES.value,
        "sub_groups": [{"code": "4001", "name": "Sales", "accounts": [
            {"code": "4001-001", "name": "Sales Revenue"},
        ]}],
    },
    {
        "code": "5000", "name": "Expenses", "parent": coa_model.GroupParent.EXPENSES.value,
        "sub_groups": [{"code": "5001", "name": "Operating Expenses", "accounts": []}],
    },
    {
        "code": "6000", "name": "Cost", "parent": coa_model.GroupParent.COST.value,
        "sub_groups": [{"code": "6001", "name": "Cost of Goods Sold", "accounts": []}],
    },
]


def initialize_default_chart(db: Session, user_id: Optional[str] = None) -> int:
    """
    Seed the default chart of accounts for an owner (NULL owner = the shared chart).

    Existing groups, sub-groups and accounts are matched by code and left
    untouched, so running it twice is harmless. Returns the number of rows created.
    """
    created = 0
    for group_data in DEFAULT_CHART:
        group = db.query(CoaGroup).filter(CoaGroup.code == group_data["code"], owned_by(CoaGroup, user_id)).first()
        if not group:
            group = CoaGroup(
                code=group_data["code"], name=group_data["name"], parent=group_data["parent"],
                is_active=True, user_id=user_id, created_by=user_id,
            )
            db.add(group)
            db.flush()
            created += 1

        for sub_data in group_data["sub_groups"]:
            sub_group = db.query(CoaSubGroup).filter(
                CoaSubGroup.code == sub_data["code"],
                CoaSubGroup.coa_group_id == group.id,
                owned_by(CoaSubGroup, user_id),
            ).first()
            if not sub_group:
                sub_group = CoaSubGroup(
                    coa_group_id=group.id, code=sub_data["code"], name=sub_data["name"],
                    type=sub_data.get("type"), is_active=True, user_id=user_id, created_by=user_id,
                )
                db.add(sub_group)
                db.flush()
                created += 1

            for account_data in sub_data["accounts"]:
                if get_account_by_code(db, account_data["code"], user_id):
                    continue
                db.add(CoaAccount(
                    coa_group_id=group.id, coa_sub_group_id=sub_group.id,
                    code=account_data["code"], name=account_data["name"],
                    is_default=account_data.get("is_default", False),
                    is_active=True, user_id=user_id, created_by=user_id,
                ))
                db.flush()
                created += 1

    commit_or_rollback(db)
    logger.info(f"Default chart of accounts initialized for owner {user_id}: {created} rows created")
    return created
