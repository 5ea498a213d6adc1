from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from io import BytesIO
from datetime import date
from typing import Optional
import logging
from database import get_db
from schemas.financial_reports import BalanceSheet, DailyClosingReport, DailyClosingRequest, TrialBalance
from schemas.ledgers import GeneralJournal
from crud import financial_reports as crud_financial_reports
from utils.tenancy import get_owner_scope

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Financial Reports"],
)

TRIAL_BALANCE_SECTIONS = [
    ("assets", "ASSETS"),
    ("liabilities", "LIABILITIES"),
    ("capital", "CAPITAL"),
    ("revenues", "REVENUES"),
    ("expenses", "EXPENSES"),
    ("cost", "COST"),
]


@router.get("/trial-balance", response_model=TrialBalance)
def get_trial_balance(
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_financial_reports.get_trial_balance(db, user_id=user_id, date_from=date_from, date_to=date_to)


def write_trial_balance_excel(trial_balance: TrialBalance) -> BytesIO:
    """Render a trial balance as an xlsx workbook held in memory."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Trial Balance"

    header_fill = PatternFill(start_color="FF6600", end_color="FF6600", fill_type="solid")
    section_fill = PatternFill(start_color="FFFF00", end_color="FFFF00", fill_type="solid")
    bold_font = Font(bold=True)
    bold_font_white = Font(bold=True, color="FFFFFF")

    ws.append(["TRIAL BALANCE", f"{trial_balance.date_from:%d-%m-%Y} to {trial_balance.date_to:%d-%m-%Y}"])
    ws.cell(row=1, column=1).font = bold_font
    ws.append([])
    ws.append(["CODE", "ACCOUNT", "GROUP", "SUB GROUP", "DEBIT", "CREDIT", "BALANCE"])
    for cell in ws[ws.max_row]:
        cell.fill = header_fill
        cell.font = bold_font_white
        cell.alignment = Alignment(horizontal='center', vertical='center')

    for key, title in TRIAL_BALANCE_SECTIONS:
        rows = getattr(trial_balance, key)
        if not rows:
            continue
        ws.append([title])
        ws.cell(row=ws.max_row, column=1).fill = section_fill
        ws.cell(row=ws.max_row, column=1).font = bold_font
        for account in rows:
            ws.append([
                account.code,
                account.name,
                account.group,
                account.sub_group,
                float(account.debit),
                float(account.credit),
                float(account.balance),
            ])

    totals = trial_balance.totals
    ws.append(["TOTAL", "", "", "", float(totals.debit), float(totals.credit), float(totals.difference)])
    for cell in ws[ws.max_row]:
        cell.font = bold_font

    for row in ws.iter_rows(min_row=4, min_col=5, max_col=7):
        for cell in row:
            cell.number_format = '#,##0.00'
    for col_idx, width in enumerate([12, 32, 18, 22, 14, 14, 14], start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


@router.get("/trial-balance/export")
def export_trial_balance(
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    trial_balance = crud_financial_reports.get_trial_balance(db, user_id=user_id, date_from=date_from, date_to=date_to)
    output = write_trial_balance_excel(trial_balance)
    filename = f"trial_balance_{date_from.isoformat()}_{date_to.isoformat()}.xlsx"
    logger.info(f"Trial balance export {filename} generated for user {user_id}")
    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/balance-sheet", response_model=BalanceSheet)
def get_balance_sheet(
    as_of: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_financial_reports.get_balance_sheet(db, user_id=user_id, as_of=as_of)


@router.get("/general-journal", response_model=GeneralJournal)
def get_general_journal(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    return crud_financial_reports.get_general_journal(db, user_id=user_id, date_from=date_from, date_to=date_to)


@router.post("/daily-closing", response_model=DailyClosingReport)
def get_daily_closing(
    request: DailyClosingRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_owner_scope)
):
    """Opening balance, the day's receipts and payments, and closing balance per cash/bank account."""
    return crud_financial_reports.get_daily_closing(
        db,
        user_id=user_id,
        report_date=request.date,
        account_ids=request.account_ids,
    )
