"""
Excel export functionality for MoneyTags
"""
from __future__ import annotations
import logging
import re
from datetime import date, datetime
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from models import Group
from computations import (
    filter_expenses_by_date,
    compute_summary,
    simplify_debts
)

logger = logging.getLogger(__name__)

AMOUNT_FORMAT = "#,##0"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            s = str(v)
            max_len = max(max_len, len(s))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _sheet_title(name: str, taken: set) -> str:
    """Excel sheet titles: at most 31 chars, none of []:*?/\\, unique ignoring case"""
    base = re.sub(r"[\[\]:*?/\\]", "_", name)[:26]
    title = base + "_paid"
    n = 1
    while title.casefold() in taken:
        n += 1
        suffix = f"_paid{n}"
        title = base[:31 - len(suffix)] + suffix
    taken.add(title.casefold())
    return title


def export_excel(
    group: Group,
    filepath: str,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> None:
    """
    Export group to Excel file with multiple sheets:
    - One sheet per payer
    - Summary sheet
    - Transfers sheet
    """
    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    ids = group.participant_ids()
    names = group.participant_names()
    exps = filter_expenses_by_date(group.expenses, start, end)

    # Sheets per payer, in participant order
    payers = [p for p in ids if any(e.paid_by == p for e in exps)]
    titles = set()
    for payer in payers:
        ws = wb.create_sheet(_sheet_title(names[payer], titles))
        headers = ["description", "amount", "split"] + [f"{names[p]} owes" for p in ids]
        ws.append(headers)
        _style_header(ws, 1)
        ws.freeze_panes = "A2"

        payer_exps = [e for e in exps if e.paid_by == payer]
        payer_exps.sort(key=lambda e: (e.date, e.description))
        by_date = {}
        for e in payer_exps:
            by_date.setdefault(e.date, []).append(e)

        # Title row per day like "11.01"
        for d, items in by_date.items():
            try:
                title = datetime.strptime(d, "%Y-%m-%d").strftime("%m.%d")
            except ValueError:
                title = d
            ws.append([title] + [""] * (len(headers) - 1))
            title_row = ws.max_row
            ws.cell(title_row, 1).font = Font(bold=True)
            ws.cell(title_row, 1).fill = PatternFill("solid", fgColor="D9E1F2")

            for e in items:
                ws.append([e.description, e.amount, e.split_type] + [e.splits.get(p, 0) for p in ids])

            # blank line between days
            ws.append([""] * len(headers))

        # Footer totals as formulas
        ws.append(["TOTALS"] + [""] * (len(headers) - 1))
        trow = ws.max_row
        ws.cell(trow, 1).font = Font(bold=True)
        first_data_row = 2
        last_data_row = trow - 2
        if last_data_row >= first_data_row:
            ws.cell(trow, 2).value = f"=SUM(B{first_data_row}:B{last_data_row})"
            for i in range(len(ids)):
                letter = get_column_letter(4 + i)
                ws.cell(trow, 4 + i).value = f"=SUM({letter}{first_data_row}:{letter}{last_data_row})"

        for r in range(2, ws.max_row + 1):
            ws.cell(r, 2).number_format = AMOUNT_FORMAT
            for c in range(4, 4 + len(ids)):
                ws.cell(r, c).number_format = AMOUNT_FORMAT

        _autosize_columns(ws)

    # Summary sheet
    ws = wb.create_sheet("Summary")
    summary = compute_summary(group, start, end)
    ws.append(["Participant", "Paid", "Owed", "Net (Paid-Owed)"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for p in ids:
        s = summary[p]
        ws.append([names[p], s["paid"], s["owed"], s["net"]])
    for r in range(2, ws.max_row + 1):
        for c in range(2, 5):
            ws.cell(r, c).number_format = AMOUNT_FORMAT
    _autosize_columns(ws)

    # Transfers sheet
    ws = wb.create_sheet("Transfers")
    ws.append(["From (Debtor)", "To (Creditor)", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    net = {p: summary[p]["net"] for p in ids}
    for d in simplify_debts(net):
        ws.append([names[d.from_participant], names[d.to_participant], d.amount])
    for r in range(2, ws.max_row + 1):
        ws.cell(r, 3).number_format = AMOUNT_FORMAT
    _autosize_columns(ws)

    wb.save(filepath)
    logger.info("Exported %d expenses of %s to %s", len(exps), group.name, filepath)
