"""
Command handlers for the MoneyTags command line
"""
from __future__ import annotations
import logging
import os
import sys
from datetime import date
from typing import Dict, List, Optional, TextIO

from models import SPLIT_EQUAL, SPLIT_EXACT, SPLIT_PERCENTAGE, Group
from config import get_default_group, load_group, save_group
from errors import InvalidSplitInput
from split_calculator import percentage_of_total, redistribute_percentages
from utils import format_amount, new_id, parse_date, parse_list, parse_pairs
from computations import (
    add_participant,
    check_expense,
    compute_summary,
    find_participant,
    is_settled,
    record_expense,
    remove_expense,
    remove_participant,
    simplify_debts,
)
from excel_export import export_excel
from csv_handler import export_debts_to_csv, export_expenses_to_csv, import_expenses_from_csv

logger = logging.getLogger(__name__)


class MoneyTagsApp:
    """Operations on one group ledger file"""

    def __init__(self, ledger_path: str, out: Optional[TextIO] = None):
        self.ledger_path = ledger_path
        self.out = out or sys.stdout
        self.group: Optional[Group] = None

    # ---------- File ----------
    def open_ledger(self) -> Group:
        self.group = load_group(self.ledger_path)
        return self.group

    def save_ledger(self):
        save_group(self.group, self.ledger_path)

    def new_ledger(self, name: str, currency: str, members: List[str], guests: List[str],
                   force: bool = False) -> Group:
        """Create a ledger file, seeded from the app directory's participants.json"""
        if os.path.exists(self.ledger_path) and not force:
            raise ValueError(f"{self.ledger_path} already exists (use --force to overwrite)")
        self.group = get_default_group(name)
        self.group.currency = currency
        for n in members:
            add_participant(self.group, n)
        for n in guests:
            add_participant(self.group, n, is_guest=True)
        self.save_ledger()
        self._print(f"Created {name} with {len(self.group.participants)} participants")
        return self.group

    # ---------- Participants ----------
    def add_participant(self, name: str, is_guest: bool = False, participant_id: Optional[str] = None):
        group = self.open_ledger()
        p = add_participant(group, name, is_guest=is_guest, participant_id=participant_id)
        self.save_ledger()
        self._print(f"Added {'guest ' if p.is_guest else ''}{p.name} ({p.id})")

    def remove_participant(self, ref: str):
        group = self.open_ledger()
        p = remove_participant(group, ref)
        self.save_ledger()
        self._print(f"Removed {p.name}")

    # ---------- Expenses ----------
    def add_expense(
        self,
        amount: int,
        paid_by: str,
        split_type: str = SPLIT_EQUAL,
        among: Optional[str] = None,
        split: Optional[str] = None,
        date_str: Optional[str] = None,
        description: str = "",
        notes: str = "",
    ):
        """Record an expense; participants can be given by id or name"""
        group = self.open_ledger()
        payer = find_participant(group, paid_by)
        split_input = self._split_input(group, split_type, among, split)
        if date_str:
            parse_date(date_str)
        e = record_expense(group, amount, payer.id, split_type, split_input,
                           date=date_str, description=description, notes=notes)
        self.save_ledger()
        names = group.participant_names()
        shares = ", ".join(f"{names[p]} {format_amount(v, group.currency)}" for p, v in e.splits.items())
        self._print(f"Added expense {e.id}: {format_amount(e.amount, group.currency)} "
                    f"paid by {payer.name} ({shares})")

    def remove_expense(self, expense_id: str):
        group = self.open_ledger()
        e = remove_expense(group, expense_id)
        self.save_ledger()
        self._print(f"Removed expense {e.id} ({e.description or format_amount(e.amount, group.currency)})")

    def _split_input(self, group: Group, split_type: str, among: Optional[str], split: Optional[str]):
        if split_type == SPLIT_EQUAL:
            if split:
                raise InvalidSplitInput("Use --among for an equal split")
            refs = parse_list(among) if among else group.participant_ids()
            return [find_participant(group, r).id for r in refs]
        if split_type not in (SPLIT_PERCENTAGE, SPLIT_EXACT):
            # let the calculator report the unknown type
            return split
        if not split and split_type == SPLIT_EXACT:
            raise InvalidSplitInput("An exact split needs --split id:amount,...")
        out: Dict[str, object] = {}
        for ref, raw in parse_pairs(split or "").items():
            pid = find_participant(group, ref).id
            try:
                out[pid] = float(raw) if split_type == SPLIT_PERCENTAGE else int(raw)
            except ValueError:
                raise InvalidSplitInput(f"Invalid {split_type} value for {ref}: {raw!r}") from None
        if split_type == SPLIT_PERCENTAGE and (among or not out):
            # participants without a percentage share what is left of 100
            refs = parse_list(among) if among else group.participant_ids()
            ids = [find_participant(group, r).id for r in refs]
            ids += [p for p in out if p not in ids]
            return redistribute_percentages(out, ids)
        return out

    # ---------- Reports ----------
    def show_balances(self, start: Optional[date] = None, end: Optional[date] = None):
        group = self.open_ledger()
        summary = compute_summary(group, start, end)
        names = group.participant_names()
        spent = sum(s["owed"] for s in summary.values())
        self._print(f"{'Participant':<20} {'Paid':>14} {'Owed':>14} {'Net':>14} {'Share':>7}")
        for p in group.participant_ids():
            s = summary[p]
            share = percentage_of_total(s["owed"], spent)
            self._print(f"{names[p]:<20} {s['paid']:>14,} {s['owed']:>14,} {s['net']:>14,} {share:>6.1f}%")

    def settle(self, start: Optional[date] = None, end: Optional[date] = None,
               csv_path: Optional[str] = None):
        """Print who owes whom"""
        group = self.open_ledger()
        summary = compute_summary(group, start, end)
        net = {p: s["net"] for p, s in summary.items()}
        names = group.participant_names()
        if is_settled(net):
            self._print("Everyone is settled up.")
        debts = simplify_debts(net)
        for d in debts:
            self._print(f"{names[d.from_participant]} owes {names[d.to_participant]} "
                        f"{format_amount(d.amount, group.currency)}")
        if csv_path:
            export_debts_to_csv(debts, csv_path, names)
            self._print(f"Exported {len(debts)} transfers to {csv_path}")
        return debts

    # ---------- Export / Import ----------
    def export_excel(self, filepath: str, start: Optional[date] = None, end: Optional[date] = None):
        group = self.open_ledger()
        export_excel(group, filepath, start, end)
        self._print(f"Exported: {filepath}")

    def export_csv(self, filepath: str):
        group = self.open_ledger()
        export_expenses_to_csv(group.expenses, filepath)
        self._print(f"Exported {len(group.expenses)} expenses to {filepath}")

    def import_csv(self, filepath: str, replace: bool = False):
        """Append (or replace with) expenses from a CSV file"""
        group = self.open_ledger()
        imported = import_expenses_from_csv(filepath)
        if not imported:
            self._print("No expenses found in CSV file.")
            return
        ids = group.participant_ids()
        taken = set() if replace else {e.id for e in group.expenses}
        for e in imported:
            check_expense(e, ids)
            if e.id in taken:
                old_id, e.id = e.id, new_id()
                logger.info("Imported expense %s already exists; stored as %s", old_id, e.id)
            taken.add(e.id)
        self.group = Group(
            name=group.name,
            participants=group.participants,
            expenses=imported if replace else group.expenses + imported,
            currency=group.currency,
            version=group.version,
        )
        self.save_ledger()
        logger.info("Imported %d expenses from %s into %s", len(imported), filepath, group.name)
        verb = "Replaced with" if replace else "Appended"
        self._print(f"{verb} {len(imported)} expenses.")

    def _print(self, text: str):
        print(text, file=self.out)
