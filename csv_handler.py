"""
CSV export and import functionality for MoneyTags
"""
from __future__ import annotations
import csv
from typing import Dict, List, Optional

from models import Debt, Expense

EXPENSE_COLUMNS = ['id', 'date', 'paid_by', 'description', 'amount', 'split_type', 'splits', 'notes']


def export_expenses_to_csv(expenses: List[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file
    CSV columns: id, date, paid_by, description, amount, split_type, splits, notes
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(EXPENSE_COLUMNS)

        for e in expenses:
            # participant:amount pairs
            splits_str = ';'.join([f"{k}:{v}" for k, v in e.splits.items()])
            writer.writerow([
                e.id,
                e.date,
                e.paid_by,
                e.description,
                e.amount,
                e.split_type,
                splits_str,
                e.notes
            ])


def import_expenses_from_csv(filepath: str) -> List[Expense]:
    """
    Import expenses list from CSV file
    Returns list of Expense objects
    """
    expenses = []

    with open(filepath, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        missing = [c for c in EXPENSE_COLUMNS if c != 'notes' and c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

        for row in reader:
            splits: Dict[str, int] = {}
            if row['splits']:
                for pair in row['splits'].split(';'):
                    if ':' in pair:
                        k, v = pair.rsplit(':', 1)
                        splits[k.strip()] = int(v.strip())

            expense = Expense(
                id=row['id'],
                date=row['date'],
                paid_by=row['paid_by'],
                description=row['description'],
                amount=int(row['amount']),
                split_type=row['split_type'],
                splits=splits,
                notes=row.get('notes') or ''
            )
            expenses.append(expense)

    return expenses


def export_debts_to_csv(
    debts: List[Debt],
    filepath: str,
    names: Optional[Dict[str, str]] = None
) -> None:
    """
    Export settlement transfers to CSV file
    CSV columns: from, to, amount (participant names when given)
    """
    names = names or {}
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['from', 'to', 'amount'])
        for d in debts:
            writer.writerow([
                names.get(d.from_participant, d.from_participant),
                names.get(d.to_participant, d.to_participant),
                d.amount
            ])
