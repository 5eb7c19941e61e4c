"""
Balances, debt simplification and group bookkeeping for MoneyTags
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from errors import InvalidSplitInput, SplitError, UnbalancedInputError
from models import SPLIT_EXACT, SPLIT_TYPES, Debt, Expense, Group, Participant
from split_calculator import calculate_split, validate_splits_sum
from utils import new_id, parse_date, today_str

logger = logging.getLogger(__name__)


def compute_balances(expenses: Iterable[Expense], participants: Iterable[str]) -> Dict[str, int]:
    """
    Net balance per participant: total paid minus total owed.
    Positive -> should receive; negative -> should pay.
    """
    balances = {p: 0 for p in participants}
    for e in expenses:
        if e.paid_by not in balances:
            raise InvalidSplitInput(f"Expense {e.id} paid by unknown participant {e.paid_by}")
        unknown = [p for p in e.splits if p not in balances]
        if unknown:
            raise InvalidSplitInput(
                f"Expense {e.id} splits reference unknown participants: {', '.join(unknown)}"
            )
        if not validate_splits_sum(e.splits, e.amount):
            logger.warning(
                "Expense %s splits sum to %d but amount is %d",
                e.id, sum(e.splits.values()), e.amount,
            )
        balances[e.paid_by] += e.amount
        for p, owed in e.splits.items():
            balances[p] -= owed
    return balances


def simplify_debts(balances: Mapping[str, int]) -> List[Debt]:
    """
    Greedy settlement: the largest debtor pays the largest creditor until
    one of them is square, then move on.
    Produces at most (debtors + creditors - 1) transfers.
    """
    total = sum(balances.values())
    if total != 0:
        logger.error("Cannot settle unbalanced balances (sum %d): %s", total, dict(balances))
        raise UnbalancedInputError(total)

    # sorted() is stable, so equal amounts keep the mapping's order
    debtors = [[p, -v] for p, v in balances.items() if v < 0]
    creditors = [[p, v] for p, v in balances.items() if v > 0]
    debtors.sort(key=lambda x: x[1], reverse=True)
    creditors.sort(key=lambda x: x[1], reverse=True)

    debts: List[Debt] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        x = min(debtor[1], creditor[1])
        debts.append(Debt(debtor[0], creditor[0], x))
        debtor[1] -= x
        creditor[1] -= x
        if debtor[1] == 0:
            i += 1
        if creditor[1] == 0:
            j += 1

    logger.debug("Settled %d debtors and %d creditors with %d transfers",
                 len(debtors), len(creditors), len(debts))
    return debts


def apply_transfers(balances: Mapping[str, int], debts: Iterable[Debt]) -> Dict[str, int]:
    """Replay transfers against balances; a full settlement leaves all zeros"""
    out = dict(balances)
    for d in debts:
        out[d.from_participant] = out.get(d.from_participant, 0) + d.amount
        out[d.to_participant] = out.get(d.to_participant, 0) - d.amount
    return out


def is_settled(balances: Mapping[str, int]) -> bool:
    """True when nobody owes anything"""
    return all(v == 0 for v in balances.values())


def settle_expenses(expenses: Iterable[Expense], participants: Iterable[str]) -> List[Debt]:
    """Balances and settlement transfers for a set of expenses in one step"""
    return simplify_debts(compute_balances(expenses, participants))


def filter_expenses_by_date(
    expenses: List[Expense],
    start: Optional[date],
    end: Optional[date]
) -> List[Expense]:
    """Filter expenses by date range"""
    out = []
    for e in expenses:
        ed = parse_date(e.date)
        if start and ed < start:
            continue
        if end and ed > end:
            continue
        out.append(e)
    return out


def compute_summary(
    group: Group,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> Dict[str, dict]:
    """
    Compute summary statistics for each participant.
    Returns dict mapping participant id -> {paid, owed, net}
    """
    ids = group.participant_ids()
    exps = filter_expenses_by_date(group.expenses, start, end)

    paid = {p: 0 for p in ids}
    owed = {p: 0 for p in ids}
    for e in exps:
        if e.paid_by in paid:
            paid[e.paid_by] += e.amount
        for p, v in e.splits.items():
            if p in owed:
                owed[p] += v

    net = compute_balances(exps, ids)
    return {p: {"paid": paid[p], "owed": owed[p], "net": net[p]} for p in ids}


# ---------- Group bookkeeping ----------

def find_participant(group: Group, ref: str) -> Participant:
    """Look a participant up by id, then by case-insensitive name"""
    for p in group.participants:
        if p.id == ref:
            return p
    matches = [p for p in group.participants if p.name.lower() == ref.strip().lower()]
    if len(matches) == 1:
        return matches[0]
    if matches:
        raise KeyError(f"Several participants are named '{ref}'; use the id")
    raise KeyError(f"No participant '{ref}' in group '{group.name}'")


def add_participant(
    group: Group,
    name: str,
    is_guest: bool = False,
    participant_id: Optional[str] = None
) -> Participant:
    """Add a registered user or a guest to the group"""
    name = name.strip()
    if not name:
        raise ValueError("Participant name is required")
    if any(p.name.lower() == name.lower() for p in group.participants):
        raise ValueError(f"A participant named '{name}' already exists")
    pid = participant_id or new_id()
    if pid in group.participant_ids():
        raise ValueError(f"Participant id {pid} already exists")
    participant = Participant(id=pid, name=name, is_guest=is_guest)
    group.participants.append(participant)
    logger.info("Added participant %s (%s) to %s", name, pid, group.name)
    return participant


def remove_participant(group: Group, participant_id: str) -> Participant:
    """Remove a participant who is not involved in any expense"""
    participant = find_participant(group, participant_id)
    involved = [
        e.id for e in group.expenses
        if e.paid_by == participant.id or participant.id in e.splits
    ]
    if involved:
        raise ValueError(
            f"'{participant.name}' appears in {len(involved)} expense(s); remove those first"
        )
    group.participants = [p for p in group.participants if p.id != participant.id]
    logger.info("Removed participant %s from %s", participant.name, group.name)
    return participant


def record_expense(
    group: Group,
    amount: int,
    paid_by: str,
    split_type: str,
    split_input: Any,
    date: Optional[str] = None,
    description: str = "",
    notes: str = "",
) -> Expense:
    """Calculate the splits of a new expense and add it to the group"""
    ids = group.participant_ids()
    if paid_by not in ids:
        raise InvalidSplitInput(f"Payer {paid_by} is not a participant of '{group.name}'")
    splits = calculate_split(amount, split_type, split_input, ids)
    expense = Expense(
        id=new_id(),
        date=date or today_str(),
        paid_by=paid_by,
        amount=amount,
        split_type=split_type,
        splits=splits,
        description=description,
        notes=notes,
    )
    group.expenses.append(expense)
    logger.info("Recorded expense %s of %d paid by %s", expense.id, amount, paid_by)
    return expense


def remove_expense(group: Group, expense_id: str) -> Expense:
    """Delete an expense; balances are recomputed from what remains"""
    for i, e in enumerate(group.expenses):
        if e.id == expense_id:
            del group.expenses[i]
            logger.info("Removed expense %s from %s", expense_id, group.name)
            return e
    raise KeyError(f"No expense {expense_id} in group '{group.name}'")


def check_expense(expense: Expense, participants: Iterable[str]) -> None:
    """
    Reject an expense recorded elsewhere (e.g. imported) that could not have
    come out of record_expense: bad amount, unknown split type or payer,
    or splits that are not non-negative integers summing to the amount.
    """
    ids = list(participants)
    if expense.split_type not in SPLIT_TYPES:
        raise InvalidSplitInput(f"Expense {expense.id} has unknown split type {expense.split_type!r}")
    if expense.paid_by not in ids:
        raise InvalidSplitInput(f"Expense {expense.id} paid by unknown participant {expense.paid_by}")
    try:
        parse_date(expense.date)
    except ValueError:
        raise InvalidSplitInput(f"Expense {expense.id} has an invalid date {expense.date!r}") from None
    try:
        calculate_split(expense.amount, SPLIT_EXACT, expense.splits, ids)
    except SplitError as ex:
        raise type(ex)(f"Expense {expense.id}: {ex}") from None
