"""
Configuration and data loading/saving for MoneyTags
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import asdict
from typing import List

from models import Expense, Group, Participant
from split_calculator import validate_splits_sum
from utils import app_dir, new_id

logger = logging.getLogger(__name__)

GROUP_FILE_VERSION = 1


def load_participants(path: str) -> List[Participant]:
    """
    Load participant seed list from JSON file.
    Entries are either names or {"id", "name", "is_guest"} objects.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    out = []
    for item in data.get("participants", []):
        if isinstance(item, str):
            out.append(Participant(id=new_id(), name=item))
        else:
            out.append(Participant(
                id=item.get("id") or new_id(),
                name=item["name"],
                is_guest=bool(item.get("is_guest", False)),
            ))
    return out


def get_default_group(name: str = "MoneyTag") -> Group:
    """Create an empty group seeded with participants.json from the app directory"""
    participants = load_participants(os.path.join(app_dir(), "participants.json"))
    return Group(name=name, participants=participants, expenses=[])


def group_to_dict(group: Group) -> dict:
    """Convert Group object to dictionary for JSON serialization"""
    return {
        "version": group.version,
        "name": group.name,
        "currency": group.currency,
        "participants": [asdict(p) for p in group.participants],
        "expenses": [asdict(e) for e in group.expenses],
    }


def _is_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def dict_to_group(d: dict) -> Group:
    """Convert dictionary from JSON to Group object"""
    participants = []
    for i, p in enumerate(d.get("participants", [])):
        try:
            participants.append(Participant(**p))
        except TypeError as ex:
            raise ValueError(f"Malformed participant #{i + 1}: {ex}") from None
    exps = []
    for i, e in enumerate(d.get("expenses", [])):
        label = e.get("id", f"#{i + 1}") if isinstance(e, dict) else f"#{i + 1}"
        try:
            expense = Expense(**e)
        except TypeError as ex:
            raise ValueError(f"Malformed expense {label}: {ex}") from None
        if not _is_int(expense.amount):
            raise ValueError(f"Expense {label} amount must be an integer (got {expense.amount!r})")
        if not isinstance(expense.splits, dict) or not all(_is_int(v) for v in expense.splits.values()):
            raise ValueError(f"Expense {label} splits must map participant ids to integers")
        if not validate_splits_sum(expense.splits, expense.amount):
            logger.warning("Stored expense %s splits do not sum to its amount %d",
                           expense.id, expense.amount)
        exps.append(expense)

    return Group(
        version=d.get("version", GROUP_FILE_VERSION),
        name=d.get("name", "MoneyTag"),
        currency=d.get("currency", "PYG"),
        participants=participants,
        expenses=exps,
    )


def load_group(path: str) -> Group:
    """Read a group ledger JSON file"""
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    group = dict_to_group(d)
    logger.debug("Loaded group %s from %s: %d participants, %d expenses",
                 group.name, path, len(group.participants), len(group.expenses))
    return group


def save_group(group: Group, path: str) -> None:
    """Write a group ledger JSON file"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(group_to_dict(group), f, ensure_ascii=False, indent=2)
    logger.debug("Saved group %s to %s", group.name, path)
