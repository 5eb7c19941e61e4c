"""
Data models for MoneyTags shared-expense groups
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Union

SPLIT_EQUAL = "equal"
SPLIT_PERCENTAGE = "percentage"
SPLIT_EXACT = "exact"
SPLIT_TYPES = (SPLIT_EQUAL, SPLIT_PERCENTAGE, SPLIT_EXACT)


@dataclass
class Participant:
    """Group member, either a registered user or a guest"""
    id: str
    name: str
    is_guest: bool = False


@dataclass(frozen=True)
class EqualSplit:
    """Same share for every listed participant, in list order"""
    split_type: ClassVar[str] = SPLIT_EQUAL
    participants: List[str]


@dataclass(frozen=True)
class PercentageSplit:
    """Participant id -> percentage of the total (sum to 100)"""
    split_type: ClassVar[str] = SPLIT_PERCENTAGE
    percentages: Dict[str, float]


@dataclass(frozen=True)
class ExactSplit:
    """Participant id -> amount owed (sum to the total)"""
    split_type: ClassVar[str] = SPLIT_EXACT
    amounts: Dict[str, int]


SplitInput = Union[EqualSplit, PercentageSplit, ExactSplit]


@dataclass
class Expense:
    """Single shared expense with its materialised splits"""
    id: str
    date: str  # YYYY-MM-DD
    paid_by: str  # participant id
    amount: int  # integer currency units
    split_type: str
    splits: Dict[str, int]  # participant id -> owed amount (sum to amount)
    description: str = ""
    notes: str = ""


@dataclass(frozen=True)
class Debt:
    """Transfer that settles part of a group's balances"""
    from_participant: str
    to_participant: str
    amount: int


@dataclass
class Group:
    """MoneyTags group: participants and the expenses they share"""
    name: str
    participants: List[Participant]
    expenses: List[Expense] = field(default_factory=list)
    currency: str = "PYG"
    version: int = 1

    def participant_ids(self) -> List[str]:
        return [p.id for p in self.participants]

    def participant_names(self) -> Dict[str, str]:
        return {p.id: p.name for p in self.participants}
