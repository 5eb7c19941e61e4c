"""
Exceptions raised by the MoneyTags split and settlement logic
"""
from __future__ import annotations


class MoneyTagsError(Exception):
    """Base class for all MoneyTags errors"""


class SplitError(MoneyTagsError, ValueError):
    """Base class for errors in a split specification"""


class InvalidSplitInput(SplitError):
    """Malformed split: wrong shape, bad value type or unknown participant"""


class SplitSumMismatch(SplitError):
    """Percentages or exact amounts that do not reconcile with the total"""


class EmptyParticipantSet(SplitError):
    """A split was requested over no participants"""


class UnbalancedInputError(MoneyTagsError):
    """
    Balances handed to the debt simplifier do not sum to zero.
    Means an expense was stored with splits that do not add up to its amount.
    """

    def __init__(self, total: int):
        super().__init__(f"Balances must sum to 0 (actual: {total})")
        self.total = total
