"""
Split calculation for shared expenses.

Turns an expense amount and a split specification into the amount each
participant owes, in integer currency units. Three split types are supported:

  equal       every listed participant owes the same; leftover units go to
              the first participants in list order
  percentage  each participant owes a percentage of the total; shares are
              apportioned with the largest-remainder method
  exact       each participant owes a given amount; the amounts must add up
              to the total

Whatever the split type, the result always sums exactly to the expense amount.
"""
from __future__ import annotations
import logging
import math
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from errors import EmptyParticipantSet, InvalidSplitInput, SplitSumMismatch
from models import (
    SPLIT_EQUAL,
    SPLIT_EXACT,
    SPLIT_PERCENTAGE,
    SPLIT_TYPES,
    EqualSplit,
    ExactSplit,
    PercentageSplit,
    SplitInput,
)

logger = logging.getLogger(__name__)

# Allowed distance of the percentage total from 100
PERCENTAGE_TOLERANCE = Fraction(1, 100)

_SPLIT_VARIANTS = (EqualSplit, PercentageSplit, ExactSplit)


def parse_split_input(split_type: str, raw: Any) -> SplitInput:
    """
    Build a split variant from its stored shape:
    a list of ids for "equal", a mapping id -> value for the other types.
    """
    if split_type not in SPLIT_TYPES:
        raise InvalidSplitInput(
            f"Unknown split type: {split_type!r}. Allowed: {', '.join(SPLIT_TYPES)}"
        )
    if split_type == SPLIT_EQUAL:
        if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
            raise InvalidSplitInput("An equal split takes a list of participant ids")
        return EqualSplit(list(raw))
    if not isinstance(raw, Mapping):
        raise InvalidSplitInput(f"A {split_type} split takes a mapping of participant id to value")
    if split_type == SPLIT_PERCENTAGE:
        return PercentageSplit(dict(raw))
    return ExactSplit(dict(raw))


def calculate_split(
    amount: int,
    split_type: str,
    split_input: Any,
    participants: Iterable[str],
) -> Dict[str, int]:
    """
    Calculate how much each participant owes for one expense.

    split_input is an EqualSplit / PercentageSplit / ExactSplit, or the raw
    stored shape accepted by parse_split_input. Every id it references must be
    one of participants. Returns participant id -> owed amount, in input order,
    summing exactly to amount.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidSplitInput(f"Amount must be a positive integer (got {amount!r})")

    members = list(participants)
    if not members:
        raise EmptyParticipantSet("At least one participant is required")

    if isinstance(split_input, _SPLIT_VARIANTS):
        if split_input.split_type != split_type:
            raise InvalidSplitInput(
                f"Split input is {split_input.split_type!r} but split type is {split_type!r}"
            )
        spec = split_input
    else:
        spec = parse_split_input(split_type, split_input)

    if isinstance(spec, EqualSplit):
        ids = list(spec.participants)
        _check_participants(ids, members)
        result = _equal_shares(amount, ids)
    elif isinstance(spec, PercentageSplit):
        _check_participants(list(spec.percentages), members)
        result = _percentage_shares(amount, spec.percentages)
    elif isinstance(spec, ExactSplit):
        _check_participants(list(spec.amounts), members)
        result = _exact_shares(amount, spec.amounts)
    else:
        raise InvalidSplitInput(f"Unsupported split input: {spec!r}")

    logger.debug("%s split of %d over %d participants: %s", split_type, amount, len(result), result)
    return result


def _check_participants(ids: Sequence[str], members: Sequence[str]) -> None:
    """Reject empty, duplicated or unknown participant references"""
    if not ids:
        raise EmptyParticipantSet("The split must include at least one participant")
    if len(set(ids)) != len(ids):
        raise InvalidSplitInput("Duplicate participants in split")
    allowed = set(members)
    unknown = [p for p in ids if p not in allowed]
    if unknown:
        raise InvalidSplitInput(f"Unknown participants: {', '.join(map(str, unknown))}")


def _equal_shares(amount: int, ids: Sequence[str]) -> Dict[str, int]:
    base, remainder = divmod(amount, len(ids))
    return {p: base + 1 if i < remainder else base for i, p in enumerate(ids)}


def _to_fraction(value: Any, pid: str) -> Fraction:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, Fraction)):
        raise InvalidSplitInput(f"Percentage for {pid} must be a number (got {value!r})")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidSplitInput(f"Percentage for {pid} must be finite")
        # repr keeps 33.33 as 3333/100 instead of the binary float
        return Fraction(repr(value))
    if isinstance(value, Decimal) and not value.is_finite():
        raise InvalidSplitInput(f"Percentage for {pid} must be finite")
    return Fraction(value)


def _percentage_shares(amount: int, percentages: Mapping[str, Any]) -> Dict[str, int]:
    ids = list(percentages)
    pcts = [_to_fraction(percentages[p], p) for p in ids]
    negative = [p for p, pct in zip(ids, pcts) if pct < 0]
    if negative:
        raise InvalidSplitInput(f"Percentages must not be negative: {', '.join(negative)}")

    total = sum(pcts, Fraction(0))
    if abs(total - 100) > PERCENTAGE_TOLERANCE:
        raise SplitSumMismatch(f"Percentages must sum to 100% (actual: {float(total):.2f}%)")

    # Quotas are scaled by the actual total so they always add up to amount
    quotas = [amount * pct / total for pct in pcts]
    shares = [math.floor(q) for q in quotas]
    leftover = amount - sum(shares)
    # Largest fractional remainder first; sort is stable so ties keep input order
    order = sorted(range(len(ids)), key=lambda i: quotas[i] - shares[i], reverse=True)
    for i in order[:leftover]:
        shares[i] += 1
    return dict(zip(ids, shares))


def _exact_shares(amount: int, amounts: Mapping[str, Any]) -> Dict[str, int]:
    for p, v in amounts.items():
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidSplitInput(f"Amount for {p} must be an integer (got {v!r})")
        if v < 0:
            raise InvalidSplitInput(f"Amount for {p} must not be negative")
    total = sum(amounts.values())
    if total != amount:
        raise SplitSumMismatch(
            f"Amounts must sum to {amount} (actual: {total}, difference: {abs(total - amount)})"
        )
    return dict(amounts)


def validate_splits_sum(splits: Mapping[str, int], expected_total: int) -> bool:
    """Check that calculated splits add up exactly to the expense amount"""
    return sum(splits.values()) == expected_total


def generate_equal_percentages(participant_ids: Sequence[str]) -> Dict[str, float]:
    """Equal percentages with two decimals that sum to exactly 100"""
    if not participant_ids:
        return {}
    hundredths = _equal_shares(10000, list(participant_ids))
    return {p: v / 100 for p, v in hundredths.items()}


def redistribute_percentages(
    current: Mapping[str, float],
    participant_ids: Sequence[str],
) -> Dict[str, float]:
    """
    Percentages for a changed participant selection.
    Participants already in current keep their percentage; whatever is left
    of 100 is shared equally among the newly selected ones.
    """
    if not current:
        return generate_equal_percentages(participant_ids)

    kept = {p: current[p] for p in participant_ids if p in current}
    added: List[str] = [p for p in participant_ids if p not in current]
    left = max(0, round((100 - sum(kept.values())) * 100))
    extra = _equal_shares(left, added) if added else {}

    out: Dict[str, float] = {}
    for p in participant_ids:
        out[p] = kept[p] if p in kept else extra[p] / 100
    return out


def percentage_of_total(amount: int, total: int) -> float:
    """Share of total represented by amount, in percent"""
    if total == 0:
        return 0.0
    return amount / total * 100
