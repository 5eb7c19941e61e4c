"""
Utility functions for MoneyTags
"""
from __future__ import annotations
import logging
import os
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def parse_date(s: str) -> date:
    """Parse YYYY-MM-DD date string"""
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def new_id() -> str:
    """Generate an opaque identifier for participants and expenses"""
    return str(uuid.uuid4())


def format_amount(amount: int, currency: str = "PYG") -> str:
    """Format an integer amount with dot thousands separators, e.g. 150.000 Gs"""
    symbol = "Gs" if currency == "PYG" else currency
    return f"{amount:,}".replace(",", ".") + f" {symbol}"


def parse_pairs(text: str) -> Dict[str, str]:
    """
    Parse "A:50,B:50" into {"A": "50", "B": "50"}.
    Values are left as strings; the caller decides their type.
    """
    out: Dict[str, str] = {}
    for pair in text.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if ":" not in pair:
            raise ValueError(f"Expected key:value, got '{pair}'")
        k, v = pair.rsplit(":", 1)
        out[k.strip()] = v.strip()
    return out


def parse_list(text: str) -> List[str]:
    """Parse "A,B,C" into ["A", "B", "C"]"""
    return [x.strip() for x in text.split(",") if x.strip()]


def app_dir() -> str:
    """
    Get application data directory: $MONEYTAGS_HOME or ~/.moneytags
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("MONEYTAGS_HOME") or os.path.expanduser("~/.moneytags")
    os.makedirs(path, exist_ok=True)
    return path


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging for command-line use"""
    name = (level or os.environ.get("MONEYTAGS_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(level=getattr(logging, name, logging.WARNING), format=LOG_FORMAT)
