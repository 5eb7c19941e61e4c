"""
MoneyTags
- Record shared expenses in a group and who owes what share of each.
- Work out the fewest transfers that settle the group, and export reports.

Run:
  moneytags init trip.json --participant Ana --participant Beto --guest Caro
  moneytags add-expense trip.json --amount 90000 --paid-by Ana
  moneytags settle trip.json

Dependencies:
  pip install openpyxl
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from errors import MoneyTagsError
from main_app import MoneyTagsApp
from models import SPLIT_EQUAL, SPLIT_TYPES
from utils import parse_date, setup_logging

logger = logging.getLogger(__name__)


def _date_arg(s: str):
    try:
        return parse_date(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{s}'") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moneytags", description="Shared-expense groups and debt settlement.")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default: $MONEYTAGS_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="create a group ledger file")
    p.add_argument("ledger")
    p.add_argument("--name", default="MoneyTag")
    p.add_argument("--currency", default="PYG")
    p.add_argument("--participant", action="append", default=[], help="registered participant name")
    p.add_argument("--guest", action="append", default=[], help="guest participant name")
    p.add_argument("--force", action="store_true", help="overwrite an existing file")

    p = sub.add_parser("add-participant", help="add a participant")
    p.add_argument("ledger")
    p.add_argument("name")
    p.add_argument("--guest", action="store_true")
    p.add_argument("--id", dest="participant_id")

    p = sub.add_parser("remove-participant", help="remove a participant with no expenses")
    p.add_argument("ledger")
    p.add_argument("participant", help="id or name")

    p = sub.add_parser("add-expense", help="record a shared expense")
    p.add_argument("ledger")
    p.add_argument("--amount", type=int, required=True, help="integer currency units")
    p.add_argument("--paid-by", required=True, help="payer id or name")
    p.add_argument("--split-type", choices=SPLIT_TYPES, default=SPLIT_EQUAL)
    p.add_argument("--among", help="equal split: comma separated ids or names (default: everyone)")
    p.add_argument("--split", help="percentage/exact split: name:value,name:value")
    p.add_argument("--date", dest="date_str", type=lambda s: _date_arg(s).isoformat())
    p.add_argument("--description", default="")
    p.add_argument("--notes", default="")

    p = sub.add_parser("remove-expense", help="delete an expense")
    p.add_argument("ledger")
    p.add_argument("expense_id")

    for name, help_text in (("balances", "paid, owed and net per participant"),
                            ("settle", "transfers that settle the group")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("ledger")
        p.add_argument("--start", type=_date_arg)
        p.add_argument("--end", type=_date_arg)
        if name == "settle":
            p.add_argument("--csv", dest="csv_path", help="also write the transfers to this CSV file")

    p = sub.add_parser("export-excel", help="write an .xlsx settlement report")
    p.add_argument("ledger")
    p.add_argument("output")
    p.add_argument("--start", type=_date_arg)
    p.add_argument("--end", type=_date_arg)

    p = sub.add_parser("export-csv", help="write expenses to CSV")
    p.add_argument("ledger")
    p.add_argument("output")

    p = sub.add_parser("import-csv", help="read expenses from CSV")
    p.add_argument("ledger")
    p.add_argument("input")
    p.add_argument("--replace", action="store_true", help="replace instead of append")

    return parser


def run(args: argparse.Namespace, app: MoneyTagsApp) -> None:
    cmd = args.command
    if cmd == "init":
        app.new_ledger(args.name, args.currency, args.participant, args.guest, force=args.force)
    elif cmd == "add-participant":
        app.add_participant(args.name, is_guest=args.guest, participant_id=args.participant_id)
    elif cmd == "remove-participant":
        app.remove_participant(args.participant)
    elif cmd == "add-expense":
        app.add_expense(args.amount, args.paid_by, args.split_type, args.among, args.split,
                        args.date_str, args.description, args.notes)
    elif cmd == "remove-expense":
        app.remove_expense(args.expense_id)
    elif cmd == "balances":
        app.show_balances(args.start, args.end)
    elif cmd == "settle":
        app.settle(args.start, args.end, args.csv_path)
    elif cmd == "export-excel":
        app.export_excel(args.output, args.start, args.end)
    elif cmd == "export-csv":
        app.export_csv(args.output)
    elif cmd == "import-csv":
        app.import_csv(args.input, replace=args.replace)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    app = MoneyTagsApp(args.ledger)
    try:
        run(args, app)
    except KeyError as ex:
        print(f"error: {ex.args[0]}", file=sys.stderr)
        return 1
    except (MoneyTagsError, ValueError, OSError) as ex:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"error: {ex}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
