import pytest

from config import load_group
from moneytags import main


@pytest.fixture
def ledger(tmp_path, monkeypatch):
    monkeypatch.setenv("MONEYTAGS_HOME", str(tmp_path / "home"))
    path = str(tmp_path / "trip.json")
    assert main(["init", path, "--name", "Trip", "--participant", "Ana",
                 "--participant", "Beto", "--guest", "Caro"]) == 0
    return path


def test_init_creates_group(ledger):
    group = load_group(ledger)
    assert group.name == "Trip"
    assert [(p.name, p.is_guest) for p in group.participants] == [
        ("Ana", False), ("Beto", False), ("Caro", True)]


def test_init_refuses_to_overwrite(ledger, capsys):
    assert main(["init", ledger]) == 1
    assert "already exists" in capsys.readouterr().err
    assert main(["init", ledger, "--force"]) == 0
    assert load_group(ledger).participants == []


def test_settle_scenario(ledger, capsys):
    assert main(["add-expense", ledger, "--amount", "90000", "--paid-by", "Ana",
                 "--description", "Hotel", "--date", "2025-11-01"]) == 0
    assert main(["add-expense", ledger, "--amount", "30000", "--paid-by", "beto"]) == 0
    capsys.readouterr()

    assert main(["settle", ledger]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["Caro owes Ana 40.000 Gs", "Beto owes Ana 10.000 Gs"]

    assert main(["balances", ledger]) == 0
    out = capsys.readouterr().out
    assert "50,000" in out
    assert "-40,000" in out


def test_settle_date_window_and_csv(ledger, tmp_path, capsys):
    main(["add-expense", ledger, "--amount", "300", "--paid-by", "Ana", "--date", "2025-10-01"])
    main(["add-expense", ledger, "--amount", "200", "--paid-by", "Beto", "--among", "Beto,Caro",
          "--date", "2025-11-01"])
    capsys.readouterr()
    out_csv = tmp_path / "debts.csv"
    assert main(["settle", ledger, "--start", "2025-10-15", "--csv", str(out_csv)]) == 0
    assert capsys.readouterr().out.splitlines()[0] == "Caro owes Beto 100 Gs"
    assert out_csv.read_text(encoding="utf-8").splitlines()[1] == "Caro,Beto,100"


def test_empty_group_is_settled(ledger, capsys):
    assert main(["settle", ledger]) == 0
    assert "settled up" in capsys.readouterr().out


def test_percentage_and_exact_splits(ledger):
    assert main(["add-expense", ledger, "--amount", "101", "--paid-by", "Ana",
                 "--split-type", "percentage", "--split", "Ana:50,Beto:50"]) == 0
    assert main(["add-expense", ledger, "--amount", "100", "--paid-by", "Caro",
                 "--split-type", "exact", "--split", "Ana:70,Caro:30"]) == 0
    group = load_group(ledger)
    ids = {p.name: p.id for p in group.participants}
    assert group.expenses[0].splits == {ids["Ana"]: 51, ids["Beto"]: 50}
    assert group.expenses[1].splits == {ids["Ana"]: 70, ids["Caro"]: 30}


def test_percentage_defaults(ledger):
    assert main(["add-expense", ledger, "--amount", "100", "--paid-by", "Ana",
                 "--split-type", "percentage"]) == 0
    assert main(["add-expense", ledger, "--amount", "100", "--paid-by", "Ana",
                 "--split-type", "percentage", "--split", "Ana:50", "--among", "Beto,Caro"]) == 0
    group = load_group(ledger)
    ids = {p.name: p.id for p in group.participants}
    assert group.expenses[0].splits == {ids["Ana"]: 34, ids["Beto"]: 33, ids["Caro"]: 33}
    assert group.expenses[1].splits == {ids["Ana"]: 50, ids["Beto"]: 25, ids["Caro"]: 25}


@pytest.mark.parametrize("args", [
    ["--split-type", "exact", "--split", "Ana:10"],
    ["--split-type", "percentage", "--split", "Ana:40,Beto:40"],
    ["--split-type", "exact"],
    ["--split", "Ana:50"],
    ["--split-type", "exact", "--split", "Ana:ten"],
    ["--among", "Ana,Nobody"],
])
def test_add_expense_errors(ledger, capsys, args):
    assert main(["add-expense", ledger, "--amount", "100", "--paid-by", "Ana"] + args) == 1
    assert capsys.readouterr().err.startswith("error:")
    assert load_group(ledger).expenses == []


def test_remove_expense_and_participant(ledger, capsys):
    main(["add-expense", ledger, "--amount", "100", "--paid-by", "Ana", "--among", "Ana,Beto"])
    expense_id = load_group(ledger).expenses[0].id

    assert main(["remove-participant", ledger, "Beto"]) == 1
    assert main(["remove-participant", ledger, "Caro"]) == 0
    assert main(["remove-expense", ledger, expense_id]) == 0
    assert main(["remove-expense", ledger, expense_id]) == 1
    assert main(["add-participant", ledger, "Dani", "--guest", "--id", "d1"]) == 0
    group = load_group(ledger)
    assert group.expenses == []
    assert [p.name for p in group.participants] == ["Ana", "Beto", "Dani"]


def test_export_and_import(ledger, tmp_path):
    main(["add-expense", ledger, "--amount", "90", "--paid-by", "Ana"])
    xlsx = tmp_path / "report.xlsx"
    csv_path = tmp_path / "expenses.csv"
    assert main(["export-excel", ledger, str(xlsx)]) == 0
    assert xlsx.exists()
    assert main(["export-csv", ledger, str(csv_path)]) == 0

    assert main(["import-csv", ledger, str(csv_path)]) == 0
    expenses = load_group(ledger).expenses
    assert len(expenses) == 2
    assert expenses[0].id != expenses[1].id
    assert expenses[0].splits == expenses[1].splits

    assert main(["remove-expense", ledger, expenses[1].id]) == 0
    assert [e.id for e in load_group(ledger).expenses] == [expenses[0].id]
    assert main(["import-csv", ledger, str(csv_path), "--replace"]) == 0
    assert len(load_group(ledger).expenses) == 1


def test_import_rejects_unknown_participants(ledger, tmp_path):
    csv_path = tmp_path / "foreign.csv"
    csv_path.write_text(
        "id,date,paid_by,description,amount,split_type,splits,notes\n"
        "x1,2025-11-01,stranger,Lunch,100,exact,stranger:100,\n",
        encoding="utf-8",
    )
    assert main(["import-csv", ledger, str(csv_path)]) == 1
    assert load_group(ledger).expenses == []


@pytest.mark.parametrize("row", [
    "x1,2025-11-01,{a},Lunch,100,exact,{a}:50;{b}:40,",
    "x1,2025-11-01,{a},Lunch,-100,exact,{b}:-100,",
    "x1,2025-11-01,{a},Lunch,100,weird,{b}:100,",
    "x1,2025-11-01,{a},Lunch,100,exact,{a}:150;{b}:-50,",
    "x1,2025-11-01,{a},Lunch,100,exact,,",
    "x1,not-a-date,{a},Lunch,100,exact,{b}:100,",
])
def test_import_rejects_unbalanced_rows(ledger, tmp_path, capsys, row):
    group = load_group(ledger)
    a, b = group.participant_ids()[:2]
    csv_path = tmp_path / "bad.csv"
    csv_path.write_text(
        "id,date,paid_by,description,amount,split_type,splits,notes\n"
        "ok,2025-11-01,{a},Taxi,10,equal,{a}:5;{b}:5,\n".format(a=a, b=b)
        + row.format(a=a, b=b) + "\n",
        encoding="utf-8",
    )
    assert main(["import-csv", ledger, str(csv_path)]) == 1
    assert "x1" in capsys.readouterr().err
    assert load_group(ledger).expenses == []
    assert main(["settle", ledger]) == 0


def test_malformed_ledger_is_reported(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text('{"participants": [], "expenses": [{"id": "e1", "amount": 10}]}', encoding="utf-8")
    assert main(["settle", str(path)]) == 1
    assert "Malformed expense e1" in capsys.readouterr().err
