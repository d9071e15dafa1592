import json
import textwrap
from datetime import date
from decimal import Decimal

import pytest
from finance_insights.normalizers import (
    contract_from_mapping,
    load_contracts_json,
    load_transactions_csv,
    to_date,
    to_decimal,
)


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.56", Decimal("1234.56")),
        ("(12.00)", Decimal("-12.00")),
        ("-$5", Decimal("-5")),
        ("+ 7.10", Decimal("7.10")),
        (3, Decimal("3")),
        (2.5, Decimal("2.5")),
    ],
)
def test_to_decimal_accepts_common_spellings(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "NaN", "Infinity"])
def test_to_decimal_rejects_invalid_amounts(raw):
    with pytest.raises(ValueError):
        to_decimal(raw)


@pytest.mark.parametrize(
    "raw", ["2024-03-05", "03/05/2024", "2024-03-05T10:00:00", "2024-03-05 10:00"]
)
def test_to_date_formats(raw):
    assert to_date(raw) == date(2024, 3, 5)


def test_to_date_rejects_unknown_format():
    with pytest.raises(ValueError, match="invalid date"):
        to_date("05.03.2024")


def test_load_transactions_csv_resolves_header_aliases():
    csv_text = _dedent(
        """
        Transaction Date,Merchant,Amount,Category,Client
        2024-01-15,Netflix,-15.99,software,
        ,,,,
        01/20/2024,"Café, Olé","$1,200.00",meals,acme
        """
    )
    rows = load_transactions_csv(csv_text)

    assert len(rows) == 2
    first, second = rows
    assert first.date == date(2024, 1, 15)
    assert first.amount == Decimal("15.99")
    assert first.description == "Netflix"
    assert first.client_id is None
    assert second.description == "Café, Olé"
    assert second.amount == Decimal("1200.00")
    assert second.category == "meals"
    assert second.client_id == "acme"


def test_load_transactions_csv_requires_date_and_amount():
    with pytest.raises(ValueError, match="missing required columns: amount"):
        load_transactions_csv("date,description\n2024-01-01,x\n")


def test_load_transactions_csv_reports_bad_row():
    csv_text = "date,amount,description\n2024-01-01,10,A\n2024-01-02,ten,B\n"
    with pytest.raises(ValueError, match="row 3"):
        load_transactions_csv(csv_text)


def test_load_transactions_csv_empty_text():
    assert load_transactions_csv("") == []


def test_contract_flat_shape():
    c = contract_from_mapping(
        {
            "id": "c-1",
            "title": "MSA 2024",
            "reimbursable_categories": ["Travel", " "],
            "non_reimbursable": "Meals",
            "user_notes": "  ",
        }
    )
    assert c.contract_id == "c-1"
    assert c.source_ref == "MSA 2024"
    assert c.reimbursable_categories == frozenset({"Travel"})
    assert c.non_reimbursable == frozenset({"Meals"})
    assert c.user_notes == ""


def test_contract_extracted_terms_shape():
    c = contract_from_mapping(
        {
            "id": "c-2",
            "file_name": "sow.pdf",
            "user_notes": "Cubren herramientas",
            "extracted_terms": {
                "reimbursement_policy": {"reimbursable_categories": ["Equipos"], "non_reimbursable": []}
            },
        }
    )
    assert c.source_ref == "sow.pdf"
    assert c.reimbursable_categories == frozenset({"Equipos"})
    assert c.user_notes == "Cubren herramientas"


def test_load_contracts_json_filters_by_client():
    text = json.dumps(
        [
            {"id": "a", "client_id": "acme", "reimbursement_policy": {"reimbursable_categories": ["travel"]}},
            {"id": "b", "client_id": "globex", "reimbursable_categories": ["meals"]},
        ]
    )
    assert [c.contract_id for c in load_contracts_json(text)] == ["a", "b"]
    assert [c.contract_id for c in load_contracts_json(text, client_id="globex")] == ["b"]


def test_load_contracts_json_rejects_non_array():
    with pytest.raises(ValueError, match="array"):
        load_contracts_json('{"id": "a"}')
    with pytest.raises(ValueError, match="not an object"):
        load_contracts_json('["a"]')
