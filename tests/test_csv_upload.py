"""
Beneficiary CSV upload tests.

Goal: common header spellings map onto field names and every cell is read
as text, so codes like HHID keep their leading zeros.
"""
import pytest

from beneficiary_api.services.beneficiary_service import normalize_header, rows_from_csv


@pytest.mark.parametrize(
    "header, field",
    [
        ("First Name", "first_name"),
        ("Household ID", "hhid"),
        ("City/Municipality", "municipality"),
        (" Brgy ", "barangay"),
        ("Sex", "gender"),
        ("PKNO", "pkno"),
    ],
)
def test_normalize_header(header, field):
    assert normalize_header(header) == field


def test_rows_from_csv_keeps_cells_as_text():
    content = (
        b"Household ID,PKNO,First Name,Last Name,Birthday,Province,City,Brgy,Contact Number\n"
        b"0012,007,Ana,Reyes,1990-01-01,Iloilo,Oton,Poblacion,\n"
    )

    rows = rows_from_csv(content)

    assert rows == [
        {
            "hhid": "0012",
            "pkno": "007",
            "first_name": "Ana",
            "last_name": "Reyes",
            "birthdate": "1990-01-01",
            "province": "Iloilo",
            "municipality": "Oton",
            "barangay": "Poblacion",
            "contact": "",
        }
    ]
