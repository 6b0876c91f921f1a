"""Tests for the PREFIX-YY-N document number sequence."""

from datetime import date

from app.services.numbering import next_document_number, year_prefix

TODAY = date(2025, 3, 14)


def test_year_prefix():
    assert year_prefix("AGI-APR", TODAY) == "AGI-APR-25-"
    assert year_prefix("AGI-APR", date(2009, 1, 1)) == "AGI-APR-09-"


def test_first_number_of_the_year():
    assert next_document_number([], TODAY, "AGI-APR") == "AGI-APR-25-1"


def test_next_number_follows_highest_sequence():
    existing = ["AGI-APR-25-1", "AGI-APR-25-3"]
    assert next_document_number(existing, TODAY, "AGI-APR") == "AGI-APR-25-4"


def test_sequence_compared_numerically():
    existing = ["AGI-APR-25-9", "AGI-APR-25-10"]
    assert next_document_number(existing, TODAY, "AGI-APR") == "AGI-APR-25-11"


def test_other_years_ignored():
    existing = ["AGI-APR-24-17", "AGI-APR-26-2"]
    assert next_document_number(existing, TODAY, "AGI-APR") == "AGI-APR-25-1"


def test_malformed_numbers_ignored():
    existing = ["AGI-APR-25-x", "AGI-APR-25-", "AGI-DEC-14-04", "manual", "AGI-APR-25-2"]
    assert next_document_number(existing, TODAY, "AGI-APR") == "AGI-APR-25-3"
