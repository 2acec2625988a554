import pytest

from claimcapture.models import ClaimRecord
from claimcapture.validation import (
    clean_claim_amount,
    clean_items,
    validate_claim_amount,
    validate_claim_detail,
    validate_diagnosis,
    validate_items,
    validate_nric,
    validate_queue_item,
    validate_referral_clinic,
)


def test_validate_nric():
    assert validate_nric("S1234567D").is_valid
    assert validate_nric("s 1234567 d").is_valid
    assert validate_nric(None).errors == ("nric: missing",)
    assert not validate_nric("X1234567D").is_valid


@pytest.mark.parametrize("text, ok", [
    ("Acute URTI with fever and cough", True),
    ("short", False),
    ("Update User Info\nPlease enter your login", False),
    ("Please select a diagnosis from the list", False),
    ("Just some words here", False),
    ("x" * 5001, False),
    ("The patient attended for a scheduled appointment today at the clinic", True),
    ("Gastritis with epigastric pain, omeprazole given\nDrug allergy:\nNo", True),
    ("Acute gastritis, antacid given\nOK", False),
    ("Yes", False),
])
def test_validate_diagnosis(text, ok):
    assert validate_diagnosis(text).is_valid is ok


@pytest.mark.parametrize("amount, ok", [(0, True), ("S$45.50", True), (50000, True), (50000.01, False), (-1, False),
                                        ("abc", False), (None, False)])
def test_validate_claim_amount(amount, ok):
    assert validate_claim_amount(amount).is_valid is ok


def test_clean_claim_amount_rounds_to_cents():
    assert clean_claim_amount("1,234.567") == 1234.57
    assert clean_claim_amount(12) == 12.0


def test_items_filtering():
    raw = ["Paracetamol 500mg", "Qty", "12", "$4.50", "Paracetamol 500mg", " Lozenges ", "x"]
    assert clean_items(raw) == ["Paracetamol 500mg", "Lozenges"]
    assert validate_items(raw).is_valid
    assert validate_items([]).is_valid
    assert not validate_items(["Total", "3"]).is_valid


def test_referral_clinic():
    assert validate_referral_clinic("Tan Tock Seng Hospital ENT").is_valid
    assert not validate_referral_clinic("X").is_valid
    assert not validate_referral_clinic("Cancel").is_valid
    assert not validate_referral_clinic("A" * 201).is_valid


def test_queue_item_needs_identifier_and_name():
    ok = ClaimRecord(nric="S1234567D", patient_name="Jane Tan", fee_amount=45.5)
    assert validate_queue_item(ok).is_valid
    bad = ClaimRecord(nric="S123", patient_name="")
    v = validate_queue_item(bad)
    assert not v.is_valid
    assert any(e.startswith("nric:") for e in v.errors)
    assert "patient_name: missing" in v.errors


def test_claim_detail_accepts_notes_when_diagnosis_missing():
    rec = ClaimRecord(nric="S1234567D", notes_text="Sore throat and fever for 2 days, given lozenges")
    assert validate_claim_detail(rec).is_valid


def test_claim_detail_without_clinical_text_is_flagged_not_dropped():
    rec = ClaimRecord(nric="S1234567D", diagnosis_text="OK", items=("Paracetamol 500mg",))
    v = validate_claim_detail(rec)
    assert not v.is_valid
    assert rec.items == ("Paracetamol 500mg",)
