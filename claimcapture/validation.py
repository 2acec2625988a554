import re

from .identifiers import normalize_nric
from .models import Validation
from .signatures import DEFAULT_TABLE
from .text import clean, parse_amount

DIAGNOSIS_MIN = 10
DIAGNOSIS_MAX = 5000
AMOUNT_MIN = 0
AMOUNT_MAX = 50000
REFERRAL_MIN = 2
REFERRAL_MAX = 200

_ITEM_HEADER_RX = re.compile(r"^(?:Item|Drug|Medicine|Description|Qty|Quantity|Price|Amount|Total)$", re.I)
_DIGITS_RX = re.compile(r"^\d+$")
_CURRENCY_RX = re.compile(r"^(?:S?\$)?[\d,]+\.?\d*$")


def validate_nric(value):
    if not clean(value or ""):
        return Validation(False, ("nric: missing",))
    if normalize_nric(value) is None:
        return Validation(False, (f"nric: invalid format {clean(value)!r}",))
    return Validation(True)


def validate_diagnosis(text, table=None, field="diagnosis"):
    table = table or DEFAULT_TABLE
    s = (text or "").strip()
    if not s:
        return Validation(False, (f"{field}: empty",))
    if len(s) < DIAGNOSIS_MIN:
        return Validation(False, (f"{field}: too short",))
    if len(s) > DIAGNOSIS_MAX:
        return Validation(False, (f"{field}: too long",))
    if table.obstruction_match(s):
        return Validation(False, (f"{field}: contains overlay text",))
    if table.excluded_match(s) or table.is_chrome_only(s) or table.has_chrome_line(s):
        return Validation(False, (f"{field}: contains excluded pattern",))
    if not table.distinct_keywords(s) and len(s) < 50:
        return Validation(False, (f"{field}: short text without clinical keywords",))
    return Validation(True)


def clean_claim_amount(amount):
    value = parse_amount(amount)
    return None if value is None else round(value, 2)


def validate_claim_amount(amount):
    if amount is None or (isinstance(amount, str) and not amount.strip()):
        return Validation(False, ("amount: missing",))
    value = clean_claim_amount(amount)
    if value is None:
        return Validation(False, (f"amount: not a number {amount!r}",))
    if value < AMOUNT_MIN:
        return Validation(False, (f"amount: below {AMOUNT_MIN}",))
    if value > AMOUNT_MAX:
        return Validation(False, (f"amount: above {AMOUNT_MAX}",))
    return Validation(True)


def clean_items(items):
    out = []
    for item in items or ():
        if not isinstance(item, str):
            continue
        s = clean(item)
        if len(s) < 2 or _ITEM_HEADER_RX.match(s) or _DIGITS_RX.match(s) or _CURRENCY_RX.match(s):
            continue
        if s not in out:
            out.append(s)
    return out


def validate_items(items):
    items = list(items or ())
    if items and not clean_items(items):
        return Validation(False, ("items: all entries filtered out",))
    return Validation(True)


def validate_referral_clinic(value, table=None):
    table = table or DEFAULT_TABLE
    s = clean(value or "")
    if not s:
        return Validation(False, ("referral_clinic: empty",))
    if table.excluded_match(s) or table.is_chrome_only(s) or table.obstruction_match(s):
        return Validation(False, ("referral_clinic: contains excluded pattern",))
    if len(s) < REFERRAL_MIN:
        return Validation(False, ("referral_clinic: too short",))
    if len(s) > REFERRAL_MAX:
        return Validation(False, ("referral_clinic: too long",))
    return Validation(True)


def _merge(*results):
    errors = []
    for r in results:
        errors.extend(r.errors)
    return Validation.from_errors(errors)


def validate_queue_item(record):
    checks = [validate_nric(record.nric)]
    if not clean(record.patient_name or ""):
        checks.append(Validation(False, ("patient_name: missing",)))
    if record.fee_amount is not None:
        checks.append(validate_claim_amount(record.fee_amount))
    return _merge(*checks)


def validate_claim_detail(record, table=None):
    checks = [validate_nric(record.nric)]
    diag = validate_diagnosis(record.diagnosis_text, table)
    notes = validate_diagnosis(record.notes_text, table, field="notes")
    if not (diag.is_valid or notes.is_valid):
        checks.append(Validation(False, diag.errors + notes.errors))
    if record.fee_amount is not None:
        checks.append(validate_claim_amount(record.fee_amount))
    if record.items:
        checks.append(validate_items(record.items))
    if record.referral_clinic:
        checks.append(validate_referral_clinic(record.referral_clinic, table))
    if record.mc_days < 0:
        checks.append(Validation(False, ("mc_days: negative",)))
    return _merge(*checks)
