"""Shared phrase and pattern tables.

The obstruction clearer, the extractors and the scorer all read from one
``SignatureTable`` so that a new overlay type or chrome phrase is added in a
single place. Bump ``SIGNATURE_TABLE_VERSION`` whenever an entry changes
meaning; it is logged with every extraction run.
"""
import re
from dataclasses import dataclass, field, replace

SIGNATURE_TABLE_VERSION = "2026.10.1"

# Overlays that block or pollute extraction until dismissed.
OBSTRUCTION_SIGNATURES = (
    r"Update\s+User\s+Info",
    r"Please\s+enter\s+your\s+login",
    r"Retype\s+Password",
    r"New\s+Password",
    r"Your\s+password\s+(?:has|will)\s+expire",
    r"Please\s+update\s+your\s+(?:profile|particulars|contact)",
    r"Session\s+(?:is\s+about\s+to\s+)?expir",
)

# Generic UI chrome. Text made only of these words is never field content.
UI_CHROME_PHRASES = (
    "OK", "Cancel", "Submit", "Save", "Close", "Confirm", "Yes", "No",
)

# Dialog buttons. A line made only of these marks leaked overlay text.
DIALOG_BUTTON_PHRASES = ("OK", "Cancel", "Submit")

EXCLUDED_PATTERNS = (
    r"User\s+ID\s*[:\n]",
    r"Full\s+Name\s*[:\n].*\n.*(?:Password|Email)",
    r"Please\s+(?:fill|select|choose)\b",
    r"^\s*(?:Click|Select|Choose|Enter)\b",
    r"^[\s\W]+$",
    r"^(?:Loading|Please\s+wait|Processing)\b",
)

# Symptom, procedure and unit vocabulary. Must stay disjoint from chrome phrases.
CLINICAL_KEYWORDS = (
    "fever", "headache", "pain", "ache", "sore", "infection", "flu", "cough", "cold",
    "rash", "swelling", "injury", "wound", "fracture", "sprain", "strain", "bruise",
    "cut", "burn", "nausea", "vomit", "vomiting", "diarrhea", "diarrhoea", "constipation",
    "dizziness", "giddiness", "fatigue", "weakness", "malaise", "chills", "sweating",
    "itching", "bleeding", "discharge", "inflammation", "ulcer", "lesion", "abscess",
    "bacteria", "bacterial", "virus", "viral", "fungus", "fungal", "allergy", "allergic",
    "reaction", "asthma", "hypertension", "diabetes", "cholesterol", "heart", "lung",
    "liver", "kidney", "stomach", "intestine", "muscle", "bone", "joint", "skin", "eye",
    "ear", "nose", "throat", "chest", "back", "neck", "shoulder", "knee", "ankle", "wrist",
    "elbow", "hand", "foot", "toe", "finger", "urti", "gastritis", "gastroenteritis",
    "tonsillitis", "pharyngitis", "conjunctivitis", "dermatitis", "eczema", "migraine",
    "consult", "consultation", "review", "follow-up", "examine", "examination", "assess",
    "evaluate", "diagnose", "diagnosis", "treat", "treatment", "prescribe", "advise",
    "recommend", "refer", "referral", "admit", "physiotherapy", "dressing", "x-ray",
    "mri", "ultrasound", "injection", "vaccine", "vaccination",
    "cm", "kg", "mg", "ml", "mcg", "days", "weeks", "months", "tablets", "tablet",
    "capsules", "capsule", "syrup", "cream", "ointment", "drops", "bd", "tds", "prn",
)

# Header keywords per column role, most specific role first.
HEADER_KEYWORDS = (
    ("nric", (r"\bnric\b", r"\bfin\b", r"\bic\s*no\b", r"\bid\s*no\b", r"\bnric\s*/\s*fin\b")),
    ("record_no", (r"\bpc\s*no\b", r"\bpcno\b", r"\bpatient\s*(?:no|id)\b", r"\brecord\b", r"\bvisit\s*no\b")),
    ("qno", (r"^\s*q\.?\s*no\.?\s*$", r"\bqueue\s*(?:no|#)", r"\bq\s*#")),
    ("patient_name", (r"\bpatient\s*name\b", r"^\s*name\s*$", r"\bname\b")),
    ("pay_type", (r"\bpay\s*type\b", r"\bpayment\b", r"\bpayer\b")),
    ("visit_type", (r"\bvisit\s*type\b",)),
    ("contract", (r"\bcontract\b", r"\bcompany\b", r"\binsurer\b", r"\bpanel\b")),
    ("status", (r"\bstatus\b",)),
    ("in_time", (r"^\s*in\s*$", r"\btime\s*in\b", r"\bin\s*time\b")),
    ("out_time", (r"^\s*out\s*$", r"\btime\s*out\b", r"\bout\s*time\b")),
    ("fee", (r"\bfee\b", r"\bamount\b", r"\btotal\b", r"\bcharge\b", r"\bbill\b")),
)

# Rows in exported reports that summarise rather than describe a visit.
SUMMARY_ROW_PATTERNS = (
    r"\btotal\b",
    r"\bsub\s*-?\s*total\b",
    r"\bgrand\s+total\b",
    r"\bprinted\s+(?:on|by)\b",
    r"\bpage\s+\d+\s+of\s+\d+\b",
    r"\bend\s+of\s+report\b",
    r"\bno\s+records?\s+found\b",
    r"\breport\s+generated\b",
)

SPREADSHEET_EXPORT_PATTERNS = (
    "a[href*='.xlsx' i]",
    "a[href*='.xls' i]",
    "a[href*='format=excel' i]",
    "a[title*='Excel' i]",
    "button:has-text('Excel')",
    "a:has-text('Excel')",
    "input[type='button'][value*='Excel' i]",
    "[onclick*='excel' i]",
    "a:has-text('Export to XLS')",
)

PDF_EXPORT_PATTERNS = (
    "a[href*='.pdf' i]",
    "a[href*='format=pdf' i]",
    "a[title*='PDF' i]",
    "button:has-text('PDF')",
    "a:has-text('PDF')",
    "input[type='button'][value*='PDF' i]",
    "[onclick*='pdf' i]",
)


def _compile_all(patterns, flags=re.I):
    return tuple(re.compile(p, flags) for p in patterns)


def _chrome_line_rx(phrases):
    alt = "|".join(re.escape(p) for p in phrases)
    return re.compile(rf"^[\s\W]*(?:(?:{alt})[\s\W]*)+$", re.I | re.M)


@dataclass(frozen=True)
class SignatureTable:
    version: str = SIGNATURE_TABLE_VERSION
    obstruction: tuple = OBSTRUCTION_SIGNATURES
    chrome: tuple = UI_CHROME_PHRASES
    buttons: tuple = DIALOG_BUTTON_PHRASES
    excluded: tuple = EXCLUDED_PATTERNS
    keywords: tuple = CLINICAL_KEYWORDS
    header_keywords: tuple = HEADER_KEYWORDS
    summary_rows: tuple = SUMMARY_ROW_PATTERNS
    spreadsheet_exports: tuple = SPREADSHEET_EXPORT_PATTERNS
    pdf_exports: tuple = PDF_EXPORT_PATTERNS
    _compiled: dict = field(default_factory=dict, compare=False, repr=False)

    def with_extra(self, obstruction=(), chrome=(), keywords=()):
        if not (obstruction or chrome or keywords):
            return self
        return replace(
            self,
            version=f"{self.version}+local",
            obstruction=self.obstruction + tuple(obstruction),
            chrome=self.chrome + tuple(chrome),
            keywords=self.keywords + tuple(keywords),
            _compiled={},
        )

    def _get(self, key, build):
        rx = self._compiled.get(key)
        if rx is None:
            rx = build()
            self._compiled[key] = rx
        return rx

    @property
    def obstruction_rxs(self):
        return self._get("obstruction", lambda: _compile_all(self.obstruction))

    @property
    def excluded_rxs(self):
        return self._get("excluded", lambda: _compile_all(self.excluded))

    @property
    def chrome_line_rx(self):
        return self._get("chrome", lambda: _chrome_line_rx(self.chrome))

    @property
    def button_line_rx(self):
        return self._get("buttons", lambda: _chrome_line_rx(self.buttons))

    @property
    def keyword_rx(self):
        def build():
            words = sorted(set(k.lower() for k in self.keywords), key=len, reverse=True)
            alt = "|".join(re.escape(w) for w in words)
            return re.compile(rf"(?<![A-Za-z])(?:{alt})(?![A-Za-z])", re.I)
        return self._get("keywords", build)

    @property
    def header_rxs(self):
        return self._get(
            "header",
            lambda: tuple((role, _compile_all(pats)) for role, pats in self.header_keywords),
        )

    @property
    def summary_rxs(self):
        return self._get("summary", lambda: _compile_all(self.summary_rows))

    def obstruction_match(self, text):
        for rx in self.obstruction_rxs:
            m = rx.search(text or "")
            if m:
                return m.group(0)
        return None

    def is_chrome_only(self, text):
        s = (text or "").strip()
        if not s:
            return False
        return all(self.chrome_line_rx.match(line) for line in s.splitlines() if line.strip())

    def has_chrome_line(self, text):
        return bool(self.button_line_rx.search(text or ""))

    def excluded_match(self, text):
        for rx in self.excluded_rxs:
            m = rx.search(text or "")
            if m:
                return rx.pattern
        return None

    def distinct_keywords(self, text):
        return {m.group(0).lower() for m in self.keyword_rx.finditer(text or "")}


DEFAULT_TABLE = SignatureTable()


def strip_obstruction_text(text, table=DEFAULT_TABLE):
    """Drop lines that belong to a known overlay or are bare dialog buttons."""
    if not text:
        return ""
    kept = []
    for line in str(text).splitlines():
        if table.obstruction_match(line):
            continue
        if line.strip() and table.button_line_rx.match(line):
            continue
        kept.append(line)
    return "\n".join(kept).strip()
