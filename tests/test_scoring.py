import pytest

from claimcapture.models import ExtractionCandidate
from claimcapture.scoring import MIN_ACCEPT_SCORE, rank_candidates, score_text, select_best
from claimcapture.signatures import DIALOG_BUTTON_PHRASES, UI_CHROME_PHRASES

BASE = "Patient seen today, reports symptoms since the weekend"
KEYWORDS = ["fever", "cough", "headache", "sore throat", "prescribe paracetamol tablets", "review in 3 days"]


def test_score_monotonic_in_distinct_keywords():
    text = BASE
    prev = score_text(text).score
    for kw in KEYWORDS:
        text = f"{text}, {kw}"
        cur = score_text(text).score
        assert cur >= prev, (kw, prev, cur)
        prev = cur


@pytest.mark.parametrize("sig", [
    "Update User Info",
    "Please enter your login",
    "Retype Password",
    "New Password",
])
def test_obstruction_text_scores_below_threshold(sig):
    text = f"Fever and cough for 3 days, prescribed tablets.\n{sig}\nUser ID:"
    assert score_text(text).score < MIN_ACCEPT_SCORE
    assert score_text(text).reasons[0].startswith("obstruction:")


@pytest.mark.parametrize("sample", [
    "Your password will expire in 3 days",
    "Please update your profile",
    "Session is about to expire",
])
def test_expiry_and_profile_prompts_rejected(sample):
    assert score_text(f"Headache and fever. {sample}").score < MIN_ACCEPT_SCORE


@pytest.mark.parametrize("button", DIALOG_BUTTON_PHRASES)
def test_dialog_button_line_rejected(button):
    assert score_text(f"Acute pharyngitis with fever and sore throat\n{button}").score < MIN_ACCEPT_SCORE


@pytest.mark.parametrize("chrome", UI_CHROME_PHRASES)
def test_chrome_only_text_rejected(chrome):
    assert score_text(chrome).score < MIN_ACCEPT_SCORE


@pytest.mark.parametrize("answer", ["No", "Yes", "NIL"])
def test_one_word_answer_lines_inside_notes_are_kept(answer):
    text = f"Fever and sore throat for 3 days, prescribed paracetamol tablets.\nDrug allergy:\n{answer}"
    assert score_text(text).score >= MIN_ACCEPT_SCORE


def test_clinical_words_inside_sentences_are_not_chrome():
    result = score_text("Advised to close follow-up if fever persists; no cough")
    assert result.score >= MIN_ACCEPT_SCORE


def test_length_band():
    assert score_text("URTI").score < 0
    assert score_text("Viral fever with myalgia").score >= MIN_ACCEPT_SCORE
    assert score_text("fever " * 1200).score < MIN_ACCEPT_SCORE


def test_select_best_never_guesses_below_threshold():
    junk = [ExtractionCandidate("OK"), ExtractionCandidate("Loading...")]
    assert select_best(junk) is None


def test_rank_and_select():
    cands = [
        ExtractionCandidate("Please select a diagnosis", source_tag="a"),
        ExtractionCandidate("Acute gastroenteritis with vomiting and diarrhoea for 2 days", source_tag="b"),
        ExtractionCandidate("Headache", source_tag="c"),
    ]
    ranked = rank_candidates(cands)
    assert ranked[0].source_tag == "b"
    assert select_best(cands).source_tag == "b"
    assert ranked[0].score > 0
