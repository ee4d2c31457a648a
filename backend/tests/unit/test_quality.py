import pytest

from onlyone.domain.posts.models import InputKind
from onlyone.domain.quality import ACTION_SUGGESTION, DAY_SUGGESTION, QualityAnalyzer
from onlyone.domain.quality.action import assess_action
from onlyone.domain.quality.gibberish import analyze_coherence
from onlyone.domain.quality.spam import score_spam


@pytest.mark.parametrize(
    "text",
    ["played cricket this evening", "cooked dinner for my family", "called my mom at 555-123-4567 tonight"],
)
def test_concrete_actions_are_accepted(text):
    assessment = QualityAnalyzer().analyze(text, InputKind.ACTION)
    assert assessment.allowed
    assert assessment.is_action
    assert assessment.score >= 60
    assert assessment.suggestion is None


def test_keyboard_mash_is_rejected_with_action_suggestion():
    assessment = QualityAnalyzer().analyze("asdfghjkl qwerty", InputKind.ACTION)
    assert not assessment.allowed
    assert assessment.reason_code == "keyboard_pattern"
    assert assessment.reason == "Content looks like random keyboard input"
    assert assessment.suggestion == ACTION_SUGGESTION


def test_placeholder_sequences_are_incoherent():
    result = analyze_coherence("test post 1")
    assert not result.is_coherent
    assert result.issues == ["placeholder"]


def test_repeated_characters_and_repetition():
    assert analyze_coherence("soooooo good").issues == ["repeated_characters"]
    assert analyze_coherence("run run run run").issues == ["repetitive"]


def test_generic_statement_is_not_an_action():
    assessment = QualityAnalyzer().analyze("people should always be kind", InputKind.ACTION)
    assert not assessment.allowed
    assert assessment.reason_code == "not_an_action"
    assert assess_action("people should always be kind").confidence < 60


def test_questions_lose_confidence():
    assert not assess_action("did you eat yet?").is_valid


def test_day_summary_skips_action_rubric():
    assessment = QualityAnalyzer().analyze("a long calm day with friends", InputKind.DAY_SUMMARY)
    assert assessment.allowed
    assert assessment.is_action is None


def test_day_summary_rejection_uses_day_suggestion():
    assessment = QualityAnalyzer().analyze("zxcvbnm", InputKind.DAY_SUMMARY)
    assert not assessment.allowed
    assert assessment.suggestion == DAY_SUGGESTION


def test_links_are_rejected_as_spam():
    spam = score_spam("check out www.example.com")
    assert spam.is_spam
    assert "url" in spam.reasons
    assessment = QualityAnalyzer().analyze("check out www.example.com", InputKind.DAY_SUMMARY)
    assert assessment.reason == "Links are not allowed"


def test_spam_weights_accumulate_below_threshold():
    spam = score_spam("WENT RUNNING TODAY")
    assert spam.reasons == ["excessive_caps"]
    assert spam.confidence == 25
    assert not spam.is_spam


@pytest.mark.parametrize("text", ["Be kind to others", "Drink more water every day", "Stay positive and work hard"])
def test_imperatives_and_advice_are_not_actions(text):
    action = assess_action(text)
    assert action.signals.get("question_or_advice") == -30
    assert "first_person" not in action.signals
    assert not action.is_valid
    assessment = QualityAnalyzer().analyze(text, InputKind.ACTION)
    assert not assessment.allowed
    assert assessment.reason_code == "not_an_action"


def test_copula_predicate_is_not_a_concrete_verb():
    assert "concrete_verb" not in assess_action("I was happy all afternoon").signals
    assert assess_action("I was hiking all afternoon").signals["concrete_verb"] == 20


def test_two_word_action_with_one_sparse_word_is_allowed():
    assert analyze_coherence("Strength training").is_coherent
    assessment = QualityAnalyzer().analyze("Strength training", InputKind.ACTION)
    assert assessment.allowed


@pytest.mark.parametrize("text", ["asdkjf qwerty zxcvb", "test test test"])
def test_nonsense_and_placeholder_text_is_rejected(text):
    assert not QualityAnalyzer().analyze(text, InputKind.ACTION).allowed


def test_simple_past_action_is_accepted():
    assessment = QualityAnalyzer().analyze("played cricket today", InputKind.ACTION)
    assert assessment.allowed
    assert assessment.is_action
