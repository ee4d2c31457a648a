"""Grammar heuristics that decide whether text describes something the author did.

The rubric works on a shallow parse: leading subject, auxiliary chain, main
verb and whatever follows it. Only closed word classes (pronouns, auxiliaries,
determiners) are enumerated; open-class words are judged by their shape.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

ACCEPT_THRESHOLD = 60

_WORD_RE = re.compile(r"[a-z']+")

FIRST_PERSON = frozenset(
    {"i", "me", "my", "mine", "myself", "we", "us", "our", "ours", "ourselves", "i'm", "i've", "i'd", "i'll", "we're", "we've"}
)
OTHER_SUBJECTS = frozenset({"you", "he", "she", "they", "it", "you're", "he's", "she's", "they're", "it's"})
GENERIC_SUBJECTS = frozenset(
    {
        "people", "everyone", "everybody", "anyone", "anybody", "nobody", "someone", "somebody",
        "they", "folks", "humans", "humanity", "life", "society", "men", "women", "kids", "children",
    }
)
DETERMINERS = frozenset({"the", "a", "an", "this", "that", "these", "those", "there", "here", "some", "every", "all"})
COPULAS = frozenset({"is", "are", "was", "were", "be", "been", "being", "am", "'s", "'re"})
MODALS = frozenset({"can", "could", "should", "would", "will", "shall", "may", "might", "must", "ought"})
AUXILIARIES = COPULAS | MODALS | frozenset({"do", "does", "did", "have", "has", "had", "get", "got", "just", "finally", "also", "really", "actually", "always", "never", "often", "usually", "sometimes", "still", "not", "to"})
STATE_VERBS = frozenset(
    {
        "think", "thought", "believe", "believed", "know", "knew", "feel", "felt", "seem", "seemed",
        "like", "liked", "love", "loved", "hate", "hated", "want", "wanted", "wish", "wished", "hope",
        "hoped", "need", "needed", "mean", "meant", "understand", "understood", "guess", "suppose",
    }
)
ED_EXCEPTIONS = frozenset(
    {
        "need", "bed", "red", "seed", "feed", "speed", "shed", "bleed", "breed", "weed", "reed", "deed",
        "proceed", "succeed", "exceed", "hundred", "sacred", "naked", "wicked", "ted", "fred", "ed", "wed",
    }
)
IRREGULAR_PAST = frozenset(
    {
        "went", "ate", "saw", "made", "took", "got", "ran", "swam", "wrote", "read", "bought", "brought",
        "built", "caught", "drank", "drove", "flew", "found", "gave", "had", "heard", "kept", "left",
        "lost", "met", "paid", "put", "rode", "sang", "sat", "slept", "sold", "sent", "spent", "spoke",
        "stood", "taught", "told", "won", "wore", "woke", "did", "came", "began", "broke", "chose",
        "fell", "fought", "forgot", "grew", "hid", "hit", "held", "hung", "led", "lent", "let", "lit",
        "shot", "shut", "stole", "struck", "swept", "threw", "tore", "dug", "fed", "fled", "bit", "blew",
        "drew", "froze", "shook", "sank", "spun", "climbed", "baked", "rang", "sought", "became", "dove",
    }
)
ING_NOUNS = frozenset(
    {
        "evening", "morning", "thing", "something", "nothing", "anything", "everything", "king", "ring",
        "wing", "spring", "string", "ceiling", "during", "sibling", "darling", "pudding", "wedding",
        "bring", "sing", "sting", "swing", "cling", "fling", "ping", "ding", "ling",
    }
)
ADVICE_PREFIXES = (
    "don't",
    "dont",
    "do not",
    "never forget",
    "remember to",
    "make sure",
    "try to",
    "you should",
    "you must",
    "you need",
    "please",
    "let's",
    "lets",
    "always remember",
)
LEADING_ADVERBS = frozenset({"just", "always", "never", "really", "actually", "still", "often", "usually", "sometimes", "also", "finally"})
_CONJUNCTIONS = frozenset({"and", "but", "because", "which", "while", "although", "though", "so", "whereas", "since", "if"})


@dataclass(slots=True)
class ActionAssessment:
    confidence: int
    is_valid: bool
    signals: dict[str, int] = field(default_factory=dict)


def is_past_tense(token: str) -> bool:
    if token in IRREGULAR_PAST:
        return True
    return len(token) > 3 and token.endswith("ed") and token not in ED_EXCEPTIONS


def is_gerund(token: str) -> bool:
    return len(token) > 4 and token.endswith("ing") and token not in ING_NOUNS


def _leading_subject(tokens: list[str]) -> tuple[str | None, int]:
    """Return the subject word (if any) and the index after it."""
    idx = 0
    while idx < len(tokens) and tokens[idx] in DETERMINERS:
        idx += 1
    if idx < len(tokens) and (tokens[idx] in FIRST_PERSON or tokens[idx] in OTHER_SUBJECTS or tokens[idx] in GENERIC_SUBJECTS):
        return tokens[idx], idx + 1
    return None, 0


def _verb_phrase(tokens: list[str]) -> tuple[int | None, bool]:
    """Main verb index, and whether a copula sat in the auxiliary chain before it."""
    _subject, idx = _leading_subject(tokens)
    copular = False
    while idx < len(tokens) and (tokens[idx] in AUXILIARIES or tokens[idx] in OTHER_SUBJECTS or tokens[idx] in FIRST_PERSON):
        copular = copular or tokens[idx] in COPULAS
        idx += 1
    while idx < len(tokens) and tokens[idx] in DETERMINERS:
        idx += 1
    return (idx if idx < len(tokens) else None), copular


def find_main_verb(tokens: list[str]) -> int | None:
    """Index of the first word after the subject and auxiliary chain."""
    return _verb_phrase(tokens)[0]


def is_copular_predicate(tokens: list[str]) -> bool:
    """True for "be kind", "was happy": a copula followed by a non-verb."""
    idx, copular = _verb_phrase(tokens)
    if not copular or idx is None:
        return False
    return not (is_past_tense(tokens[idx]) or is_gerund(tokens[idx]))


def is_imperative(tokens: list[str]) -> bool:
    """A subjectless sentence opening on a bare verb with no past or -ing form anywhere."""
    idx = 0
    while idx < len(tokens) and tokens[idx] in LEADING_ADVERBS:
        idx += 1
    if idx >= len(tokens):
        return False
    head = tokens[idx]
    if head in DETERMINERS or head in FIRST_PERSON or head in OTHER_SUBJECTS or head in GENERIC_SUBJECTS or head in MODALS:
        return False
    if not head.isalpha() or (head.endswith("s") and not head.endswith("ss")):
        return False
    return not any(is_past_tense(token) or is_gerund(token) for token in tokens)


def is_concrete_verb(token: str) -> bool:
    return token.isalpha() and token not in AUXILIARIES and token not in STATE_VERBS and token not in GENERIC_SUBJECTS


def _is_advice(lowered: str) -> bool:
    return lowered.startswith(ADVICE_PREFIXES) or "don't forget" in lowered


def _is_multi_clause(text: str, tokens: list[str]) -> bool:
    return "," in text or ";" in text or any(token in _CONJUNCTIONS for token in tokens)


def assess_action(text: str) -> ActionAssessment:
    lowered = text.strip().lower()
    tokens = _WORD_RE.findall(lowered)
    signals: dict[str, int] = {}
    if not tokens:
        return ActionAssessment(confidence=0, is_valid=False, signals=signals)

    has_past = any(is_past_tense(token) or is_gerund(token) for token in tokens)
    if has_past:
        signals["tense"] = 40

    subject, _ = _leading_subject(tokens)
    explicit_first = any(token in FIRST_PERSON for token in tokens)
    leading_other = tokens[0] in OTHER_SUBJECTS or (
        tokens[0] in AUXILIARIES and len(tokens) > 1 and tokens[1] in OTHER_SUBJECTS
    )
    generic_subject = subject in GENERIC_SUBJECTS
    imperative = subject is None and is_imperative(tokens)
    implied_first = subject is None and not leading_other and not imperative and tokens[0] not in DETERMINERS
    first_person = explicit_first or implied_first
    if first_person and not generic_subject:
        signals["first_person"] = 30
    elif generic_subject:
        signals["generic_subject"] = -20

    verb_idx = find_main_verb(tokens)
    if verb_idx is not None and is_concrete_verb(tokens[verb_idx]) and not is_copular_predicate(tokens):
        signals["concrete_verb"] = 20
        if verb_idx + 1 < len(tokens):
            signals["complement"] = 10

    if generic_subject and any(token in COPULAS or token in MODALS for token in tokens):
        signals["generic_statement"] = -50

    if lowered.endswith("?") or imperative or _is_advice(lowered):
        signals["question_or_advice"] = -30

    if len(lowered) > 60 and _is_multi_clause(lowered, tokens) and not has_past and not explicit_first:
        signals["philosophical"] = -40

    confidence = max(0, min(100, sum(signals.values())))
    return ActionAssessment(confidence=confidence, is_valid=confidence >= ACCEPT_THRESHOLD, signals=signals)
