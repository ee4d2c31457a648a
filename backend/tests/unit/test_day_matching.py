from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from onlyone.domain.posts.models import InputKind, Location, Post, Scope, ScopeFilter
from onlyone.domain.uniqueness import UniquenessScorer, fingerprint
from onlyone.domain.uniqueness.day_matching import (
    activity_similarity,
    day_overlap,
    extract_activities,
    find_similar_days,
    scope_threshold,
)

NOW = datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc)
MORNING = "I made coffee, walked the dog, and read a book"


def _day(store, content, *, age=timedelta(hours=1), kind=InputKind.DAY_SUMMARY, location=Location()) -> Post:
    return store.add(
        Post(
            id=str(uuid4()),
            content=content,
            content_hash=fingerprint(content),
            input_type=kind,
            scope=Scope.WORLD if not location.city else Scope.CITY,
            location=location,
            uniqueness_score=100,
            match_count=0,
            created_at=NOW - age,
        )
    )


def test_activities_are_split_cleaned_and_deduplicated():
    assert extract_activities(MORNING) == ["made coffee", "walked the dog", "read a book"]
    assert extract_activities("this morning went running then made pancakes before work") == ["went running", "made pancakes"]
    assert extract_activities("Walked the dog and walked the dog") == ["Walked the dog"]


def test_fragments_without_verbs_are_dropped():
    assert extract_activities("coffee, the park and a book") == []


def test_similar_activities_score_above_the_match_threshold():
    assert activity_similarity("walked the dog", "walked my dog") >= 0.75
    assert activity_similarity("read a book", "went to the gym") < 0.75


def test_overlap_is_relative_to_the_shorter_day():
    result = day_overlap(["made coffee", "walked the dog", "read a book"], ["made coffee", "walked my dog"])
    assert result.matched == 2
    assert result.overlap == 1.0
    assert [pair.activity for pair in result.pairs] == ["made coffee", "walked the dog"]
    assert day_overlap([], ["made coffee"]).overlap == 0.0


def test_scope_thresholds_tighten_for_smaller_scopes():
    assert scope_threshold(Scope.CITY) == 0.75
    assert scope_threshold(Scope.STATE) == 0.70
    assert scope_threshold(Scope.COUNTRY) == 0.65
    assert scope_threshold(Scope.WORLD) == 0.60


def test_world_match_can_miss_in_a_city(memory_store):
    other = _day(memory_store, "walked my dog, made coffee and went to the gym")
    activities = extract_activities(MORNING)
    assert [match.post.id for match in find_similar_days(activities, [other], scope=Scope.WORLD)] == [other.id]
    assert find_similar_days(activities, [other], scope=Scope.CITY) == []


@pytest.mark.asyncio
async def test_day_summary_scored_by_overlap(memory_store):
    close = _day(memory_store, "walked my dog, made coffee and went to the gym")
    _day(memory_store, "painted a mural, fixed the sink and called my sister")
    _day(memory_store, "made coffee and walked the dog", kind=InputKind.ACTION)
    _day(memory_store, "made coffee, walked the dog and read a novel", age=timedelta(days=3))

    snapshot = await UniquenessScorer(memory_store).score_new(
        fingerprint(MORNING),
        ScopeFilter(scope=Scope.WORLD),
        now=NOW,
        content=MORNING,
        kind=InputKind.DAY_SUMMARY,
    )
    assert snapshot.match_count == 1
    assert snapshot.population == 4
    assert [match.post.id for match in snapshot.day_matches] == [close.id]


@pytest.mark.asyncio
async def test_day_summary_without_activities_falls_back_to_fingerprint(memory_store):
    _day(memory_store, "a quiet sunday")
    snapshot = await UniquenessScorer(memory_store).score_new(
        fingerprint("a quiet sunday"),
        ScopeFilter(scope=Scope.WORLD),
        now=NOW,
        content="a quiet sunday",
        kind=InputKind.DAY_SUMMARY,
    )
    assert snapshot.match_count == 1
    assert snapshot.day_matches == ()


@pytest.mark.asyncio
async def test_recompute_uses_overlap_for_stored_day_summary(memory_store):
    post = _day(memory_store, MORNING, age=timedelta(hours=2))
    _day(memory_store, "walked my dog, made coffee and went to the gym")
    snapshot = await UniquenessScorer(memory_store).recompute(post, now=NOW)
    assert snapshot.live
    assert snapshot.match_count == 1
    assert snapshot.population == 2
