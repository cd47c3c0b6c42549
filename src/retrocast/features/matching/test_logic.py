"""Unit tests for ad matching and scheduling (pure functions)."""

import random

import pytest

from retrocast.features.matching.logic import (
    MIN_AD_SPACING,
    build_schedule,
    category_score,
    energy_score,
    era_score,
    match_reason,
    overall_score,
    rank,
    score,
    tone_score,
)
from retrocast.features.matching.models import (
    AdCandidate,
    BreakPoint,
    MatchResult,
    VideoProfile,
)


def _ad(ad_id, categories=(), tone=None, era=None, energy=None, duration=None):
    return AdCandidate(
        id=ad_id,
        categories=frozenset(categories),
        tone=tone,
        era_style=era,
        energy_level=energy,
        duration_seconds=duration,
    )


def _match(ad_id, overall, duration=30):
    return MatchResult(
        ad_id=ad_id,
        overall_score=overall,
        category_score=0.0,
        tone_score=0.5,
        era_score=0.5,
        energy_score=0.5,
        reason=f"reason {ad_id}",
        duration_seconds=duration,
    )


# ---------------------------------------------------------------------------
# component scores
# ---------------------------------------------------------------------------


class TestCategoryScore:
    def test_jaccard_of_partial_overlap(self):
        """{tech, gaming} vs {tech, finance} shares 1 of 3 categories."""
        assert category_score({"tech", "gaming"}, {"tech", "finance"}) == pytest.approx(1 / 3)

    def test_identical_sets_score_one(self):
        assert category_score({"food"}, {"food"}) == 1.0

    def test_empty_side_scores_zero(self):
        assert category_score(set(), {"tech"}) == 0.0
        assert category_score({"tech"}, set()) == 0.0
        assert category_score(None, None) == 0.0


class TestToneScore:
    def test_table_lookup_is_case_insensitive(self):
        assert tone_score("Humorous", "NEGATIVE") == 0.3
        assert tone_score("calm", "neutral") == 1.0

    def test_unknown_or_missing_defaults_to_half(self):
        assert tone_score("sarcastic", "positive") == 0.5
        assert tone_score("serious", "confused") == 0.5
        assert tone_score(None, "positive") == 0.5
        assert tone_score("serious", None) == 0.5


class TestEraScore:
    @pytest.mark.parametrize("era", ["1950s", "1960s", "1970s", "1980s"])
    def test_classic_eras_score_full(self, era):
        assert era_score(era) == 1.0

    def test_later_eras(self):
        assert era_score("1990s") == 0.9
        assert era_score("Modern-Retro") == 0.8
        assert era_score("modern") == 0.5

    def test_unknown_era_is_neutral(self):
        assert era_score("2040s") == 0.5
        assert era_score(None) == 0.5


class TestEnergyScore:
    def test_normalised_to_unit_range(self):
        assert energy_score(8) == pytest.approx(0.8)
        assert energy_score(10) == 1.0

    def test_missing_energy_is_neutral(self):
        assert energy_score(None) == 0.5


def test_overall_score_weights():
    """category=1.0, tone=0.7, era=1.0, energy=0.8 → 0.895."""
    assert overall_score(1.0, 0.7, 1.0, 0.8) == pytest.approx(0.895)


def test_score_combines_components():
    ad = _ad("a1", {"tech"}, tone="humorous", era="1980s", energy=8)
    video = VideoProfile(video_id="v1", categories=frozenset({"tech"}), sentiment="neutral")

    result = score(ad, video)

    assert result.category_score == 1.0
    assert result.tone_score == 0.7
    assert result.overall_score == pytest.approx(0.895)
    assert result.duration_seconds == 30


# ---------------------------------------------------------------------------
# reasons
# ---------------------------------------------------------------------------


class TestMatchReason:
    def test_all_parts_present(self):
        reason = match_reason(["automotive", "gaming"], "exciting", "1980s", 0.97)
        assert reason == "Category match: automotive, gaming; Tone: exciting; Era: 1980s (97% match)"

    def test_general_match_when_nothing_known(self):
        assert match_reason([], None, None, 0.42) == "General match (42% match)"

    @pytest.mark.parametrize("score, shown", [(0.125, "13%"), (0.625, "63%"), (0.124, "12%")])
    def test_percent_rounds_halves_up(self, score, shown):
        assert match_reason([], None, None, score).endswith(f"({shown} match)")

    def test_matched_categories_are_sorted(self):
        ad = _ad("a", {"zeta", "alpha", "mid"})
        video = VideoProfile(video_id="v", categories=frozenset({"mid", "zeta", "alpha"}))
        result = score(ad, video)
        assert result.matched_categories == ["alpha", "mid", "zeta"]


# ---------------------------------------------------------------------------
# rank
# ---------------------------------------------------------------------------


class TestRank:
    def test_end_to_end_example(self):
        """An on-topic retro ad ranks well above an off-topic modern one."""
        video = VideoProfile(
            video_id="v", categories=frozenset({"automotive"}), sentiment="positive"
        )
        ad_a = _ad("A", {"automotive"}, tone="exciting", era="1980s", energy=8)
        ad_b = _ad("B", {"food"}, tone="calm", era="modern", energy=3)

        ranked = rank([ad_b, ad_a], video)

        assert [m.ad_id for m in ranked] == ["A", "B"]
        assert ranked[0].overall_score == pytest.approx(0.97)
        assert ranked[1].overall_score == pytest.approx(0.345)
        assert ranked[0].reason.endswith("(97% match)")

    def test_equal_scores_keep_input_order(self):
        video = VideoProfile(video_id="v")
        ads = [_ad(f"ad{i}") for i in range(6)]

        ranked = rank(ads, video)

        assert [m.ad_id for m in ranked] == [f"ad{i}" for i in range(6)]

    def test_empty_ads(self):
        assert rank([], VideoProfile(video_id="v")) == []


# ---------------------------------------------------------------------------
# build_schedule
# ---------------------------------------------------------------------------


class TestBuildSchedule:
    def test_highest_priority_break_gets_best_ad(self):
        matches = [_match("best", 0.9), _match("second", 0.6)]
        breaks = [
            BreakPoint(timestamp_seconds=100, priority=5),
            BreakPoint(timestamp_seconds=400, priority=9),
        ]

        schedule = build_schedule(matches, breaks, max_ads=3)

        assert [(s.ad_id, s.insert_at_seconds) for s in schedule] == [
            ("second", 100),
            ("best", 400),
        ]

    def test_skips_break_too_close_to_placed_ad(self):
        matches = [_match("a", 0.9), _match("b", 0.8)]
        breaks = [
            BreakPoint(timestamp_seconds=300, priority=9),
            BreakPoint(timestamp_seconds=360, priority=8),
            BreakPoint(timestamp_seconds=600, priority=7),
        ]

        schedule = build_schedule(matches, breaks, max_ads=3)

        assert [(s.ad_id, s.insert_at_seconds) for s in schedule] == [("a", 300), ("b", 600)]

    def test_exactly_min_spacing_is_allowed(self):
        matches = [_match("a", 0.9), _match("b", 0.8)]
        breaks = [
            BreakPoint(timestamp_seconds=100, priority=9),
            BreakPoint(timestamp_seconds=100 + MIN_AD_SPACING, priority=8),
        ]

        assert len(build_schedule(matches, breaks, max_ads=3)) == 2

    def test_respects_max_ads(self):
        matches = [_match(f"m{i}", 1 - i / 10) for i in range(5)]
        breaks = [BreakPoint(timestamp_seconds=i * 200, priority=5) for i in range(5)]

        assert len(build_schedule(matches, breaks, max_ads=2)) == 2

    def test_stops_when_matches_run_out(self):
        breaks = [BreakPoint(timestamp_seconds=i * 200, priority=5) for i in range(5)]

        schedule = build_schedule([_match("only", 0.5)], breaks, max_ads=5)

        assert [s.ad_id for s in schedule] == ["only"]
        assert schedule[0].insert_at_seconds == 0

    def test_carries_duration_and_reason(self):
        schedule = build_schedule(
            [_match("a", 0.7, duration=15)],
            [BreakPoint(timestamp_seconds=90, priority=3)],
            max_ads=1,
        )
        assert schedule[0].duration_seconds == 15
        assert schedule[0].reason == "reason a"
        assert schedule[0].score == 0.7

    def test_empty_inputs(self):
        breaks = [BreakPoint(timestamp_seconds=90, priority=3)]
        assert build_schedule([], breaks, max_ads=3) == []
        assert build_schedule([_match("a", 0.5)], [], max_ads=3) == []
        assert build_schedule([_match("a", 0.5)], breaks, max_ads=0) == []

    def test_randomised_inputs_never_violate_spacing(self):
        rng = random.Random(1234)
        for _ in range(300):
            matches = [_match(f"m{i}", rng.random()) for i in range(rng.randint(0, 8))]
            breaks = [
                BreakPoint(
                    timestamp_seconds=round(rng.uniform(0, 1800), 1),
                    priority=rng.randint(1, 10),
                )
                for _ in range(rng.randint(0, 12))
            ]
            max_ads = rng.randint(1, 6)

            schedule = build_schedule(matches, breaks, max_ads)

            assert len(schedule) <= max_ads
            times = [s.insert_at_seconds for s in schedule]
            assert times == sorted(times)
            for i, a in enumerate(times):
                for b in times[i + 1:]:
                    assert abs(a - b) >= MIN_AD_SPACING
            assert len({s.ad_id for s in schedule}) == len(schedule)
