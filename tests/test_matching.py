"""Unit tests for the need matcher."""

from unittest.mock import MagicMock

import pytest

from engage.config.models import MatchingConfig, TagMatchMode
from engage.matching import (
    MatchResult,
    NeedMatcher,
    availability_score,
    find_matches,
    gift_overlap,
    has_availability_match,
    tags_match,
)


class TestTagMatching:
    """Tests for single tag comparison."""

    def test_case_insensitive_equality(self):
        assert tags_match("Cooking", "cooking")

    def test_gift_contained_in_required_tag(self):
        assert tags_match("Cooking", "Meal Prep/Cooking")

    def test_required_tag_contained_in_gift(self):
        assert tags_match("Worship Music", "music")

    def test_unrelated_tags_do_not_match(self):
        assert not tags_match("Prayer", "Cooking")

    def test_substring_mode_is_permissive(self):
        assert tags_match("Art", "Cartography")

    def test_empty_tag_is_contained_in_every_tag(self):
        assert tags_match("Cooking", "")
        assert tags_match("", "Cooking")

    def test_token_mode_never_matches_empty_tags(self):
        assert not tags_match("Cooking", "", TagMatchMode.TOKEN)
        assert not tags_match("   ", "Cooking", TagMatchMode.TOKEN)

    def test_token_mode_keeps_word_matches(self):
        assert tags_match("Cooking", "Meal Prep/Cooking", TagMatchMode.TOKEN)
        assert tags_match("meal prep", "Meal Prep/Cooking", TagMatchMode.TOKEN)

    def test_token_mode_rejects_partial_words(self):
        assert not tags_match("Art", "Cartography", TagMatchMode.TOKEN)

    def test_token_mode_accepts_plain_string_value(self):
        # MatchingConfig stores the enum value, not the member
        assert not tags_match("Art", "Cartography", "token")


class TestGiftOverlap:
    """Tests for gift overlap collection."""

    def test_collects_matching_gifts_in_candidate_order(self):
        matched = gift_overlap(
            ["Prayer", "Cooking", "Driving"], ["driving", "Meal Prep/Cooking"]
        )
        assert matched == ["Cooking", "Driving"]

    def test_gift_counted_once_across_required_tags(self):
        matched = gift_overlap(["Cooking"], ["Cooking", "Meal Prep/Cooking"])
        assert matched == ["Cooking"]

    def test_no_required_tags_gives_no_overlap(self):
        assert gift_overlap(["Cooking"], []) == []

    def test_no_gifts_gives_no_overlap(self):
        assert gift_overlap([], ["Cooking"]) == []

    def test_empty_required_tag_matches_every_gift(self):
        assert gift_overlap(["Cooking", "Prayer"], [""]) == ["Cooking", "Prayer"]


class TestAvailabilityScoring:
    """Tests for the availability cascade."""

    def test_exact_bucket_scores_three(self):
        assert availability_score(["Mornings"], "Mornings") == 3

    def test_exact_bucket_wins_over_anytime(self):
        assert availability_score(["Anytime", "Mornings"], "Mornings") == 3

    def test_flexible_candidate_scores_two(self):
        assert availability_score(["Anytime"], "Mornings") == 2

    def test_flexible_need_scores_one(self):
        assert availability_score(["Nights"], "Anytime") == 1

    def test_mismatch_scores_zero(self):
        assert availability_score(["Nights"], "Mornings") == 0

    def test_empty_windows(self):
        assert availability_score([], "Mornings") == 0
        assert availability_score([], "Anytime") == 1

    @pytest.mark.parametrize(
        "windows,preference",
        [
            (["Mornings"], "Mornings"),
            (["Anytime"], "Nights"),
            (["Nights"], "Anytime"),
            (["Nights"], "Mornings"),
            ([], "Afternoons"),
        ],
    )
    def test_compatibility_agrees_with_score(self, windows, preference):
        assert has_availability_match(windows, preference) == (
            availability_score(windows, preference) > 0
        )


class TestFindMatches:
    """Tests for ranking, filtering and truncation."""

    def test_no_required_tags_excludes_everyone(self, make_candidate, make_need):
        need = make_need(tags=[])
        candidates = [
            make_candidate("c1", gifts=["Cooking"], availability=["Anytime"]),
            make_candidate("c2", gifts=["Prayer", "Driving"], availability=["Mornings"]),
        ]

        assert find_matches(candidates, need) == []

    def test_perfect_match_score(self, make_candidate, make_need):
        need = make_need(tags=["cooking"], time_preference="Mornings")
        candidate = make_candidate("c1", gifts=["Cooking"], availability=["Mornings"])

        [match] = find_matches([candidate], need)

        assert match.gift_overlap_count == 1
        assert match.matching_tags == ["Cooking"]
        assert match.availability_score == 3
        assert match.availability_is_compatible is True
        assert match.total_score == 5

    def test_flexible_candidate_score(self, make_candidate, make_need):
        need = make_need(tags=["cooking"], time_preference="Mornings")
        candidate = make_candidate("c1", gifts=["Cooking"], availability=["Anytime"])

        [match] = find_matches([candidate], need)

        assert match.availability_score == 2
        assert match.total_score == 4

    def test_flexible_need_score(self, make_candidate, make_need):
        need = make_need(tags=["cooking"], time_preference="Anytime")
        candidate = make_candidate("c1", gifts=["Cooking"], availability=["Nights"])

        [match] = find_matches([candidate], need)

        assert match.availability_score == 1
        assert match.total_score == 3

    def test_incompatible_availability_excluded(self, make_candidate, make_need):
        need = make_need(tags=["Cooking"], time_preference="Mornings")
        candidate = make_candidate("c1", gifts=["Cooking", "Baking"], availability=["Nights"])

        assert find_matches([candidate], need) == []

    def test_empty_pool_returns_empty(self, make_need):
        assert find_matches([], make_need()) == []

    def test_ties_keep_input_order(self, make_candidate, make_need):
        need = make_need(tags=["Cooking"], time_preference="Mornings")
        candidates = [
            make_candidate("first", gifts=["Cooking"], availability=["Anytime"]),
            make_candidate("second", gifts=["Cooking"], availability=["Anytime"]),
            make_candidate("third", gifts=["Cooking"], availability=["Anytime"]),
        ]

        results = find_matches(candidates, need)

        assert [m.candidate.id for m in results] == ["first", "second", "third"]

    def test_sorted_by_total_score_descending(self, make_candidate, make_need):
        need = make_need(tags=["Cooking", "Driving"], time_preference="Mornings")
        candidates = [
            make_candidate("low", gifts=["Cooking"], availability=["Anytime"]),
            make_candidate("high", gifts=["Cooking", "Driving"], availability=["Mornings"]),
            make_candidate("mid", gifts=["Cooking"], availability=["Mornings"]),
        ]

        results = find_matches(candidates, need)

        assert [m.candidate.id for m in results] == ["high", "mid", "low"]
        assert [m.total_score for m in results] == [7, 5, 4]

    def test_truncates_to_max_results(self, make_candidate, make_need):
        need = make_need(tags=["Cooking", "Driving", "Prayer"], time_preference="Mornings")
        candidates = [
            make_candidate("c1", gifts=["Cooking"], availability=["Anytime"]),
            make_candidate("c2", gifts=["Cooking", "Driving", "Prayer"], availability=["Mornings"]),
            make_candidate("c3", gifts=["Cooking"], availability=["Mornings"]),
            make_candidate("c4", gifts=["Cooking", "Driving"], availability=["Mornings"]),
            make_candidate("c5", gifts=["Prayer"], availability=["Anytime"]),
        ]

        results = find_matches(candidates, need, max_results=2)

        assert [m.candidate.id for m in results] == ["c2", "c4"]

    def test_fewer_matches_than_max_results_not_padded(self, make_candidate, make_need):
        need = make_need()
        results = find_matches([make_candidate("c1")], need, max_results=10)
        assert len(results) == 1

    def test_candidate_without_availability_matches_anytime_need(self, make_candidate, make_need):
        need = make_need(time_preference="Anytime")
        candidate = make_candidate("c1", availability=[])

        [match] = find_matches([candidate], need)

        assert match.availability_score == 1

    def test_token_mode_filters_partial_words(self, make_candidate, make_need):
        need = make_need(tags=["Cartography"])
        candidate = make_candidate("c1", gifts=["Art"])

        assert len(find_matches([candidate], need)) == 1
        assert find_matches([candidate], need, tag_match_mode=TagMatchMode.TOKEN) == []


class TestNeedMatcher:
    """Tests for the NeedMatcher class."""

    def test_from_config(self):
        matcher = NeedMatcher.from_config(
            MatchingConfig(max_results=3, tag_match_mode="token")
        )
        assert matcher.max_results == 3
        assert matcher.tag_match_mode == TagMatchMode.TOKEN

    def test_rejects_non_positive_max_results(self):
        with pytest.raises(ValueError):
            NeedMatcher(max_results=0)

    def test_call_override_of_max_results(self, make_candidate, make_need):
        matcher = NeedMatcher(max_results=1)
        candidates = [make_candidate("c1"), make_candidate("c2")]

        assert len(matcher.find_matches(candidates, make_need())) == 1
        assert len(matcher.find_matches(candidates, make_need(), max_results=5)) == 2

        with pytest.raises(ValueError):
            matcher.find_matches(candidates, make_need(), max_results=0)

    def test_evaluate_reports_non_matches(self, make_candidate, make_need):
        matcher = NeedMatcher()
        result = matcher.evaluate(
            make_candidate("c1", gifts=["Prayer"], availability=["Nights"]),
            make_need(tags=["Cooking"], time_preference="Mornings"),
        )

        assert isinstance(result, MatchResult)
        assert result.is_match is False
        assert result.gift_overlap_count == 0
        assert result.availability_is_compatible is False
        assert result.total_score == 0

    def test_overlap_count_equals_matching_tags(self, make_candidate, make_need):
        matcher = NeedMatcher()
        result = matcher.evaluate(
            make_candidate("c1", gifts=["Cooking", "Baking", "Prayer"]),
            make_need(tags=["cook", "bak"]),
        )
        assert result.gift_overlap_count == len(result.matching_tags) == 2

    def test_logs_completion_event(self, make_candidate, make_need):
        mock_logger = MagicMock()
        matcher = NeedMatcher(logger_instance=mock_logger)

        matcher.find_matches([make_candidate("c1")], make_need())

        mock_logger.info.assert_called_once()
        extra = mock_logger.info.call_args.kwargs["extra"]
        assert extra["event"] == "matching.completed"
        assert extra["candidates_evaluated"] == 1
        assert extra["matches_returned"] == 1

    def test_accepts_generator_pool(self, make_candidate, make_need):
        matcher = NeedMatcher()
        pool = (make_candidate(f"c{i}") for i in range(3))

        assert len(matcher.find_matches(pool, make_need())) == 3
