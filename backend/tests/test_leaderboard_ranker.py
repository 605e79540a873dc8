"""Tests for leaderboard gating and ranking."""

from examprep.models.leaderboard import LeaderboardEntry
from examprep.services.leaderboard import rank_entries, user_rank


def entry(user_id: str, score: int, correct: int) -> LeaderboardEntry:
    return LeaderboardEntry(
        user_id=user_id,
        username=user_id,
        score=score,
        correct_answers=correct,
        total_attempts=correct + 2,
    )


class TestRankEntries:
    def test_gate_at_five_correct(self):
        ranked = rank_entries([entry("four", 100, 4), entry("five", 5, 5)], min_correct=5)
        assert [e.user_id for e in ranked] == ["five"]

    def test_sorted_by_score_with_contiguous_ranks(self):
        entries = [entry("a", 10, 10), entry("b", 30, 30), entry("c", 20, 20)]
        ranked = rank_entries(entries, min_correct=5)
        assert [e.user_id for e in ranked] == ["b", "c", "a"]
        assert [e.rank for e in ranked] == [1, 2, 3]

    def test_ties_keep_input_order(self):
        entries = [entry("first", 10, 10), entry("second", 10, 10), entry("top", 12, 12)]
        ranked = rank_entries(entries, min_correct=5)
        assert [e.user_id for e in ranked] == ["top", "first", "second"]

    def test_input_not_mutated(self):
        entries = [entry("a", 10, 10)]
        rank_entries(entries, min_correct=5)
        assert entries[0].rank is None

    def test_empty(self):
        assert rank_entries([], min_correct=5) == []


class TestUserRank:
    def test_ranked_user(self):
        entries = [entry("a", 10, 10), entry("b", 30, 30)]
        ranked = rank_entries(entries, min_correct=5)
        own = user_rank(ranked, entries[0], "a", min_correct=5)
        assert own.rank == 2
        assert own.message is None

    def test_unranked_user_gets_message_and_counts(self):
        entries = [entry("a", 10, 10), entry("new", 3, 3)]
        ranked = rank_entries(entries, min_correct=5)
        own = user_rank(ranked, entries[1], "new", min_correct=5)
        assert own.rank is None
        assert own.correct_answers == 3
        assert own.message == "Solve at least 5 questions to appear on the leaderboard"

    def test_user_without_entry(self):
        own = user_rank([], None, "ghost", min_correct=5)
        assert own.user_id == "ghost"
        assert own.rank is None
        assert own.score == 0
