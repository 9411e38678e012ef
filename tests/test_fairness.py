"""
Round-robin ordering helpers
"""

from types import SimpleNamespace

from djroom.scheduler.fairness import fairness_rank, find_insert_index, renumber


class TestFairnessRank:

    def test_first_track_has_rank_one(self):
        assert fairness_rank(0) == 1

    def test_rank_grows_with_queued_count(self):
        assert fairness_rank(2) == 3


class TestFindInsertIndex:

    def test_empty_queue(self):
        assert find_insert_index([], 1) == 0

    def test_appends_after_same_rank(self):
        assert find_insert_index([1, 1, 2], 1) == 2

    def test_appends_at_tail_for_highest_rank(self):
        assert find_insert_index([1, 2, 3], 3) == 3

    def test_goes_to_front_when_every_rank_is_higher(self):
        # Ranks go stale after plays, so a newcomer can outrank the whole queue
        assert find_insert_index([2, 3], 1) == 0

    def test_lands_between_ranks(self):
        assert find_insert_index([1, 1, 3, 3], 2) == 2


def test_renumber_assigns_dense_positions():
    entries = [SimpleNamespace(position=p) for p in (4, 9, 2)]
    renumber(entries)
    assert [entry.position for entry in entries] == [1, 2, 3]
