"""
Round-robin fairness ordering for the room queue.

Each entry carries the rank its contributor had when it was submitted
(1 for their first queued track, 2 for the second, ...). Keeping the queue
sorted by rank, and by arrival within a rank, interleaves contributors: a
contributor's second track never overtakes anyone's unplayed first track.
"""


def fairness_rank(already_queued):
    """Rank for a new entry given how many tracks the contributor already has queued"""
    return already_queued + 1


def find_insert_index(ranks, new_rank):
    """Index at which an entry of ``new_rank`` is inserted into a queue with ``ranks``.

    Scans from the tail for the last entry whose rank is <= ``new_rank`` and
    returns the slot right after it, or 0 when every queued rank is higher.
    """
    for index in range(len(ranks) - 1, -1, -1):
        if ranks[index] <= new_rank:
            return index + 1
    return 0


def renumber(entries):
    """Assign dense 1-based positions following list order"""
    for index, entry in enumerate(entries, start=1):
        if entry.position != index:
            entry.position = index
    return entries
