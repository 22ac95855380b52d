"""Winner selection for the prompt poll.

Selection is deterministic: the strictly highest count wins and ties go
to the earliest-submitted prompt (counts are walked in submission order
and only a strictly greater count replaces the current best).
"""

from __future__ import annotations

from typing import Sequence

# Index used whenever the tally is unavailable.
FALLBACK_PROMPT_INDEX = 0


def select_winning_index(counts: Sequence[int]) -> int:
    """Pick the winning prompt index from per-prompt reaction counts.

    Args:
        counts: Human reaction count per prompt, in submission order.

    Returns:
        Index of the winning prompt; FALLBACK_PROMPT_INDEX for an empty list.

    Example:
        >>> select_winning_index([3, 3, 1])
        0
        >>> select_winning_index([0, 2, 1])
        1
    """
    best_index = FALLBACK_PROMPT_INDEX
    best_count = -1
    for index, count in enumerate(counts):
        if count > best_count:
            best_count = count
            best_index = index
    return best_index
