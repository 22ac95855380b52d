"""Unit tests for select_winning_index()."""

from fictioncord.domain.services.vote_selection import (
    FALLBACK_PROMPT_INDEX,
    select_winning_index,
)


class TestSelectWinningIndex:
    def test_tie_goes_to_earliest_prompt(self) -> None:
        assert select_winning_index([3, 3, 1]) == 0

    def test_strictly_highest_wins(self) -> None:
        assert select_winning_index([0, 2, 1]) == 1
        assert select_winning_index([1, 1, 4]) == 2

    def test_no_votes_selects_first(self) -> None:
        assert select_winning_index([0, 0, 0]) == 0

    def test_empty_counts_fall_back(self) -> None:
        assert select_winning_index([]) == FALLBACK_PROMPT_INDEX == 0
