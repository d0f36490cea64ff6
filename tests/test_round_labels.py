import pytest

from worldcup.services.errors import InvalidInputError
from worldcup.services.round_labels import (
    CHAMPION,
    FINAL,
    QUARTERFINAL,
    SEMIFINAL,
    bracket_size_options,
    label_for_match,
    label_priority,
    round_label,
)


class TestRoundLabel:
    def test_named_labels(self):
        assert round_label(CHAMPION).name == "champion"
        assert round_label(FINAL).name == "final"
        assert round_label(SEMIFINAL).name == "semifinal"
        assert round_label(QUARTERFINAL).name == "quarterfinal"

    def test_round_of_n_for_any_power_of_two(self):
        assert round_label(4).name == "round_of_16"
        assert round_label(4).title == "Round of 16"
        assert round_label(10).name == "round_of_1024"
        assert round_label(10).participants == 1024

    def test_priority_orders_champion_first(self):
        labels = [round_label(r) for r in (5, 0, 3, 1, 2)]
        ordered = sorted(labels, key=label_priority, reverse=True)
        assert [str(label) for label in ordered] == [
            "champion",
            "final",
            "semifinal",
            "quarterfinal",
            "round_of_32",
        ]

    def test_missing_label_ranks_below_everything(self):
        assert label_priority(None) < label_priority(round_label(20))

    def test_negative_remaining_rounds(self):
        with pytest.raises(InvalidInputError):
            round_label(-1)


class TestLabelForMatch:
    def test_eight_item_bracket(self):
        assert label_for_match(1, 3).name == "quarterfinal"
        assert label_for_match(2, 3).name == "semifinal"
        assert label_for_match(3, 3).name == "final"

    def test_two_item_bracket_is_a_final(self):
        assert label_for_match(1, 1).name == "final"

    @pytest.mark.parametrize("round_number", [0, 4])
    def test_round_outside_bracket(self, round_number):
        with pytest.raises(InvalidInputError):
            label_for_match(round_number, 3)


class TestBracketSizeOptions:
    def test_largest_first_with_byes(self):
        options = bracket_size_options(20)
        assert [o.size for o in options] == [32, 16, 8, 4]
        assert options[0].title == "Round of 32"
        assert options[0].bye_count == 12
        assert options[1].bye_count == 0
        assert options[-1].title == "Semifinal"

    def test_exact_power_of_two(self):
        assert [o.size for o in bracket_size_options(8)] == [8, 4]

    def test_capped_by_max_size(self):
        assert [o.size for o in bracket_size_options(3000, max_size=1024)][0] == 1024

    def test_min_size(self):
        assert [o.size for o in bracket_size_options(3, min_size=2)] == [4, 2]

    def test_too_small_pool(self):
        assert bracket_size_options(1) == []
