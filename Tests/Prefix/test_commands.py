# test_commands.py
# Description: Tests for the command planners and selection helpers
#
# Imports
import pytest
#
# Local Imports
from date_gutter.Buffer.text_types import Range, Selection
from date_gutter.Prefix.commands import (
    COPY_WITHOUT_PREFIX, DELETE_SELECTED_LINES, adjust_selections, available_code_actions,
    copy_without_prefix_text, plan_delete_selected_lines, plan_force_insert_prefix,
    plan_set_date_to_zero, selected_line_indexes,
)
#
########################################################################################################################
#
# Tests:

class TestCopyWithoutPrefix:

    def test_full_lines(self, make_buffer):
        buffer = make_buffer("000001231123Hello\n000001231124World")
        assert copy_without_prefix_text(buffer, [Selection.from_coords(0, 0, 1, 17)]) == "Hello\nWorld"

    def test_only_prefixed_lines_lose_characters(self, make_buffer):
        buffer = make_buffer("000001231123Hello\nplain text here")
        assert copy_without_prefix_text(buffer, [Selection.from_coords(0, 0, 1, 15)]) == "Hello\nplain text here"

    def test_selection_starting_after_prefix(self, make_buffer):
        buffer = make_buffer("000001231123Hello")
        assert copy_without_prefix_text(buffer, [Selection.from_coords(0, 13, 0, 17)]) == "ello"

    def test_reversed_and_multiple_selections(self, make_buffer):
        buffer = make_buffer("000001231123Hello\n000002231124World\n000003231125Again")
        selections = [Selection.from_coords(0, 17, 0, 0), Selection.from_coords(2, 0, 2, 17)]
        assert copy_without_prefix_text(buffer, selections) == "Hello\nAgain"

    def test_empty_selection_copies_cursor_line(self, make_buffer):
        buffer = make_buffer("000001231123Hello\n000002231124World")
        assert copy_without_prefix_text(buffer, [Selection.cursor(1, 4)]) == "World"


class TestDeleteSelectedLines:

    @pytest.mark.asyncio
    async def test_middle_line(self, make_buffer):
        buffer = make_buffer("000001231123Line1\n000001231124Line2\n000001231125Line3")
        plan = plan_delete_selected_lines(buffer, [Selection.cursor(1, 5)])
        assert await buffer.apply_edits(plan.edits)
        assert buffer.text == "000001231123Line1\n000001231125Line3"
        assert plan.message == "Deleted 1 line (1 with number prefix)"

    @pytest.mark.asyncio
    async def test_separate_blocks_and_last_line(self, make_buffer):
        buffer = make_buffer("A\n000002231124B\nC\nD\n000005231124E")
        plan = plan_delete_selected_lines(buffer, [Selection.cursor(0, 0), Selection.from_coords(3, 0, 4, 2)])
        assert [edit.range.start.line for edit in plan.edits] == [2, 0]
        assert await buffer.apply_edits(plan.edits)
        assert buffer.text == "000002231124B\nC"
        assert plan.message == "Deleted 3 lines (1 with number prefix)"

    @pytest.mark.asyncio
    async def test_everything(self, make_buffer):
        buffer = make_buffer("A\nB")
        plan = plan_delete_selected_lines(buffer, [Selection.from_coords(0, 0, 1, 1)])
        assert await buffer.apply_edits(plan.edits)
        assert buffer.text == ""
        assert plan.message == "Deleted 2 lines"


class TestZeroAndForceInsert:

    @pytest.mark.asyncio
    async def test_set_date_to_zero(self, make_buffer):
        buffer = make_buffer("000001231123Line1\n000002231124Line2")
        plan = plan_set_date_to_zero(buffer, [Selection.from_coords(0, 0, 1, 17)])
        assert await buffer.apply_edits(plan.edits)
        assert buffer.text == "000001000000Line1\n000002000000Line2"
        assert plan.message == "Set date to 000000 on 2 lines"

    def test_set_date_to_zero_without_prefixes(self, make_buffer):
        plan = plan_set_date_to_zero(make_buffer("plain"), [Selection.cursor(0, 0)])
        assert plan.edits == []
        assert plan.message == "No selected lines have a prefix"

    @pytest.mark.asyncio
    async def test_force_insert_prefix(self, make_buffer):
        buffer = make_buffer("000001231123A\nB\n\nD")
        plan = plan_force_insert_prefix(buffer, [Selection.from_coords(0, 0, 3, 1)])
        assert plan.affected_lines == [1, 2, 3]
        assert await buffer.apply_edits(plan.edits)
        assert buffer.text == "000001231123A\n000002000000B\n000003000000\n000004000000D"
        assert plan.message == "Inserted prefix on 3 lines"

    def test_force_insert_all_prefixed(self, make_buffer):
        plan = plan_force_insert_prefix(make_buffer("000001231123A"), [Selection.cursor(0, 3)])
        assert plan.message == "All selected lines already have a prefix"


class TestSelectionHelpers:

    def test_selected_line_indexes_deduplicates(self, make_buffer):
        buffer = make_buffer("a\nb\nc\nd")
        selections = [Selection.from_coords(0, 0, 1, 0), Selection.from_coords(1, 0, 2, 0), Selection.cursor(9, 0)]
        assert selected_line_indexes(buffer, selections) == [0, 1, 2]

    def test_code_actions(self, make_buffer):
        buffer = make_buffer("000001231123Hello\nplain")
        assert available_code_actions(buffer, Range.from_coords(0, 0, 0, 5)) == [COPY_WITHOUT_PREFIX, DELETE_SELECTED_LINES]
        assert available_code_actions(buffer, Range.from_coords(1, 0, 1, 5)) == []
        assert available_code_actions(buffer, Range.from_coords(0, 3, 0, 3)) == []

    def test_adjust_multi_line_selection(self, make_buffer):
        buffer = make_buffer("000001231123Hello\n000002231124World")
        adjusted = adjust_selections(buffer, [Selection.from_coords(0, 2, 1, 5)])
        assert adjusted == [Selection.from_coords(0, 12, 1, 5)]

    def test_adjust_keeps_direction(self, make_buffer):
        buffer = make_buffer("000001231123Hello\n000002231124World")
        adjusted = adjust_selections(buffer, [Selection.from_coords(1, 5, 0, 0)])
        assert adjusted == [Selection.from_coords(1, 5, 0, 12)]
        assert adjusted[0].is_reversed

    def test_adjust_leaves_single_line_alone(self, make_buffer):
        buffer = make_buffer("000001231123Hello")
        assert adjust_selections(buffer, [Selection.from_coords(0, 2, 0, 8)]) is None

#
# End of test_commands.py
########################################################################################################################
