"""
Tests for ui/selector.py - selection state machine and the picker app.

The picker runs against prompt_toolkit's pipe input and DummyOutput, so key
presses are fed as raw terminal bytes.
"""

import unittest

from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from shellsuggest.daemon.protocol import Suggestion
from shellsuggest.ui.selector import CANCELLED, CHOSEN, SelectionState, SelectionUI

DOWN = "\x1b[B"
UP = "\x1b[A"
ENTER = "\r"

GIT = [Suggestion("commit", "Record changes"), Suggestion("common", "")]
FIVE = [Suggestion(f"item{i}") for i in range(5)]


def run_picker(suggestions, keys: str):
    with create_pipe_input() as pipe_input:
        pipe_input.send_text(keys)
        ui = SelectionUI(suggestions, input=pipe_input, output=DummyOutput())
        return ui.run(), ui.state


class TestSelectionState(unittest.TestCase):
    """Pure navigation semantics."""

    def test_empty_sequence_is_rejected(self):
        with self.assertRaises(ValueError):
            SelectionState([])

    def test_starts_at_first_entry(self):
        state = SelectionState(GIT)
        self.assertEqual(state.selected_index, 0)
        self.assertEqual(state.current, GIT[0])
        self.assertIsNone(state.outcome)

    def test_move_down_wraps_to_first(self):
        state = SelectionState(FIVE)
        for expected in [1, 2, 3, 4, 0]:
            state.move_down()
            self.assertEqual(state.selected_index, expected)

    def test_move_up_wraps_to_last(self):
        state = SelectionState(FIVE)
        state.move_up()
        self.assertEqual(state.selected_index, 4)

    def test_n_moves_return_to_start(self):
        for start in range(len(FIVE)):
            state = SelectionState(FIVE)
            state.selected_index = start
            for _ in range(len(FIVE)):
                state.move_down()
            self.assertEqual(state.selected_index, start)
            for _ in range(len(FIVE)):
                state.move_up()
            self.assertEqual(state.selected_index, start)

    def test_single_entry_never_moves(self):
        state = SelectionState([Suggestion("only")])
        state.move_down()
        self.assertEqual(state.selected_index, 0)
        state.move_up()
        self.assertEqual(state.selected_index, 0)

    def test_confirm_returns_current_entry(self):
        state = SelectionState(GIT)
        state.move_down()
        self.assertEqual(state.confirm(), Suggestion("common", ""))
        self.assertEqual(state.outcome, CHOSEN)

    def test_cancel_returns_nothing(self):
        state = SelectionState(GIT)
        self.assertIsNone(state.cancel())
        self.assertEqual(state.outcome, CANCELLED)

    def test_confirm_is_independent_of_cancelled_session(self):
        cancelled = SelectionState(FIVE)
        cancelled.move_down()
        cancelled.move_down()
        cancelled.cancel()

        fresh = SelectionState(FIVE)
        self.assertEqual(fresh.confirm(), FIVE[0])

    def test_render_highlights_selected_entry(self):
        state = SelectionState(GIT)
        lines = state.render_lines()

        self.assertEqual(lines[0], ("class:selected", "> commit - Record changes"))
        self.assertEqual(lines[1], ("", "  common"))

        state.move_down()
        lines = state.render_lines()
        self.assertEqual(lines[0], ("", "  commit - Record changes"))
        self.assertEqual(lines[1], ("class:selected", "> common"))


class TestSelectionUI(unittest.TestCase):
    """Key handling through a real prompt_toolkit Application."""

    def test_enter_confirms_first_entry(self):
        result, _ = run_picker(GIT, ENTER)
        self.assertEqual(result, GIT[0])

    def test_git_example_down_then_enter(self):
        result, state = run_picker(GIT, DOWN + ENTER)
        self.assertEqual(result, Suggestion("common", ""))
        self.assertEqual(state.outcome, CHOSEN)

    def test_up_from_first_wraps_to_last(self):
        result, _ = run_picker(FIVE, UP + ENTER)
        self.assertEqual(result, FIVE[-1])

    def test_emacs_and_tab_navigation(self):
        result, _ = run_picker(FIVE, "\x0e\x0e\t\x10" + ENTER)  # c-n c-n tab c-p
        self.assertEqual(result, FIVE[2])

    def test_q_cancels(self):
        result, state = run_picker(GIT, DOWN + "q")
        self.assertIsNone(result)
        self.assertEqual(state.outcome, CANCELLED)

    def test_ctrl_c_cancels(self):
        result, _ = run_picker(GIT, "\x03")
        self.assertIsNone(result)

    def test_other_keys_change_nothing(self):
        result, _ = run_picker(FIVE, "xyz " + DOWN + "1" + ENTER)
        self.assertEqual(result, FIVE[1])

    def test_rendered_text_follows_selection(self):
        with create_pipe_input() as pipe_input:
            ui = SelectionUI(GIT, input=pipe_input, output=DummyOutput())
            fragments = ui._formatted_text()
            self.assertIn(("class:selected", "> commit - Record changes"), fragments)

            ui.state.move_down()
            fragments = ui._formatted_text()
            self.assertIn(("class:selected", "> common"), fragments)


if __name__ == "__main__":
    unittest.main()
