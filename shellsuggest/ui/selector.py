"""
Interactive suggestion picker.

SelectionState is the pure state machine (index arithmetic, confirm/cancel);
SelectionUI wraps it in a full-screen prompt_toolkit Application. The
Application owns raw mode and the alternate screen and restores the terminal
on every exit path, including exceptions raised inside key handlers.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple

from prompt_toolkit.application import Application
from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.output import Output, create_output
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from shellsuggest.daemon.protocol import Suggestion

TTY_PATH = "/dev/tty"

SELECTED_MARKER = "> "
UNSELECTED_MARKER = "  "

STYLE = Style.from_dict(
    {
        "selected": "fg:ansiyellow bold",
        "frame.label": "bold",
    }
)

CHOSEN = "chosen"
CANCELLED = "cancelled"


class SelectionState:
    """Cursor over a fixed, non-empty list of suggestions."""

    def __init__(self, suggestions: Sequence[Suggestion]):
        if not suggestions:
            raise ValueError("SelectionState needs at least one suggestion")
        self.suggestions: Tuple[Suggestion, ...] = tuple(suggestions)
        self.selected_index = 0
        self.outcome: Optional[str] = None

    @property
    def current(self) -> Suggestion:
        return self.suggestions[self.selected_index]

    def move_down(self) -> None:
        self.selected_index = (self.selected_index + 1) % len(self.suggestions)

    def move_up(self) -> None:
        n = len(self.suggestions)
        self.selected_index = (self.selected_index - 1 + n) % n

    def confirm(self) -> Suggestion:
        self.outcome = CHOSEN
        return self.current

    def cancel(self) -> None:
        self.outcome = CANCELLED
        return None

    def render_lines(self) -> List[Tuple[str, str]]:
        """One (style, line) pair per suggestion, selected entry highlighted."""
        lines = []
        for index, suggestion in enumerate(self.suggestions):
            if index == self.selected_index:
                lines.append(("class:selected", SELECTED_MARKER + suggestion.label()))
            else:
                lines.append(("", UNSELECTED_MARKER + suggestion.label()))
        return lines


class SelectionUI:
    """Full-screen list picker resolving to a Suggestion or None."""

    def __init__(
        self,
        suggestions: Sequence[Suggestion],
        input: Optional[Input] = None,
        output: Optional[Output] = None,
        full_screen: bool = True,
    ):
        self.state = SelectionState(suggestions)
        self.app: Application = Application(
            layout=self._build_layout(),
            key_bindings=self._setup_key_bindings(),
            style=STYLE,
            full_screen=full_screen,
            erase_when_done=True,
            input=input,
            output=output,
        )

    def _build_layout(self) -> Layout:
        control = FormattedTextControl(
            self._formatted_text,
            focusable=True,
            show_cursor=False,
        )
        body = Frame(Window(control, always_hide_cursor=True), title="Suggestions")
        return Layout(HSplit([body]))

    def _formatted_text(self):
        fragments = []
        for index, (style, line) in enumerate(self.state.render_lines()):
            if index:
                fragments.append(("", "\n"))
            fragments.append((style, line))
        return fragments

    def _setup_key_bindings(self) -> KeyBindings:
        """Navigation, confirm and cancel keys. Anything else is ignored."""
        kb = KeyBindings()

        @kb.add("down")
        @kb.add("c-n")
        @kb.add("tab")
        def _(event):
            self.state.move_down()

        @kb.add("up")
        @kb.add("c-p")
        @kb.add("s-tab")
        def _(event):
            self.state.move_up()

        @kb.add("enter")
        def _(event):
            event.app.exit(result=self.state.confirm())

        @kb.add("escape", eager=True)
        @kb.add("q")
        @kb.add("c-c")
        @kb.add("c-g")
        def _(event):
            event.app.exit(result=self.state.cancel())

        return kb

    def run(self) -> Optional[Suggestion]:
        """Block until the user confirms (Suggestion) or cancels (None)."""
        return self.app.run()


@contextmanager
def open_terminal(path: str = TTY_PATH) -> Iterator[Tuple[Input, Output]]:
    """
    Attach to the controlling terminal directly.

    The shell captures our stdout to read the chosen completion, so the
    picker has to draw on the tty itself. Raises OSError if there is none.
    """
    with open(path, "r") as tty_in, open(path, "w") as tty_out:
        yield create_input(stdin=tty_in), create_output(stdout=tty_out)


def pick(suggestions: Sequence[Suggestion]) -> Optional[Suggestion]:
    """Run the picker on the controlling terminal."""
    with open_terminal() as (tty_input, tty_output):
        return SelectionUI(suggestions, input=tty_input, output=tty_output).run()
