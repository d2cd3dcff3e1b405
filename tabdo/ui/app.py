"""
FILE: tabdo/ui/app.py
PURPOSE: Full-screen terminal front-end around the Controller
EXPORTS:
  - key_name(key_press) -> Optional[str]
  - build_application(controller) -> Application
  - run_app(state) -> int
DEPENDENCIES:
  - prompt_toolkit (Application, layout, key bindings)
  - tabdo.ui.controller, tabdo.ui.render
NOTES:
  - A single Keys.Any binding feeds every key to the controller, which
    decides per focused widget what it means
  - Terminal resizes are picked up on the next draw (row count is read
    from the output each time)
"""

import logging
from typing import Optional

from prompt_toolkit.application import Application
from prompt_toolkit.application.current import get_app
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl

from ..core.state import AppState
from .controller import Controller
from .render import STYLE, render_status, render_tab_bar, render_tasks

logger = logging.getLogger(__name__)


# Rows taken by everything except the task list
CHROME_ROWS = 3

_KEY_NAMES = {
    Keys.ControlM: "enter",
    Keys.ControlJ: "enter",
    Keys.ControlI: "tab",
    Keys.ControlH: "backspace",
    Keys.Escape: "escape",
    Keys.BackTab: "s-tab",
    Keys.SIGINT: "c-c",
}

_IGNORED = {
    Keys.CPRResponse,
    Keys.Vt100MouseEvent,
    Keys.WindowsMouseEvent,
    Keys.ScrollUp,
    Keys.ScrollDown,
    Keys.Ignore,
}


def key_name(key_press: KeyPress) -> Optional[str]:
    """
    Name a key press the way the keymaps spell it.

    Returns:
        'enter', 'tab', 'escape', 'backspace', 'up', 'c-c', a single
        character, 'space', ... or None for events that are not keys
    """
    key = key_press.key
    if isinstance(key, Keys):
        if key in _IGNORED:
            return None
        return _KEY_NAMES.get(key, key.value)
    if key == " ":
        return "space"
    return key


def _task_rows() -> int:
    return max(1, get_app().output.get_size().rows - CHROME_ROWS)


def build_application(controller: Controller) -> Application:
    kb = KeyBindings()

    @kb.add(Keys.Any)
    def _(event):
        key_press = event.key_sequence[0]
        if key_press.key == Keys.BracketedPaste:
            controller.handle_paste(event.data)
        else:
            name = key_name(key_press)
            if name is None:
                return
            if not controller.handle_key(name):
                event.app.exit(result=controller.exit_code)
                return
        if controller.take_redraw():
            event.app.invalidate()

    def tasks_text():
        return render_tasks(controller, _task_rows())

    root = HSplit([
        Window(content=FormattedTextControl(lambda: render_tab_bar(controller)),
               height=1, always_hide_cursor=True),
        Window(char="-", height=1, style="class:tab.separator"),
        Window(content=FormattedTextControl(tasks_text), always_hide_cursor=True,
               wrap_lines=False),
        Window(content=FormattedTextControl(lambda: render_status(controller)),
               height=1, always_hide_cursor=True),
    ])

    app = Application(
        layout=Layout(root),
        key_bindings=kb,
        style=STYLE,
        full_screen=True,
    )
    # Short escape timeout so a lone Escape cancels promptly
    app.ttimeoutlen = 0.05
    return app


def run_app(state: AppState) -> int:
    """
    Run the UI until the user quits.

    Returns:
        Process exit code (0, or 1 if the final save was abandoned)
    """
    controller = Controller(state)
    app = build_application(controller)
    logger.info("Starting UI with %d tasks in %d tabs", len(state.task_list), len(state.tabs))
    result = app.run()
    logger.info("UI stopped with exit code %s", result)
    return controller.exit_code if result is None else result
