"""
Textual Application - Terminal chat with ELIZA
==============================================

This module implements a Textual TUI for talking to ELIZA: a
scrolling conversation, an input line, and the crash screen after
a parity error.
"""

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Input, Static

from core.config import Config, load_config
from core.exceptions import SessionTerminatedError
from core.logging import get_logger
from services.chat import ChatService, ChatSession

logger = get_logger("tui.app")


class ChatMessage(Static):
    """A single line of the conversation."""

    def __init__(self, sender: str, text: str, **kwargs):
        label = "ELIZA: " if sender == "eliza" else "You:   "
        super().__init__(label + text, markup=False, classes=f"message-{sender}", **kwargs)


class ElizaApp(App):
    """
    ELIZA Terminal UI Application.

    One conversation per run; after a parity error or a quit word the
    input is disabled until the conversation is rebooted.
    """

    TITLE = "ELIZA"
    SUB_TITLE = "A Rogerian Psychotherapist Simulation"

    CSS = """
    Screen {
        background: $surface;
    }

    #intro {
        color: $success;
        padding: 0 1;
    }

    #chat-log {
        height: 1fr;
        border: solid $success;
        padding: 0 1;
    }

    .message-eliza {
        color: $success;
        margin: 0 0 1 0;
    }

    .message-user {
        color: $text;
        margin: 0 0 1 0;
    }

    .crash {
        background: $error;
        color: $text;
        text-style: bold;
        padding: 0 1;
    }

    Input {
        margin: 1 0 0 0;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
        Binding("ctrl+r", "reboot", "Reboot"),
    ]

    def __init__(
        self,
        config: Optional[Config] = None,
        chat_service: Optional[ChatService] = None
    ):
        super().__init__()
        self.config = config or load_config()
        self.chat = chat_service or ChatService(self.config)
        self.session: ChatSession = self.chat.start_session()

    def compose(self) -> ComposeResult:
        yield Header()
        if self.config.ui.show_intro:
            yield Static(self.session.conversation.messages.intro.rstrip(), id="intro",
                         markup=False)
        yield VerticalScroll(id="chat-log")
        yield Input(placeholder=self.session.conversation.messages.prompt, id="chat-input")
        yield Footer()

    def on_mount(self) -> None:
        self.theme = "textual-dark" if self.config.ui.tui_theme == "dark" else "textual-light"
        self._add_message("eliza", self.session.greeting)
        self.query_one("#chat-input", Input).focus()

    def _add_message(self, sender: str, text: str) -> None:
        log = self.query_one("#chat-log", VerticalScroll)
        log.mount(ChatMessage(sender, text))
        log.scroll_end(animate=False)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        event.input.value = ""
        if not text:
            return

        self._add_message("user", text)

        try:
            result = self.chat.send(self.session.session_id, text)
        except SessionTerminatedError:
            event.input.disabled = True
            return

        self._add_message("eliza", result.reply)

        if result.terminated:
            log = self.query_one("#chat-log", VerticalScroll)
            for line in self.session.conversation.messages.crash:
                log.mount(Static(line, classes="crash", markup=False))
            log.scroll_end(animate=False)
            self.notify(self.session.conversation.messages.reboot + ": ctrl+r",
                        severity="error")

        if result.ended:
            event.input.disabled = True

    def action_reboot(self) -> None:
        """Restart the conversation with a fresh session state."""
        self.session = self.chat.reset(self.session.session_id)
        log = self.query_one("#chat-log", VerticalScroll)
        log.remove_children()
        self._add_message("eliza", self.session.greeting)

        chat_input = self.query_one("#chat-input", Input)
        chat_input.disabled = False
        chat_input.focus()
        logger.info("Conversation rebooted")

    def action_quit(self) -> None:
        self.exit()


def run_tui(config: Optional[Config] = None) -> None:
    app = ElizaApp(config=config)
    app.run()


if __name__ == "__main__":
    run_tui()
