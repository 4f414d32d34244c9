"""Root coordinator: service menu, global keys, toast lifecycle."""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from rich.console import Group, RenderableType
from rich.text import Text

from .components import centered, help_line, render_toast, title, toast_left_padding
from .messages import (
    QUIT,
    BackToMenu,
    ClearToast,
    KeyPress,
    Resize,
    ShowToast,
    Timer,
    ToastLevel,
)

if TYPE_CHECKING:
    from ..services.base import Browser

logger = logging.getLogger(__name__)

TOAST_DURATION = 3.0
TOAST_TIMER_KEY = "toast"
GOODBYE = "Goodbye! 👋"


class Service(str, Enum):
    MENU = "menu"
    DYNAMODB = "dynamodb"
    LOGS = "logs"


# Menu digit -> (service, label)
MENU_ENTRIES: dict[str, tuple[Service, str]] = {
    "1": (Service.DYNAMODB, "📊 DynamoDB - Manage tables and items"),
    "2": (Service.LOGS, "📝 CloudWatch Logs - View Lambda logs"),
}


class App:
    """Owns service selection and routes every message.

    Global keys (``ctrl+c``; ``q`` and digits at the menu), resizes and
    toast/navigation messages are handled here. Everything else goes to the
    active browser unchanged.
    """

    def __init__(self, dynamo: Browser, logs: Browser):
        self.browsers: dict[Service, Browser] = {
            Service.DYNAMODB: dynamo,
            Service.LOGS: logs,
        }
        self.service = Service.MENU
        self.width = 0
        self.height = 0
        self.quitting = False

        self.toast_message = ""
        self.toast_level = ToastLevel.INFO
        self.toast_visible = False
        self.toast_epoch = 0

    @property
    def active(self) -> Browser | None:
        return self.browsers.get(self.service)

    # ═══════════════════════════════════════════════════════════════════════════
    # UPDATE
    # ═══════════════════════════════════════════════════════════════════════════

    def update(self, msg: Any) -> list:
        if isinstance(msg, Resize):
            return self._on_resize(msg)
        if isinstance(msg, KeyPress):
            return self._on_key(msg)
        if isinstance(msg, ShowToast):
            return self._show_toast(msg)
        if isinstance(msg, ClearToast):
            if msg.epoch is None or msg.epoch == self.toast_epoch:
                self.toast_visible = False
            return []
        if isinstance(msg, BackToMenu):
            logger.debug("back to menu from %s", self.service.value)
            self.service = Service.MENU
            return []

        browser = self.active
        if browser is None:
            logger.debug("no active browser for %s", type(msg).__name__)
            return []
        return browser.update(msg)

    def _on_resize(self, msg: Resize) -> list:
        self.width = msg.width
        self.height = msg.height
        if self.active is not None:
            return self.active.update(msg)
        effects: list = []
        for browser in self.browsers.values():
            effects += browser.update(msg)
        return effects

    def _on_key(self, msg: KeyPress) -> list:
        if msg.key == "ctrl+c":
            return self._quit()
        if self.service is Service.MENU:
            if msg.key == "q":
                return self._quit()
            entry = MENU_ENTRIES.get(msg.key)
            if entry is not None:
                return self.switch(entry[0])
            return []
        return self.active.update(msg)

    def switch(self, service: Service) -> list:
        """Enter ``service`` and (re)initialize its browser."""
        logger.info("switching to %s", service.value)
        self.service = service
        browser = self.active
        if browser is None:
            return []
        return browser.init()

    def _quit(self) -> list:
        self.quitting = True
        return [QUIT]

    def _show_toast(self, msg: ShowToast) -> list:
        self.toast_epoch += 1
        self.toast_message = msg.message
        self.toast_level = msg.level
        self.toast_visible = True
        return [Timer(TOAST_DURATION, ClearToast(self.toast_epoch), key=TOAST_TIMER_KEY)]

    # ═══════════════════════════════════════════════════════════════════════════
    # VIEW
    # ═══════════════════════════════════════════════════════════════════════════

    def render_menu(self) -> RenderableType:
        parts: list = [title("☁️  cirrus"), Text("")]
        for digit, (_, label) in MENU_ENTRIES.items():
            parts.append(Text(f"{digit}. {label}"))
        parts.append(Text(""))
        parts.append(help_line("Select a number • q: Quit"))
        return Group(*parts)

    def view(self) -> RenderableType:
        if self.quitting:
            return Text(GOODBYE)

        if self.active is None:
            body = centered(self.render_menu(), self.width, self.height)
        else:
            body = self.active.view()

        if not self.toast_visible:
            return body

        toast = render_toast(self.toast_message, self.toast_level)
        padded = Text(" " * toast_left_padding(self.width, toast.cell_len)) + toast
        return Group(padded, body)
