"""User interaction boundary: blocking alerts and prompts, non-blocking panels."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, TextIO


class Button(str, Enum):
    OK = "ok"
    YES = "yes"
    NO = "no"
    CANCEL = "cancel"


class ButtonSet(str, Enum):
    OK = "ok"
    YES_NO = "yes_no"
    OK_CANCEL = "ok_cancel"


class UserInteraction(ABC):
    """What actions need from the person driving them."""

    @abstractmethod
    def alert(self, title: str, message: str, buttons: ButtonSet = ButtonSet.OK) -> Button:
        """Show ``message`` and block until a button is chosen."""

    @abstractmethod
    def prompt(self, title: str, message: str) -> str | None:
        """Ask for one line of text; ``None`` means the user cancelled."""

    @abstractmethod
    def show_panel(self, title: str, body: str) -> None:
        """Display rendered content without waiting for an answer."""

    def confirm(self, title: str, message: str) -> bool:
        return self.alert(title, message, ButtonSet.YES_NO) is Button.YES


_YES_ANSWERS = {"s", "si", "sí", "y", "yes"}
_NO_ANSWERS = {"n", "no"}


class ConsoleInteraction(UserInteraction):
    """stdin/stdout adapter; ``assume_yes`` answers every confirmation with YES."""

    def __init__(
        self,
        *,
        assume_yes: bool = False,
        input_func: Callable[[str], str] = input,
        output: TextIO | None = None,
    ) -> None:
        self.assume_yes = assume_yes
        self.input_func = input_func
        self.output = output or sys.stdout

    def _write(self, text: str) -> None:
        print(text, file=self.output)

    def _read(self, label: str) -> str | None:
        try:
            return self.input_func(label)
        except EOFError:
            return None

    def alert(self, title: str, message: str, buttons: ButtonSet = ButtonSet.OK) -> Button:
        self._write(f"\n== {title} ==\n{message}")
        if buttons is ButtonSet.OK:
            return Button.OK
        if buttons is ButtonSet.YES_NO:
            if self.assume_yes:
                self._write("[s/n] s")
                return Button.YES
            while True:
                answer = self._read("[s/n] ")
                if answer is None:
                    return Button.NO
                answer = answer.strip().lower()
                if answer in _YES_ANSWERS:
                    return Button.YES
                if answer in _NO_ANSWERS:
                    return Button.NO
        answer = self._read("[Enter para aceptar, c para cancelar] ")
        if answer is None or answer.strip().lower() == "c":
            return Button.CANCEL
        return Button.OK

    def prompt(self, title: str, message: str) -> str | None:
        self._write(f"\n== {title} ==\n{message}")
        answer = self._read("> ")
        if answer is None:
            return None
        answer = answer.strip()
        return answer or None

    def show_panel(self, title: str, body: str) -> None:
        self._write(f"\n== {title} ==\n{body}")


__all__ = ["Button", "ButtonSet", "ConsoleInteraction", "UserInteraction"]
