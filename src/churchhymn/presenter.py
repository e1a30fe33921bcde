"""Presenter session and the controller that owns it.

A :class:`PresenterSession` is the full-screen view of one hymn. Opening it
installs a :class:`KeyTap` and closing it removes the tap again, so key
presses only reach the sequencer while the session is open.

:class:`PresentationController` keeps at most one session alive::

    controller = PresentationController(cyclic=True)
    session = controller.present(hymn)
    session.feed("right")
    controller.close()
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .models import Hymn
from .sequencer import PresentationSequencer

logger = logging.getLogger(__name__)

KeyHandler = Callable[[str], bool]


class KeyTap:
    """A single key-event subscription.

    Installing an already installed tap is an error, since it would leave
    the first handler unreachable. Removing an idle tap does nothing.
    """

    def __init__(self) -> None:
        self._handler: KeyHandler | None = None

    @property
    def installed(self) -> bool:
        return self._handler is not None

    def install(self, handler: KeyHandler) -> None:
        if self._handler is not None:
            raise RuntimeError("key tap is already installed")
        self._handler = handler

    def remove(self) -> None:
        self._handler = None

    def dispatch(self, key: str) -> bool:
        """Pass *key* to the handler. Returns False when nothing is installed."""
        if self._handler is None:
            return False
        return self._handler(key)


@dataclass
class Slide:
    """What the presenter shows for the current block."""

    title: str
    text: str
    label: str | None


class PresenterSession:
    def __init__(self, hymn: Hymn, cyclic: bool = True, chorus_only_fallback: bool = False):
        self.hymn = hymn
        self.sequencer = PresentationSequencer(
            hymn.blocks, cyclic=cyclic, chorus_only_fallback=chorus_only_fallback
        )
        self.tap = KeyTap()

    @property
    def is_open(self) -> bool:
        return self.tap.installed

    def open(self) -> "PresenterSession":
        self.tap.install(self.sequencer.handle_key)
        logger.debug("Presenter opened for %r (%d blocks)", self.hymn.title, len(self.sequencer))
        return self

    def close(self) -> None:
        if self.tap.installed:
            logger.debug("Presenter closed for %r", self.hymn.title)
        self.tap.remove()

    def __enter__(self) -> "PresenterSession":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def feed(self, key: str) -> bool:
        """Deliver a key press; ignored unless the session is open."""
        return self.tap.dispatch(key)

    def render(self) -> Slide:
        block = self.sequencer.current
        return Slide(
            title=self.hymn.title,
            text=block.text if block else "",
            label=self.sequencer.current_label(),
        )


class PresentationController:
    """Owns the one presenter session of the application."""

    def __init__(self, cyclic: bool = True, chorus_only_fallback: bool = False):
        self.cyclic = cyclic
        self.chorus_only_fallback = chorus_only_fallback
        self.session: PresenterSession | None = None

    def present(self, hymn: Hymn) -> PresenterSession:
        """Show *hymn*, reusing the open session if it already shows it."""
        if self.session is not None and self.session.is_open and self.session.hymn == hymn:
            return self.session
        self.close()
        self.session = PresenterSession(
            hymn, cyclic=self.cyclic, chorus_only_fallback=self.chorus_only_fallback
        ).open()
        return self.session

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
