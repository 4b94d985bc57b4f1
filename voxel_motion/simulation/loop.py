"""Host-side frame loop with cancellable frame callbacks.

The display host (a matplotlib timer, a browser animation, a game loop)
calls :meth:`FrameLoop.frame` once per refresh with the token it was
handed.  Cancelling the loop invalidates the token, so a callback that
was already queued by the host does no work after the simulation state
has been torn down, and cannot leak into a later loop.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from .controller import FrameOutput, SimulationController

logger = logging.getLogger(__name__)


class FrameLoop:
    """Drives one :meth:`SimulationController.tick` per display frame."""

    def __init__(
        self,
        controller: SimulationController,
        timer: Callable[[], float] = time.perf_counter,
        on_frame: Callable[[FrameOutput], None] | None = None,
    ) -> None:
        self.controller = controller
        self.timer = timer
        self.on_frame = on_frame
        self._generation = 0
        self._token: int | None = None
        self._started_at = 0.0

    @property
    def running(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> int | None:
        """Token to pass back to :meth:`frame`, or ``None`` when stopped."""
        return self._token

    def start(self) -> int | None:
        """Enter simulation and issue a fresh frame token.

        Returns ``None`` if the controller refused to start.
        """
        if self.running:
            self.cancel()
        if not self.controller.enter():
            return None
        self._generation += 1
        self._token = self._generation
        self._started_at = self.timer()
        logger.debug("Frame loop %d started", self._token)
        return self._token

    def cancel(self) -> None:
        """Invalidate pending callbacks and exit simulation."""
        if self._token is not None:
            logger.debug("Frame loop %d cancelled", self._token)
        self._token = None
        self.controller.exit()

    def toggle(self) -> bool:
        """Mode switch.  Returns whether the loop is running afterwards."""
        if self.running:
            self.cancel()
        else:
            self.start()
        return self.running

    def frame(self, token: int | None = None) -> FrameOutput | None:
        """Run one frame if *token* is current.

        ``None`` means "the current loop".  Stale tokens return ``None``
        without touching the controller.
        """
        if self._token is None:
            return None
        if token is not None and token != self._token:
            logger.debug("Ignoring stale frame callback %d", token)
            return None
        if not self.controller.is_active:
            # Simulation was stopped behind the loop's back.
            logger.debug("Controller idle; stopping frame loop %d", self._token)
            self._token = None
            return None
        output = self.controller.tick(self.timer() - self._started_at)
        if self.on_frame is not None:
            self.on_frame(output)
        return output
