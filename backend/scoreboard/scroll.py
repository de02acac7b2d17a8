"""Seamless vertical auto-scroll as a virtual offset.

The rendered list is shown twice back to back. The offset advances every
frame and jumps back to 0 once it has travelled one full copy, so the second
copy takes the place of the first without a visible seam. Only the offset is
computed here; applying it is up to the display layer.

The optional spacer is the gap rendered below each copy, so it belongs to the
scrolled content: one copy is `content_height + spacer` tall and the offset
always stays in `[0, loop_height)`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class ScrollAnimator:
    def __init__(
        self,
        speed: float = 1.0,
        frame_rate: float = 60.0,
        spacer: float = 0.0,
        on_frame: FrameCallback | None = None,
    ):
        if speed <= 0:
            raise ValueError("speed must be positive")
        if frame_rate <= 0:
            raise ValueError("frame_rate must be positive")

        self.speed = speed
        self.frame_rate = frame_rate
        self.spacer = spacer
        self.on_frame = on_frame

        self._offset = 0.0
        self._loop_height = 0.0
        self._active = False
        self._task: asyncio.Task | None = None

    @property
    def offset(self) -> float:
        return self._offset

    @property
    def loop_height(self) -> float:
        """Distance after which the offset wraps (one copy plus spacer)."""
        return self._loop_height

    @property
    def active(self) -> bool:
        return self._active

    def start(
        self,
        content_height: float,
        viewport_height: float,
        speed: float | None = None,
    ) -> bool:
        """(Re)start scrolling for freshly rendered content.

        Any running animation is cancelled first, so calling this on every
        render is safe. Returns False without animating when the content fits
        in the viewport. When called inside a running event loop, frames are
        driven by a background task; otherwise the caller drives `tick()`.
        """
        self.stop()

        if speed is not None:
            if speed <= 0:
                raise ValueError("speed must be positive")
            self.speed = speed

        if content_height <= viewport_height:
            logger.debug(
                f"Content ({content_height}px) fits viewport ({viewport_height}px); not scrolling"
            )
            return False

        self._loop_height = content_height + self.spacer
        self._active = True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return True

        self._task = loop.create_task(self.run(), name="scroll-animator")
        return True

    def tick(self) -> float:
        """Advance one frame and return the new offset."""
        if not self._active:
            return self._offset

        self._offset += self.speed
        if self._offset >= self._loop_height:
            self._offset = 0.0

        if self.on_frame is not None:
            self.on_frame(self._offset)
        return self._offset

    def stop(self) -> None:
        """Cancel the animation and reset the offset."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._active = False
        self._offset = 0.0
        self._loop_height = 0.0

    async def run(self) -> None:
        interval = 1.0 / self.frame_rate
        while self._active:
            self.tick()
            await asyncio.sleep(interval)
