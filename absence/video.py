"""
Video sink: plays a media stream the way a ``<video>`` element does.

Playback is a pump that reads one frame per scheduler turn. The first frame
raises ``ready_state`` to HAVE_CURRENT_DATA and fires ``loadeddata`` once per
attached stream; every frame fires ``frame``; a stream that stops delivering
ends playback and fires ``ended``.
"""

from __future__ import annotations

import logging

import numpy as np

from absence.events import EventTarget
from absence.media_devices import MediaStream
from absence.scheduler import Scheduler

logger = logging.getLogger(__name__)

HAVE_NOTHING = 0
HAVE_METADATA = 1
HAVE_CURRENT_DATA = 2
HAVE_FUTURE_DATA = 3
HAVE_ENOUGH_DATA = 4


class VideoSink(EventTarget):
    def __init__(self, scheduler: Scheduler) -> None:
        super().__init__()
        self._scheduler = scheduler
        self._src_object: MediaStream | None = None
        self.muted = True
        self.disable_picture_in_picture = False
        self.paused = True
        self.ended = False
        self.ready_state = HAVE_NOTHING
        self.current_frame: np.ndarray | None = None
        self.frame_count = 0
        self._pumping = False

    @property
    def src_object(self) -> MediaStream | None:
        return self._src_object

    @src_object.setter
    def src_object(self, stream: MediaStream | None) -> None:
        self._src_object = stream
        self.ready_state = HAVE_METADATA if stream is not None else HAVE_NOTHING
        self.current_frame = None
        self.frame_count = 0
        self.ended = False

    @property
    def video_width(self) -> int:
        return 0 if self.current_frame is None else int(self.current_frame.shape[1])

    @property
    def video_height(self) -> int:
        return 0 if self.current_frame is None else int(self.current_frame.shape[0])

    def play(self) -> None:
        if self._src_object is None or not self.paused:
            return
        self.paused = False
        self.ended = False
        if not self._pumping:
            self._pumping = True
            self._scheduler.call_soon(self._pump)
        self.dispatch_event("play")

    def pause(self) -> None:
        if self.paused:
            return
        self.paused = True
        self.dispatch_event("pause")

    def _pump(self) -> None:
        stream = self._src_object
        if self.paused or self.ended or stream is None:
            self._pumping = False
            return
        ok, frame = stream.read()
        if not ok:
            logger.info("Video stream ended after %s frames", self.frame_count)
            self._pumping = False
            self.ended = True
            self.paused = True
            self.dispatch_event("ended")
            return
        self.current_frame = frame
        self.frame_count += 1
        if self.ready_state < HAVE_CURRENT_DATA:
            self.ready_state = HAVE_ENOUGH_DATA
            self.dispatch_event("loadeddata")
        self.dispatch_event("frame")
        self._scheduler.call_soon(self._pump)
