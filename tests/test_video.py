"""
Video sink playback and events.
"""

from absence.device import DeviceProfile
from absence.events import EventTarget
from absence.video import HAVE_CURRENT_DATA, HAVE_METADATA, HAVE_NOTHING, VideoSink

CONSTRAINTS = DeviceProfile.from_user_agent("desktop").constraints()


def _events(video, *names):
    seen = []
    for name in names:
        video.add_event_listener(name, lambda event: seen.append(event.type))
    return seen


def test_attach_sets_metadata_state(media_devices, scheduler):
    video = VideoSink(scheduler)
    assert video.ready_state == HAVE_NOTHING

    video.src_object = media_devices.get_user_media(CONSTRAINTS)
    assert video.ready_state == HAVE_METADATA
    assert video.paused


def test_play_without_source_does_nothing(scheduler):
    video = VideoSink(scheduler)
    seen = _events(video, "play")
    video.play()

    assert seen == []
    assert video.paused
    assert scheduler.pending == 0


def test_loadeddata_fires_once(media_devices, scheduler):
    video = VideoSink(scheduler)
    video.src_object = media_devices.get_user_media(CONSTRAINTS)
    seen = _events(video, "play", "loadeddata")
    video.play()
    scheduler.run_until(lambda: video.frame_count >= 5)

    assert seen == ["play", "loadeddata"]
    assert video.ready_state >= HAVE_CURRENT_DATA
    assert (video.video_width, video.video_height) == (640, 480)


def test_stream_exhaustion_ends_playback(media_devices, scheduler, frames):
    video = VideoSink(scheduler)
    video.src_object = media_devices.get_user_media(CONSTRAINTS)
    seen = _events(video, "ended")
    video.play()
    scheduler.run_until(lambda: video.ended)

    assert seen == ["ended"]
    assert video.paused
    # One frame was consumed while probing the device.
    assert video.frame_count == len(frames) - 1
    assert scheduler.pending == 0


def test_pause_stops_pump(media_devices, scheduler):
    video = VideoSink(scheduler)
    video.src_object = media_devices.get_user_media(CONSTRAINTS)
    video.play()
    scheduler.run_until(lambda: video.frame_count >= 2)
    video.pause()
    scheduler.run_until(lambda: False, max_iterations=5)
    count = video.frame_count

    video.play()
    scheduler.run_until(lambda: video.frame_count > count)
    assert not video.paused


def test_once_listener_removed_after_dispatch():
    target = EventTarget()
    calls = []
    target.add_event_listener("loadeddata", calls.append, once=True)
    target.dispatch_event("loadeddata")
    target.dispatch_event("loadeddata")

    assert len(calls) == 1
    assert target.listener_count("loadeddata") == 0


def test_duplicate_listener_registered_once():
    target = EventTarget()
    calls = []
    target.add_event_listener("play", calls.append)
    target.add_event_listener("play", calls.append)
    target.dispatch_event("play")

    assert len(calls) == 1
    target.remove_event_listener("play", calls.append)
    assert target.listener_count("play") == 0


def test_listener_removed_during_dispatch_is_skipped():
    target = EventTarget()
    calls = []

    def second(event):
        calls.append("second")

    def first(event):
        calls.append("first")
        target.remove_event_listener("frame", second)

    target.add_event_listener("frame", first)
    target.add_event_listener("frame", second)
    target.dispatch_event("frame")

    assert calls == ["first"]


def test_listener_added_during_dispatch_waits_for_next_dispatch():
    target = EventTarget()
    calls = []

    def late(event):
        calls.append("late")

    def first(event):
        calls.append("first")
        target.add_event_listener("frame", late)

    target.add_event_listener("frame", first)
    target.dispatch_event("frame")
    assert calls == ["first"]
    target.dispatch_event("frame")
    assert calls == ["first", "first", "late"]
