"""
Device profile: decides the stream resolution hints from the user agent.
"""

from __future__ import annotations

import platform
import re
import sys
from dataclasses import dataclass

from absence.settings import ScanSettings

_IOS_PATTERN = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)
_ANDROID_PATTERN = re.compile(r"Android", re.IGNORECASE)

MOBILE_SIZE = (360, 270)
DESKTOP_SIZE = (640, 480)


@dataclass(frozen=True)
class VideoConstraints:
    width: int
    height: int
    facing_mode: str = "user"
    frame_rate: int = 60
    device_index: int = 0


@dataclass(frozen=True)
class MediaStreamConstraints:
    video: VideoConstraints
    audio: bool = False


@dataclass(frozen=True)
class DeviceProfile:
    user_agent: str
    is_ios: bool = False
    is_android: bool = False

    @property
    def is_mobile(self) -> bool:
        return self.is_ios or self.is_android

    @classmethod
    def from_user_agent(cls, user_agent: str) -> "DeviceProfile":
        ua = user_agent or ""
        return cls(
            user_agent=ua,
            is_ios=bool(_IOS_PATTERN.search(ua)),
            is_android=bool(_ANDROID_PATTERN.search(ua)),
        )

    @classmethod
    def current(cls, settings: ScanSettings | None = None) -> "DeviceProfile":
        """Profile for this host: configured user agent, else one built from the platform."""
        if settings is not None and settings.user_agent:
            return cls.from_user_agent(settings.user_agent)
        if sys.platform == "android":
            ua = f"Python/{platform.python_version()} (Linux; Android)"
        elif sys.platform == "ios":
            ua = f"Python/{platform.python_version()} (iPhone; iOS)"
        else:
            ua = f"Python/{platform.python_version()} ({platform.system()} {platform.machine()})"
        return cls.from_user_agent(ua)

    def constraints(self, device_index: int = 0, frame_rate: int = 60) -> MediaStreamConstraints:
        width, height = MOBILE_SIZE if self.is_mobile else DESKTOP_SIZE
        return MediaStreamConstraints(
            video=VideoConstraints(
                width=width,
                height=height,
                facing_mode="user",
                frame_rate=frame_rate,
                device_index=device_index,
            ),
            audio=False,
        )
