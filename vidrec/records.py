"""Records, status codes and errors shared by the simulated services."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field

USER_ID_OFFSET = 200000
VIDEO_ID_OFFSET = 1000


class StatusCode(enum.Enum):
    """Status codes a service call can fail with."""

    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    NOT_FOUND = 5
    INTERNAL = 13
    UNAVAILABLE = 14


class ServiceError(Exception):
    """A failed service call, carrying a status code."""

    def __init__(self, code: StatusCode, message: str) -> None:
        super().__init__(f"{code.name}: {message}")
        self.code = code
        self.message = message


@dataclass
class UserInfo:
    """A user as stored by the user service."""

    user_id: int
    username: str = ""
    email: str = ""
    profile_url: str = ""
    user_coefficients: dict[int, int] = field(default_factory=dict)
    subscribed_to: list[int] = field(default_factory=list)
    liked_videos: list[int] = field(default_factory=list)


@dataclass
class VideoInfo:
    """A video as stored by the video service."""

    video_id: int
    title: str = ""
    author: str = ""
    url: str = ""
    video_coefficients: dict[int, int] = field(default_factory=dict)


@dataclass
class TrendingVideos:
    """Trending video ids and the Unix time in seconds when they expire."""

    videos: list[int] = field(default_factory=list)
    expiration_time_s: int = 0


def deduplicate_ids(ids: Iterable[int]) -> list[int]:
    """Return ``ids`` without repeats, keeping first occurrences in order."""
    return list(dict.fromkeys(ids))