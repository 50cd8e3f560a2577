"""An in-memory video service filled with seeded random videos."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Sequence
from dataclasses import dataclass

from vidrec.failure_injection import FailureInjector, InjectionConfig
from vidrec.records import (
    VIDEO_ID_OFFSET,
    ServiceError,
    StatusCode,
    TrendingVideos,
    VideoInfo,
    deduplicate_ids,
)

logger = logging.getLogger(__name__)

_ADJECTIVES = (
    "adorable", "brave", "clever", "delightful", "elegant", "fierce", "glorious",
    "handsome", "innocent", "jolly", "lively", "mysterious", "precious", "quaint",
    "shiny", "tender", "vast", "witty",
)
_VEGETABLES = (
    "artichoke", "broccoli", "carrot", "eggplant", "kale", "leek", "onion",
    "parsnip", "radish", "spinach", "turnip", "zucchini",
)
_ANIMALS = (
    "antelope", "beaver", "cheetah", "dolphin", "falcon", "giraffe", "hedgehog",
    "jaguar", "lynx", "moose", "octopus", "penguin", "walrus", "zebra",
)
_UNCOUNTABLE_NOUNS = (
    "advice", "courage", "equipment", "furniture", "honesty", "information",
    "knowledge", "luggage", "music", "patience", "wisdom",
)
_APP_NAMES = (
    "Bluefin", "Cloudberry", "Driftwood", "Emberly", "Foxglove", "Granite",
    "Harborlight", "Ironleaf", "Juniper", "Moonpath", "Quillstone", "Tidewater",
)
_HACKER_VERBS = (
    "back up", "bypass", "calculate", "compress", "connect", "copy", "generate",
    "hack", "index", "input", "navigate", "override", "parse", "program",
    "quantify", "reboot", "synthesize", "transmit",
)
_ADVERBS_OF_PLACE = (
    "above", "abroad", "anywhere", "away", "below", "downstairs", "elsewhere",
    "everywhere", "here", "inside", "nearby", "outside", "there", "upstairs",
)
_FIRST_NAMES = (
    "Ada", "Bram", "Celia", "Dorian", "Edith", "Flynn", "Gemma", "Hector",
    "Iris", "Jasper", "Lena", "Milo", "Nora", "Oscar", "Petra", "Rowan",
)
_LAST_NAMES = (
    "Abbott", "Blake", "Corwin", "Dunmore", "Ellery", "Frost", "Hale", "Kessler",
    "Lindqvist", "Marlow", "Pruitt", "Quayle", "Renner", "Stroud", "Thorne",
)


@dataclass(frozen=True)
class VideoServiceOptions:
    """Settings for a :class:`VideoService`."""

    seed: int = 42
    ttl_seconds: int = 60
    sleep_ns: int = 0
    failure_rate: int = 0
    response_omission_rate: int = 0
    max_batch_size: int = 50


def _fake_title(case: int, fake: random.Random) -> str:
    if case == 0:
        return f"{fake.choice(_ADJECTIVES)} {fake.choice(_VEGETABLES)}"
    if case == 1:
        return (
            f"The {fake.choice(_ADJECTIVES)} {fake.choice(_ANIMALS)}'s "
            f"{fake.choice(_UNCOUNTABLE_NOUNS)}"
        )
    if case == 2:
        return f"{fake.choice(_APP_NAMES)}: {fake.choice(_HACKER_VERBS)}"
    return f"{fake.choice(_ADJECTIVES)} {fake.choice(_ADVERBS_OF_PLACE)}"


def _make_random_video(
    video_id: int, rng: random.Random, fake: random.Random
) -> VideoInfo:
    title = _fake_title(rng.randrange(4), fake)
    author = f"{fake.choice(_FIRST_NAMES)} {fake.choice(_LAST_NAMES)}"
    coefficients: dict[int, int] = {}
    for _ in range(rng.randrange(10) + 10):
        coefficients[rng.randrange(20)] = rng.randrange(500)
    return VideoInfo(
        video_id=video_id,
        title=title,
        author=author,
        url=f"https://video-data.localhost/blob/{video_id}",
        video_coefficients=coefficients,
    )


def _make_random_videos(
    rng: random.Random, fake: random.Random
) -> tuple[dict[int, VideoInfo], list[int]]:
    video_count = rng.randrange(500) + 100
    videos = {
        video_id: _make_random_video(video_id, rng, fake)
        for video_id in range(VIDEO_ID_OFFSET, VIDEO_ID_OFFSET + video_count)
    }
    top_videos = [
        rng.randrange(video_count) + VIDEO_ID_OFFSET
        for _ in range(rng.randrange(10) + 10)
    ]
    return videos, deduplicate_ids(top_videos)


class VideoService:
    """Serves batched video lookups and a trending list from a generated database.

    The options are fixed for the life of the service; the failure injection
    config can be changed with :meth:`set_injection_config`.
    """

    def __init__(self, options: VideoServiceOptions | None = None) -> None:
        self.options = options if options is not None else VideoServiceOptions()
        self._injector = FailureInjector()
        self._injector.configure(
            self.options.sleep_ns,
            self.options.failure_rate,
            self.options.response_omission_rate,
        )
        config = self._injector.config
        logger.info(
            "Starting VideoService with failure injection config: "
            "[sleepNs: %d, failureRate: %d, responseOmissionRate: %d]",
            config.sleep_ns,
            config.failure_rate,
            config.response_omission_rate,
        )
        rng = random.Random(self.options.seed)
        fake = random.Random(self.options.seed)
        self._videos, self._top_videos = _make_random_videos(rng, fake)

    def _maybe_fail(self) -> None:
        if self._injector.maybe_inject():
            raise ServiceError(
                StatusCode.INTERNAL, "VideoService: (injected) internal error!"
            )

    def get_videos(self, video_ids: Sequence[int]) -> list[VideoInfo]:
        """Return the videos for ``video_ids`` in the same order.

        Raises :class:`ServiceError` on an injected failure, an empty,
        oversized or repeating batch, or an unknown id.
        """
        self._maybe_fail()
        if not video_ids:
            raise ServiceError(
                StatusCode.INVALID_ARGUMENT,
                "VideoService: video_ids in GetVideoRequest should not be empty",
            )
        if len(video_ids) > self.options.max_batch_size:
            raise ServiceError(
                StatusCode.INVALID_ARGUMENT,
                "VideoService: video_ids exceeded the max batch size "
                f"{self.options.max_batch_size}",
            )
        if len(deduplicate_ids(video_ids)) != len(video_ids):
            raise ServiceError(
                StatusCode.INVALID_ARGUMENT,
                "VideoService: duplicate IDs found in video_ids",
            )
        videos = []
        for video_id in video_ids:
            info = self._videos.get(video_id)
            if info is None:
                raise ServiceError(
                    StatusCode.NOT_FOUND,
                    f"VideoService: video {video_id} cannot be found, it may have "
                    "been deleted or never existed in the first place.",
                )
            videos.append(info)
        return videos

    def get_trending_videos(self) -> TrendingVideos:
        """Return the trending video ids and when the list expires."""
        self._maybe_fail()
        return TrendingVideos(
            videos=list(self._top_videos),
            expiration_time_s=int(time.time()) + self.options.ttl_seconds,
        )

    def set_injection_config(self, config: InjectionConfig) -> None:
        """Replace the failure injection config."""
        self._injector.config = config
        logger.info(
            "VideoService failure injection config set to: "
            "[sleepNs: %d, failureRate: %d, responseOmissionRate: %d]",
            config.sleep_ns,
            config.failure_rate,
            config.response_omission_rate,
        )