"""An in-memory user service filled with seeded random users."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass

from vidrec.failure_injection import FailureInjector, InjectionConfig
from vidrec.records import (
    USER_ID_OFFSET,
    VIDEO_ID_OFFSET,
    ServiceError,
    StatusCode,
    UserInfo,
)

logger = logging.getLogger(__name__)

_FIRST_NAMES = (
    "alice", "bruno", "carla", "dmitri", "elena", "felix", "greta", "hugo",
    "ines", "jonas", "kira", "lucas", "mara", "nils", "olga", "pavel",
    "quinn", "rosa", "sven", "tara", "ulla", "victor", "wanda", "yusuf",
)
_LAST_NAMES = (
    "adams", "berg", "costa", "dahl", "evans", "fischer", "garcia", "hansen",
    "ivanov", "jensen", "klein", "lopez", "meyer", "novak", "olsen", "petrov",
    "reyes", "schmidt", "torres", "varga", "weber", "young", "zimmer",
)
_HANDLE_WORDS = (
    "brisk", "calm", "daring", "eager", "fuzzy", "gentle", "happy", "jolly",
    "keen", "lucky", "mellow", "nimble", "proud", "quiet", "swift", "witty",
)
_HANDLE_ANIMALS = (
    "badger", "crane", "dingo", "eagle", "ferret", "gecko", "heron", "ibis",
    "jackal", "koala", "lemur", "marmot", "newt", "otter", "panda", "raven",
)


@dataclass(frozen=True)
class UserServiceOptions:
    """Settings for a :class:`UserService`."""

    seed: int = 42
    sleep_ns: int = 0
    failure_rate: int = 0
    response_omission_rate: int = 0
    max_batch_size: int = 50


def _fake_email(fake: random.Random) -> str:
    first = fake.choice(_FIRST_NAMES)
    last = fake.choice(_LAST_NAMES)
    return f"{first}.{last}{fake.randrange(1000)}@example.com"


def _fake_username(fake: random.Random) -> str:
    word = fake.choice(_HANDLE_WORDS).capitalize()
    animal = fake.choice(_HANDLE_ANIMALS).capitalize()
    return f"{word}{animal}{fake.randrange(100)}"


def _make_random_user(
    user_id: int,
    max_users: int,
    max_videos: int,
    rng: random.Random,
    fake: random.Random,
) -> UserInfo:
    email = _fake_email(fake)
    username = _fake_username(fake)

    coefficients: dict[int, int] = {}
    for _ in range(rng.randrange(10) + 10):
        coefficients[rng.randrange(20)] = rng.randrange(500)

    subscribed = (
        rng.randrange(max_users) + USER_ID_OFFSET
        for _ in range(rng.randrange(50) + 10)
    )
    subscribed_to = [other for other in subscribed if other != user_id]

    liked_videos = [
        rng.randrange(max_videos) + VIDEO_ID_OFFSET
        for _ in range(rng.randrange(20) + 5)
    ]

    return UserInfo(
        user_id=user_id,
        username=username,
        email=email,
        profile_url=f"https://user-service.localhost/profile/{user_id}",
        user_coefficients=coefficients,
        subscribed_to=subscribed_to,
        liked_videos=liked_videos,
    )


def _make_random_users(rng: random.Random, fake: random.Random) -> dict[int, UserInfo]:
    video_count = rng.randrange(500) + 100
    user_count = rng.randrange(5000) + 5000
    return {
        user_id: _make_random_user(user_id, user_count, video_count, rng, fake)
        for user_id in range(USER_ID_OFFSET, USER_ID_OFFSET + user_count)
    }


class UserService:
    """Serves batched user lookups from a generated database.

    The options are fixed for the life of the service; the failure injection
    config can be changed with :meth:`set_injection_config`.
    """

    def __init__(self, options: UserServiceOptions | None = None) -> None:
        self.options = options if options is not None else UserServiceOptions()
        self._injector = FailureInjector()
        self._injector.configure(
            self.options.sleep_ns,
            self.options.failure_rate,
            self.options.response_omission_rate,
        )
        config = self._injector.config
        logger.info(
            "Starting UserService with failure injection config: "
            "[sleepNs: %d, failureRate: %d, responseOmissionRate: %d]",
            config.sleep_ns,
            config.failure_rate,
            config.response_omission_rate,
        )
        rng = random.Random(self.options.seed)
        fake = random.Random(self.options.seed)
        self._users = _make_random_users(rng, fake)

    def get_users(self, user_ids: Sequence[int]) -> list[UserInfo]:
        """Return the users for ``user_ids`` in the same order.

        Raises :class:`ServiceError` on an injected failure, an empty or
        oversized batch, or an unknown id.
        """
        if self._injector.maybe_inject():
            raise ServiceError(
                StatusCode.INTERNAL, "UserService: (injected) internal error!"
            )
        if not user_ids:
            raise ServiceError(
                StatusCode.INVALID_ARGUMENT,
                "UserService: user_ids in GetUserRequest should not be empty",
            )
        if len(user_ids) > self.options.max_batch_size:
            raise ServiceError(
                StatusCode.INVALID_ARGUMENT,
                "UserService: user_ids exceeded the max batch size "
                f"{self.options.max_batch_size}",
            )
        users = []
        for user_id in user_ids:
            info = self._users.get(user_id)
            if info is None:
                raise ServiceError(
                    StatusCode.NOT_FOUND,
                    f"UserService: user {user_id} cannot be found, it may have "
                    "been deleted or never existed in the first place.",
                )
            users.append(info)
        return users

    def set_injection_config(self, config: InjectionConfig) -> None:
        """Replace the failure injection config."""
        self._injector.config = config
        logger.info(
            "UserService failure injection config set to: "
            "[sleepNs: %d, failureRate: %d, responseOmissionRate: %d]",
            config.sleep_ns,
            config.failure_rate,
            config.response_omission_rate,
        )