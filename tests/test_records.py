import pytest

from vidrec.records import (
    ServiceError,
    StatusCode,
    TrendingVideos,
    UserInfo,
    VideoInfo,
    deduplicate_ids,
)


def test_deduplicate_keeps_first_occurrence_order():
    assert deduplicate_ids([3, 1, 3, 2, 1]) == [3, 1, 2]


def test_deduplicate_empty():
    assert deduplicate_ids([]) == []


def test_deduplicate_accepts_generator_and_is_idempotent():
    data = [5, 5, 4, 5, 4, 6]
    once = deduplicate_ids(x for x in data)
    assert deduplicate_ids(once) == once
    assert set(once) == set(data)
    assert len(once) == len(set(data))


def test_service_error_carries_code_and_message():
    err = ServiceError(StatusCode.NOT_FOUND, "user 7 missing")
    assert err.code is StatusCode.NOT_FOUND
    assert err.message == "user 7 missing"
    assert "user 7 missing" in str(err)
    with pytest.raises(ServiceError) as info:
        raise err
    assert info.value.code is StatusCode.NOT_FOUND


def test_status_code_lookup_by_value_round_trips():
    for code in StatusCode:
        assert StatusCode(code.value) is code


def test_user_info_defaults_are_independent():
    a = UserInfo(user_id=1)
    b = UserInfo(user_id=2)
    a.subscribed_to.append(2)
    a.user_coefficients[0] = 3
    assert b.subscribed_to == []
    assert b.user_coefficients == {}


def test_video_info_equality():
    v1 = VideoInfo(video_id=1001, title="t", video_coefficients={1: 2})
    v2 = VideoInfo(video_id=1001, title="t", video_coefficients={1: 2})
    assert v1 == v2
    v2.video_coefficients[1] = 3
    assert v1 != v2 and v1.video_coefficients == {1: 2}


def test_trending_videos_fields():
    t = TrendingVideos(videos=[1001, 1002], expiration_time_s=100)
    assert t.videos == [1001, 1002]
    assert t.expiration_time_s == 100
    assert TrendingVideos().videos == []