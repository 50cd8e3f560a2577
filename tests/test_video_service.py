import time

import pytest

from vidrec.failure_injection import InjectionConfig
from vidrec.records import VIDEO_ID_OFFSET, ServiceError, StatusCode
from vidrec.video_service import VideoService, VideoServiceOptions


@pytest.fixture(scope="module")
def service():
    return VideoService(VideoServiceOptions())


def test_default_options():
    options = VideoServiceOptions()
    assert options.seed == 42
    assert options.ttl_seconds == 60
    assert options.max_batch_size == 50


def test_get_videos_keeps_order(service):
    ids = [VIDEO_ID_OFFSET + 9, VIDEO_ID_OFFSET, VIDEO_ID_OFFSET + 50]
    assert [v.video_id for v in service.get_videos(ids)] == ids


def test_url_format(service):
    (video,) = service.get_videos([1012])
    assert video.url == "https://video-data.localhost/blob/1012"


def test_generated_video_invariants(service):
    ids = list(range(VIDEO_ID_OFFSET, VIDEO_ID_OFFSET + 50))
    for video in service.get_videos(ids):
        assert video.title
        assert len(video.author.split(" ")) == 2
        assert 1 <= len(video.video_coefficients) <= 19
        assert all(0 <= k < 20 for k in video.video_coefficients)
        assert all(0 <= v < 500 for v in video.video_coefficients.values())


def test_same_seed_is_deterministic(service):
    other = VideoService(VideoServiceOptions(seed=42))
    ids = [VIDEO_ID_OFFSET, VIDEO_ID_OFFSET + 77]
    assert other.get_videos(ids) == service.get_videos(ids)
    assert other.get_trending_videos().videos == service.get_trending_videos().videos


def test_trending_videos(service):
    before = int(time.time())
    trending = service.get_trending_videos()
    after = int(time.time())
    assert 1 <= len(trending.videos) <= 19
    assert len(set(trending.videos)) == len(trending.videos)
    assert before + 60 <= trending.expiration_time_s <= after + 60
    assert [v.video_id for v in service.get_videos(trending.videos)] == trending.videos


def test_empty_request_rejected(service):
    with pytest.raises(ServiceError) as info:
        service.get_videos([])
    assert info.value.code is StatusCode.INVALID_ARGUMENT
    assert info.value.message == "VideoService: video_ids in GetVideoRequest should not be empty"


def test_oversized_batch_rejected(service):
    ids = list(range(VIDEO_ID_OFFSET, VIDEO_ID_OFFSET + 51))
    with pytest.raises(ServiceError) as info:
        service.get_videos(ids)
    assert info.value.code is StatusCode.INVALID_ARGUMENT
    assert info.value.message == "VideoService: video_ids exceeded the max batch size 50"


def test_duplicates_rejected(service):
    with pytest.raises(ServiceError) as info:
        service.get_videos([VIDEO_ID_OFFSET, VIDEO_ID_OFFSET])
    assert info.value.code is StatusCode.INVALID_ARGUMENT
    assert info.value.message == "VideoService: duplicate IDs found in video_ids"


def test_unknown_video(service):
    with pytest.raises(ServiceError) as info:
        service.get_videos([VIDEO_ID_OFFSET, 5])
    assert info.value.code is StatusCode.NOT_FOUND
    assert "video 5 cannot be found" in info.value.message


def test_injected_failure_then_cleared(service):
    service.set_injection_config(InjectionConfig(failure_rate=1))
    try:
        with pytest.raises(ServiceError) as info:
            service.get_videos([VIDEO_ID_OFFSET])
        assert info.value.code is StatusCode.INTERNAL
        assert info.value.message == "VideoService: (injected) internal error!"
        with pytest.raises(ServiceError) as trending_info:
            service.get_trending_videos()
        assert trending_info.value.code is StatusCode.INTERNAL
    finally:
        service.set_injection_config(InjectionConfig())
    assert service.get_videos([VIDEO_ID_OFFSET])[0].video_id == VIDEO_ID_OFFSET


def test_small_batch_size_from_options():
    service = VideoService(VideoServiceOptions(max_batch_size=5))
    ids = list(range(VIDEO_ID_OFFSET, VIDEO_ID_OFFSET + 5))
    assert [v.video_id for v in service.get_videos(ids)] == ids
    with pytest.raises(ServiceError) as info:
        service.get_videos(ids + [VIDEO_ID_OFFSET + 5])
    assert info.value.code is StatusCode.INVALID_ARGUMENT