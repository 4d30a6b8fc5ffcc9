"""Tests for bucket classification."""

import pytest

from s6_agent.classifier import ProcessingLane, classify

IMAGES = {"images-prod", "avatars"}
VIDEOS = {"videos-prod"}


class TestClassify:
    @pytest.mark.parametrize(
        "bucket,lane",
        [
            ("images-prod", ProcessingLane.IMAGE),
            ("avatars", ProcessingLane.IMAGE),
            ("videos-prod", ProcessingLane.VIDEO),
            ("scratch", ProcessingLane.UNKNOWN),
            ("", ProcessingLane.UNKNOWN),
        ],
    )
    def test_lanes(self, bucket, lane):
        assert classify(bucket, IMAGES, VIDEOS) == lane

    def test_exact_match_only(self):
        assert classify("images-prod-2", IMAGES, VIDEOS) == ProcessingLane.UNKNOWN
        assert classify("Videos-Prod", IMAGES, VIDEOS) == ProcessingLane.UNKNOWN

    def test_image_checked_first(self):
        assert classify("both", {"both"}, {"both"}) == ProcessingLane.IMAGE

    def test_empty_configuration(self):
        assert classify("videos-prod", set(), set()) == ProcessingLane.UNKNOWN

    def test_lane_values(self):
        assert ProcessingLane.VIDEO.value == "video"
        assert ProcessingLane.IMAGE == "image"
