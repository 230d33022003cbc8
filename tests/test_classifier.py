"""Tests for video classification and short-form filtering."""

from channel_ingest.channel.classifier import classify_video, filter_short_form
from tests.conftest import make_detail


class TestClassifyVideo:
    """Test classification priority."""

    def test_live_wins_over_everything(self):
        video = make_detail("a", live_broadcast_content="live", duration_code="PT30S", title="#shorts")
        assert classify_video(video) == "live"

    def test_upcoming_is_live(self):
        assert classify_video(make_detail("a", live_broadcast_content="upcoming")) == "live"

    def test_hashtag_overrides_duration(self):
        video = make_detail("a", duration_code="PT45M", description="Watch more #Shorts")
        assert classify_video(video) == "short"

    def test_short_duration(self):
        assert classify_video(make_detail("a", duration_code="PT0H2M0S", title="x")) == "short"

    def test_threshold_is_exclusive(self):
        assert classify_video(make_detail("a", duration_code="PT3M")) == "regular"

    def test_zero_duration_is_regular(self):
        assert classify_video(make_detail("a", duration_code="PT0S")) == "regular"
        assert classify_video(make_detail("a", duration_code=None)) == "regular"


class TestFilterShortForm:
    def test_drops_shorts_when_excluded(self):
        short = make_detail("s", duration_code="PT0H2M0S", title="x")
        regular = make_detail("r")
        classified = [(short, classify_video(short)), (regular, classify_video(regular))]

        kept = filter_short_form(classified, include_shorts=False)

        assert [video.video_id for video, _ in kept] == ["r"]

    def test_keeps_everything_when_included(self):
        short = make_detail("s", duration_code="PT20S")
        classified = [(short, classify_video(short))]

        assert filter_short_form(classified, include_shorts=True) == classified
