"""Tests for catalog paging and batched detail fetching."""

import pytest

from channel_ingest.channel.catalog import CatalogPager, DetailBatcher, resolve_target_count
from channel_ingest.core.exceptions import NotFoundError, QuotaExceededError, UpstreamError
from tests.conftest import FakeCatalogSource, make_detail


def catalog_of(count: int) -> FakeCatalogSource:
    return FakeCatalogSource([make_detail(f"v{i:03d}") for i in range(count)])


class TestResolveTargetCount:
    def test_default_when_missing(self, settings):
        assert resolve_target_count(None, settings) == 50
        assert resolve_target_count(0, settings) == 50

    def test_all_sentinel_maps_to_cap(self, settings):
        assert resolve_target_count(9999, settings) == 10000

    def test_explicit_value(self, settings):
        assert resolve_target_count(120, settings) == 120


class TestCatalogPager:
    """Test the stop conditions of catalog paging."""

    @pytest.mark.asyncio
    async def test_single_page_when_target_reached(self, settings):
        source = catalog_of(120)
        pager = CatalogPager(source, settings)

        ids = await pager.collect("UU_uploads", 50)

        assert len(ids) == 50
        assert source.page_requests == [None]

    @pytest.mark.asyncio
    async def test_follows_tokens_and_slices(self, settings):
        source = catalog_of(120)
        pager = CatalogPager(source, settings)

        ids = await pager.collect("UU_uploads", 70)

        assert ids == [f"v{i:03d}" for i in range(70)]
        assert source.page_requests == [None, "50"]

    @pytest.mark.asyncio
    async def test_stops_without_token(self, settings):
        source = catalog_of(30)
        pager = CatalogPager(source, settings)

        ids = await pager.collect("UU_uploads", 10000)

        assert len(ids) == 30
        assert source.page_requests == [None]

    @pytest.mark.asyncio
    async def test_repeated_ids_are_kept_once(self, settings):
        source = catalog_of(3)
        source.order = ["v000", "v001", "v000", "v002", "v001"]
        pager = CatalogPager(source, settings)

        ids = await pager.collect("UU_uploads", 50)

        assert ids == ["v000", "v001", "v002"]

    @pytest.mark.asyncio
    async def test_upstream_errors_propagate(self, settings):
        source = catalog_of(10)
        source.page_error = QuotaExceededError("quota")

        with pytest.raises(QuotaExceededError):
            await CatalogPager(source, settings).collect("UU_uploads", 50)

    @pytest.mark.asyncio
    async def test_unknown_container_is_not_found(self, settings):
        with pytest.raises(NotFoundError):
            await CatalogPager(catalog_of(5), settings).collect("missing", 50)


class TestDetailBatcher:
    """Test detail batching and failure handling."""

    @pytest.mark.asyncio
    async def test_batches_of_fifty(self, settings):
        source = catalog_of(120)
        ids = [f"v{i:03d}" for i in range(120)]

        details = await DetailBatcher(source, settings).fetch(ids)

        assert [len(batch) for batch in source.detail_requests] == [50, 50, 20]
        assert [d.video_id for d in details] == ids

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, settings):
        source = catalog_of(120)
        source.detail_errors[1] = UpstreamError("Failed to fetch video details (500): oops", status_code=500)
        ids = [f"v{i:03d}" for i in range(120)]

        details = await DetailBatcher(source, settings).fetch(ids)

        assert len(details) == 70
        assert "v050" not in {d.video_id for d in details}

    @pytest.mark.asyncio
    async def test_quota_aborts(self, settings):
        source = catalog_of(120)
        source.detail_errors[1] = QuotaExceededError("quota", status_code=403)

        with pytest.raises(QuotaExceededError):
            await DetailBatcher(source, settings).fetch([f"v{i:03d}" for i in range(120)])
        assert len(source.detail_requests) == 2
