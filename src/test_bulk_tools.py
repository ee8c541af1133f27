"""
Tests for the bulk tools (update, PNG conversion, SVG refresh, snapshot regeneration).

The Alchemy client is mocked; mapping, dataset and snapshot files live in
a temporary directory.
"""

import json
from unittest.mock import Mock, patch
import pytest

from src.config.settings import Settings
from src.convert_to_png import convert_mapping, convert_url
from src.force_svg_update import SvgRefresher, SvgUpdateSummary, force_svg_update, needs_svg_refresh
from src.regenerate_snapshot import regenerate_snapshot
from src.resolver.resolver_client import AlchemyClient
from src.resolver.resolver_rate_limiter import IntervalRateLimiter
from src.resolver.resolver_retry import RetryPolicy
from src.resolver.resolver_store import MappingStore, write_json_atomic
from src.resolver.resolver_workflow import ImageUrlResolver
from src.update_alchemy_data import update_alchemy_data


DATASET = {
    str(i): {"type": "Male", "image": "", "accessories": ["Hoodie"]}
    for i in range(6)
}


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("src.resolver.resolver_retry.time.sleep") as sleep:
        yield sleep


@pytest.fixture
def settings(tmp_path):
    data_path = tmp_path / "cryptoPunkData.json"
    data_path.write_text(json.dumps(DATASET))

    mapping_path = tmp_path / "openseaCdnMapping.json"
    mapping_path.write_text(json.dumps({
        "0": "https://nft-cdn.alchemy.com/eth-mainnet/h0",
        "1": "https://nft-cdn.alchemy.com/eth-mainnet/h1",
    }))

    return Settings(
        alchemy_api_key="test_key",
        data_path=str(data_path),
        mapping_path=str(mapping_path),
        snapshot_path=str(tmp_path / "cryptoPunkData-Alchemy.json"),
        batch_size=2,
        batch_delay_ms=0,
        log_file="",
    )


class TestUpdateAlchemyData:
    """Test the end-to-end bulk update."""

    def test_fetches_missing_and_writes_snapshot(self, settings):
        client = Mock(spec=AlchemyClient)
        client.fetch_metadata.side_effect = (
            lambda punk_id: None if punk_id == "5" else f"https://nft-cdn.alchemy.com/eth-mainnet/h{punk_id}"
        )
        store = MappingStore(settings.mapping_path).load()
        resolver = ImageUrlResolver(
            store, client, IntervalRateLimiter(min_interval=0.0), RetryPolicy(max_attempts=2)
        )

        summary = update_alchemy_data(settings, resolver=resolver)

        assert summary.total == 6
        assert summary.skipped == 2
        assert summary.resolved == 3
        assert summary.fallbacks == 1
        # ids 2, 3, 4 once each, id 5 twice
        assert client.fetch_metadata.call_count == 5

        mapping = json.loads(open(settings.mapping_path).read())
        assert sorted(mapping) == ["0", "1", "2", "3", "4"]

        snapshot = json.loads(open(settings.snapshot_path).read())
        assert snapshot["3"]["image"] == "https://nft-cdn.alchemy.com/eth-mainnet/h3"
        assert snapshot["5"] == {
            "type": "Male",
            "accessories": ["Hoodie"],
            "image": "https://www.cryptopunks.app/images/cryptopunks/punk0005.png",
        }


class TestConvertToPng:
    """Test the PNG conversion tool."""

    def test_convert_url_success(self):
        client = Mock(spec=AlchemyClient)
        client.png_url_for.side_effect = AlchemyClient.png_url_for
        client.probe_url.return_value = True

        url = convert_url(client, "0", "https://nft-cdn.alchemy.com/eth-mainnet/h0")

        assert url.endswith("/convert-png/eth-mainnet/h0")

    def test_convert_url_keeps_original_when_probe_fails(self):
        client = Mock(spec=AlchemyClient)
        client.png_url_for.side_effect = AlchemyClient.png_url_for
        client.probe_url.return_value = False

        original = "https://nft-cdn.alchemy.com/eth-mainnet/h0"
        assert convert_url(client, "0", original) == original

    def test_already_png_is_not_probed(self):
        client = Mock(spec=AlchemyClient)
        png = "https://res.cloudinary.com/alchemyapi/image/upload/convert-png/eth-mainnet/h0"

        assert convert_url(client, "0", png) == png
        client.probe_url.assert_not_called()

    def test_convert_mapping(self, settings):
        client = Mock(spec=AlchemyClient)
        client.png_url_for.side_effect = AlchemyClient.png_url_for
        client.probe_url.side_effect = [True, False]

        with patch("src.convert_to_png.time.sleep"):
            mapping, converted = convert_mapping(client, settings.mapping_path, batch_size=1)

        assert converted == 1
        assert mapping["0"].endswith("/convert-png/eth-mainnet/h0")
        assert mapping["1"] == "https://nft-cdn.alchemy.com/eth-mainnet/h1"
        assert json.loads(open(settings.mapping_path).read()) == mapping


class TestForceSvgUpdate:
    """Test refreshing non-SVG mapping entries."""

    @pytest.fixture
    def mixed_mapping(self, settings):
        with open(settings.mapping_path, "w") as f:
            json.dump({
                "0": "https://nft-cdn.alchemy.com/eth-mainnet/h0",
                "1": "https://res.cloudinary.com/alchemyapi/image/upload/convert-png/eth-mainnet/h1",
                "2": "https://www.cryptopunks.app/images/cryptopunks/punk0002.png",
            }, f)
        return settings

    @pytest.mark.parametrize("url,expected", [
        ("https://nft-cdn.alchemy.com/eth-mainnet/h0", False),
        ("https://res.cloudinary.com/alchemyapi/image/upload/convert-png/eth-mainnet/h0", True),
        ("https://www.cryptopunks.app/images/cryptopunks/punk0002.png", True),
        (None, True),
    ])
    def test_needs_svg_refresh(self, url, expected):
        assert needs_svg_refresh(url) is expected

    def test_refreshes_only_non_svg_entries(self, mixed_mapping):
        settings = mixed_mapping
        client = Mock(spec=AlchemyClient)
        client.fetch_metadata.side_effect = (
            lambda punk_id: None if punk_id == "4" else f"https://nft-cdn.alchemy.com/eth-mainnet/fresh{punk_id}"
        )
        refresher = SvgRefresher(
            client,
            IntervalRateLimiter(min_interval=0.0),
            RetryPolicy(max_attempts=2, sleep=lambda seconds: None)
        )

        with patch("src.force_svg_update.write_json_atomic", wraps=write_json_atomic) as writer:
            summary = force_svg_update(settings, refresher=refresher)

        assert summary == SvgUpdateSummary(total=6, already_svg=1, updated=4, failed=1, batches=3)
        # one checkpoint per batch of two
        assert writer.call_count == 3
        fetched = [c.args[0] for c in client.fetch_metadata.call_args_list]
        assert "0" not in fetched
        assert fetched.count("4") == 2

        mapping = json.loads(open(settings.mapping_path).read())
        assert mapping["0"] == "https://nft-cdn.alchemy.com/eth-mainnet/h0"
        assert mapping["1"] == "https://nft-cdn.alchemy.com/eth-mainnet/fresh1"
        assert mapping["2"] == "https://nft-cdn.alchemy.com/eth-mainnet/fresh2"
        assert "4" not in mapping

        snapshot = json.loads(open(settings.snapshot_path).read())
        assert snapshot["1"]["image"] == "https://nft-cdn.alchemy.com/eth-mainnet/fresh1"
        assert snapshot["4"]["image"] == "https://www.cryptopunks.app/images/cryptopunks/punk0004.png"


class TestRegenerateSnapshot:
    """Test standalone snapshot regeneration."""

    def test_regenerate_snapshot_and_report(self, settings):
        snapshot, report = regenerate_snapshot(settings, ["0", "5", "999"])

        assert len(snapshot) == 6
        assert json.loads(open(settings.snapshot_path).read()) == snapshot
        assert report == [
            ("0", "svg", "https://nft-cdn.alchemy.com/eth-mainnet/h0"),
            ("5", "other", "https://www.cryptopunks.app/images/cryptopunks/punk0005.png"),
        ]

    def test_missing_mapping_uses_fallback_everywhere(self, settings, tmp_path):
        settings.mapping_path = str(tmp_path / "absent.json")

        snapshot, _ = regenerate_snapshot(settings, [])

        assert snapshot["0"]["image"] == "https://www.cryptopunks.app/images/cryptopunks/punk0000.png"
