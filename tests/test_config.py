"""Tests for config.py and the app entry point."""

import math
import pytest
from datetime import datetime, timezone

from feedvol import app as app_module
from feedvol.app import VolatilityApp, build_parser, load_config, main
from feedvol.config import MAX_PERIODS, VolConfig
from feedvol.enums import (
    ConsolidationPolicy,
    EstimatorBase,
    Granularity,
    Slot,
    VarianceDivisor,
    ZeroPricePolicy,
)
from feedvol.errors import ConfigurationError, FeedError
from feedvol.estimator import ReturnVolatilityEstimator
from feedvol.feeds.base import PriceFeed
from feedvol.report import NO_DATA_MESSAGE

ENV_VARS = [
    "NO_OF_PERIODS", "TIMESPAN", "CONSOLIDATION", "VOL_BASE", "VOL_DIVISOR",
    "ZERO_PRICE_POLICY", "REROUND", "FEED_TIMEOUT_SECONDS", "POLYGON_API_KEY",
    "POLYGON_API_URL", "DUNE_API_KEY", "DUNE_QUERY_ID_SEC", "DUNE_QUERY_ID_MIN",
    "DUNE_QUERY_ID_HOUR", "DUNE_QUERY_ID_DAY", "DUNE_MAX_PRICE", "KRAKEN_PAIR",
    "COINAPI_API_KEY", "COINAPI_ASSET_ID", "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class FixedFeed(PriceFeed):
    """Feed serving a canned observation list without HTTP."""

    def __init__(self, name, slot, observations=None):
        super().__init__()
        self.name = name
        self.slot = slot
        self.observations = observations

    async def _request(self, granularity, period_count):
        return self.observations

    def parse(self, payload):
        if payload is None:
            raise FeedError(self.name, "down")
        return payload


class TestVolConfig:
    """Tests for VolConfig."""

    def test_defaults_from_env(self, clean_env):
        config = VolConfig.from_env()

        assert config.no_of_periods == 30
        assert config.granularity == Granularity.HOUR
        assert config.consolidation_policy == ConsolidationPolicy.MAX
        assert config.estimator_base == EstimatorBase.LEVELS
        assert config.variance_divisor == VarianceDivisor.SAMPLE
        assert config.zero_policy == ZeroPricePolicy.SKIP
        assert config.reround is True
        assert config.feed_timeout_seconds == 10.0
        assert config.dune_max_price == 8000.0
        config.validate()

    def test_env_overrides(self, clean_env):
        clean_env.setenv("NO_OF_PERIODS", "120")
        clean_env.setenv("TIMESPAN", "Minute")
        clean_env.setenv("CONSOLIDATION", "min")
        clean_env.setenv("VOL_BASE", "returns")
        clean_env.setenv("REROUND", "false")
        clean_env.setenv("DUNE_QUERY_ID_HOUR", "4321")

        config = VolConfig.from_env()

        assert config.no_of_periods == 120
        assert config.granularity == Granularity.MINUTE
        assert config.consolidation_policy == ConsolidationPolicy.MIN
        assert config.estimator_base == EstimatorBase.RETURNS
        assert config.reround is False
        assert config.dune_query_ids["hour"] == "4321"

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("1", True), ("Yes", True), ("on", True),
        ("false", False), ("0", False), ("no", False), ("OFF", False),
    ])
    def test_reround_spellings(self, clean_env, value, expected):
        clean_env.setenv("REROUND", value)
        assert VolConfig.from_env().reround is expected

    def test_unknown_reround_rejected(self, clean_env):
        clean_env.setenv("REROUND", "maybe")
        with pytest.raises(ConfigurationError, match="REROUND"):
            VolConfig.from_env()

    def test_empty_timespan_defaults_to_hour(self, clean_env):
        clean_env.setenv("TIMESPAN", "")
        assert VolConfig.from_env().granularity == Granularity.HOUR

    def test_unknown_timespan_rejected(self):
        with pytest.raises(ConfigurationError, match="timespan"):
            VolConfig(timespan="week").validate()

    @pytest.mark.parametrize("periods", [0, -1, MAX_PERIODS + 1])
    def test_periods_out_of_range(self, periods):
        with pytest.raises(ConfigurationError):
            VolConfig(no_of_periods=periods).validate()

    def test_periods_at_bounds(self):
        VolConfig(no_of_periods=1).validate()
        VolConfig(no_of_periods=MAX_PERIODS).validate()

    def test_non_integer_periods(self, clean_env):
        clean_env.setenv("NO_OF_PERIODS", "thirty")
        with pytest.raises(ConfigurationError, match="NO_OF_PERIODS"):
            VolConfig.from_env()

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError, match="CONSOLIDATION"):
            VolConfig(consolidation="median").validate()

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError):
            VolConfig(feed_timeout_seconds=0).validate()


class TestLoadConfig:
    """Tests for CLI overrides."""

    def test_cli_overrides_env(self, clean_env):
        clean_env.setenv("NO_OF_PERIODS", "10")
        args = build_parser().parse_args([
            "--periods", "48",
            "--timespan", "day",
            "--now", "2024-10-01T13:20:00Z",
            "--base", "returns",
            "--divisor", "population",
        ])

        config = load_config(args)

        assert config.no_of_periods == 48
        assert config.granularity == Granularity.DAY
        assert config.now == datetime(2024, 10, 1, 13, 20, tzinfo=timezone.utc)
        assert config.estimator_base == EstimatorBase.RETURNS
        assert config.variance_divisor == VarianceDivisor.POPULATION

    def test_bad_now(self, clean_env):
        args = build_parser().parse_args(["--now", "yesterday"])
        with pytest.raises(ConfigurationError):
            load_config(args)


class TestVolatilityApp:
    """Tests for VolatilityApp.run."""

    @pytest.mark.asyncio
    async def test_run_with_injected_feeds(self):
        now = datetime(2024, 10, 1, 13, 20, tzinfo=timezone.utc)
        h = lambda hour: datetime(2024, 10, 1, hour, tzinfo=timezone.utc)
        feeds = [
            FixedFeed("a", Slot.FEED_A, [(h(11), 100.0), (h(13), 130.0)]),
            FixedFeed("b", Slot.FEED_B, [(h(11), 90.0)]),
            FixedFeed("c", Slot.FEED_C),
        ]
        config = VolConfig(no_of_periods=3, now=now)

        report = await VolatilityApp(config, feeds=feeds).run()

        assert [row.consolidated for row in report.rows] == pytest.approx([100.0, 115.0, 130.0])
        assert report.volatility.value == pytest.approx(15.0)
        assert [o.ok for o in report.feeds] == [True, True, False]

    @pytest.mark.asyncio
    async def test_returns_estimator_selected(self):
        config = VolConfig(no_of_periods=3, vol_base="returns", now=datetime(2024, 10, 1, tzinfo=timezone.utc))
        app = VolatilityApp(config, feeds=[])
        assert isinstance(app.estimator, ReturnVolatilityEstimator)

        report = await app.run()

        assert report.volatility.value == 0.0

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigurationError):
            VolatilityApp(VolConfig(no_of_periods=0), feeds=[])


class TestMain:
    """Tests for the command-line entry point."""

    def test_bad_config_exit_code(self, clean_env, tmp_path):
        env_file = tmp_path / "missing.env"
        assert main(["--periods", "0", "--env-file", str(env_file)]) == 2

    def test_unknown_timespan_exit_code(self, clean_env, tmp_path):
        env_file = tmp_path / "missing.env"
        assert main(["--timespan", "fortnight", "--env-file", str(env_file)]) == 2

    @pytest.fixture
    def argv(self, tmp_path):
        env_file = tmp_path / "test.env"
        env_file.write_text("FEED_TIMEOUT_SECONDS=2\n")
        return [
            "--env-file", str(env_file),
            "--periods", "4",
            "--timespan", "minute",
            "--now", "2024-10-01T13:20:00Z",
        ]

    def test_prints_report(self, clean_env, argv, capsys):
        clean_env.setenv("FEED_TIMEOUT_SECONDS", "2")
        m = lambda minute: datetime(2024, 10, 1, 13, minute, tzinfo=timezone.utc)
        clean_env.setattr(
            app_module,
            "build_feeds",
            lambda config: [FixedFeed("up", Slot.FEED_A, [(m(18), 10.0), (m(20), 20.0)])],
        )

        assert main(argv) == 0

        lines = capsys.readouterr().out.splitlines()
        assert sum(1 for line in lines if line.startswith("Timestamp:")) == 4
        # Consolidated series [10, 10, 15, 20]
        assert lines[-1] == (
            "Volatility (levels, sample) over last 4 minute buckets = "
            f"{math.sqrt(68.75 / 3):.6f}"
        )

    def test_all_feeds_failed_prints_no_data(self, clean_env, argv, capsys):
        clean_env.setenv("FEED_TIMEOUT_SECONDS", "2")
        clean_env.setattr(
            app_module,
            "build_feeds",
            lambda config: [FixedFeed("down", Slot.FEED_A)],
        )

        assert main(argv) == 0

        lines = capsys.readouterr().out.splitlines()
        assert "FAILED (down)" in lines[0]
        assert lines[-1] == NO_DATA_MESSAGE
