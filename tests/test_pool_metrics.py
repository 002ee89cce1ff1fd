from __future__ import annotations

from decimal import Decimal
import unittest

from pool_pricing.domain.services.pool_metrics import (
    fee_apr_pct,
    percent_change,
    pool_tvl_usd,
    volume_tvl_ratio,
)
from pool_pricing.domain.services.snapshot_buckets import (
    DEFAULT_SNAPSHOT_TIERS,
    bucket_start,
    retention_cutoff,
    select_tier,
)


class PoolMetricsTest(unittest.TestCase):
    def test_tvl_counts_only_priced_sides(self):
        tvl = pool_tvl_usd(
            reserve0=2 * 10**18,
            reserve1=3_000 * 10**6,
            decimals0=18,
            decimals1=6,
            price0_usd=Decimal("1500"),
            price1_usd=Decimal("1"),
        )
        self.assertEqual(tvl, Decimal("6000"))

        partial = pool_tvl_usd(
            reserve0=2 * 10**18,
            reserve1=3_000 * 10**6,
            decimals0=18,
            decimals1=6,
            price0_usd=None,
            price1_usd=Decimal("1"),
        )
        self.assertEqual(partial, Decimal("3000"))

    def test_fee_apr_and_ratio(self):
        self.assertEqual(
            fee_apr_pct(volume_24h_usd=Decimal("1000"), tvl_usd=Decimal("10000")),
            Decimal("10.95"),
        )
        self.assertEqual(
            volume_tvl_ratio(volume_usd=Decimal("500"), tvl_usd=Decimal("1000")),
            Decimal("0.5"),
        )
        self.assertIsNone(fee_apr_pct(volume_24h_usd=Decimal("1"), tvl_usd=Decimal("0")))
        self.assertIsNone(volume_tvl_ratio(volume_usd=Decimal("1"), tvl_usd=Decimal("0")))

    def test_percent_change(self):
        self.assertEqual(percent_change(previous=Decimal("200"), current=Decimal("250")), Decimal("25"))
        self.assertIsNone(percent_change(previous=Decimal("0"), current=Decimal("1")))
        self.assertIsNone(percent_change(previous=None, current=Decimal("1")))


class SnapshotBucketsTest(unittest.TestCase):
    def test_bucket_start_floors_to_granularity(self):
        self.assertEqual(bucket_start(3_725, 3_600), 3_600)
        self.assertEqual(bucket_start(3_600, 3_600), 3_600)
        with self.assertRaises(ValueError):
            bucket_start(10, 0)

    def test_select_tier_prefers_finest_covering_retention(self):
        self.assertEqual(select_tier(3_600, DEFAULT_SNAPSHOT_TIERS).name, "minute")
        self.assertEqual(select_tier(86_400, DEFAULT_SNAPSHOT_TIERS).name, "minute")
        self.assertEqual(select_tier(7 * 86_400, DEFAULT_SNAPSHOT_TIERS).name, "hour")
        self.assertEqual(select_tier(365 * 86_400, DEFAULT_SNAPSHOT_TIERS).name, "day")

    def test_retention_cutoff(self):
        minute, _, day = DEFAULT_SNAPSHOT_TIERS
        self.assertEqual(retention_cutoff(100_000, minute), 100_000 - 86_400)
        self.assertIsNone(retention_cutoff(100_000, day))


if __name__ == "__main__":
    unittest.main()
