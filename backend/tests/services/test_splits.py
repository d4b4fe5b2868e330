# backend/tests/services/test_splits.py
"""
Tests for split un-adjustment.

Providers rescale history for every later split; multiplying by the
combined factor of the splits after a price's date recovers the price as
actually quoted that day.
"""

from decimal import Decimal

from counterfactual.services.comparison import UnadjustedPriceIndex, split_adjustment_factor
from tests.conftest import make_prices, make_split


class TestSplitAdjustmentFactor:
    """Tests for the combined factor of later splits."""

    def test_no_splits(self):
        assert split_adjustment_factor([], "2024-01-01") == Decimal("1")

    def test_split_after_price_date(self):
        splits = [make_split(split_date="2024-06-10", factor=4)]
        assert split_adjustment_factor(splits, "2024-01-01") == Decimal("4")

    def test_split_on_price_date_is_ignored(self):
        """Only splits strictly after the price date count."""
        splits = [make_split(split_date="2024-06-10", factor=4)]
        assert split_adjustment_factor(splits, "2024-06-10") == Decimal("1")

    def test_split_before_price_date_is_ignored(self):
        splits = [make_split(split_date="2020-08-31", factor=4)]
        assert split_adjustment_factor(splits, "2024-01-01") == Decimal("1")

    def test_multiple_splits_multiply(self):
        """A forward and a reverse split combine multiplicatively, in any order."""
        splits = [
            make_split(split_date="2024-09-01", factor="0.1"),
            make_split(split_date="2024-03-01", factor=3),
        ]
        assert split_adjustment_factor(splits, "2024-01-01") == Decimal("0.3")
        assert split_adjustment_factor(splits, "2024-05-01") == Decimal("0.1")


class TestUnadjustedPriceIndex:
    """Tests for as-traded price lookups."""

    def test_round_trip_recovers_true_price(self):
        """True price p with a later split f is reported as p / f; un-adjusting restores p."""
        true_price = Decimal("123.45")
        factor = Decimal("3")
        adjusted = true_price / factor
        index = UnadjustedPriceIndex(
            make_prices({"2024-01-02": adjusted}),
            [make_split(split_date="2024-02-01", factor=factor)],
        )

        assert index.price_on("2024-01-02").quantize(Decimal("0.01")) == true_price

    def test_prices_after_split_unchanged(self):
        index = UnadjustedPriceIndex(
            make_prices({"2024-01-02": "50", "2024-01-05": "52"}),
            [make_split(split_date="2024-01-04", factor=2)],
        )

        assert index.price_on("2024-01-02") == Decimal("100")
        assert index.price_on("2024-01-05") == Decimal("52")

    def test_price_on_missing_date_is_none(self):
        index = UnadjustedPriceIndex(make_prices({"2024-01-02": "50"}))
        assert index.price_on("2024-01-03") is None

    def test_fallback_uses_factor_of_found_entry(self):
        """
        A gap day before the split resolves to the previous entry, and that
        entry's own date decides the factor.
        """
        index = UnadjustedPriceIndex(
            make_prices({"2024-01-02": "50", "2024-01-08": "55"}),
            [make_split(split_date="2024-01-04", factor=2)],
        )

        # 2024-01-06 is after the split, but the entry used is 2024-01-02
        assert index.price_as_of("2024-01-06") == Decimal("100")

    def test_clamps_to_first_true_price(self):
        index = UnadjustedPriceIndex(
            make_prices({"2024-01-02": "50"}),
            [make_split(split_date="2024-01-04", factor=2)],
        )
        assert index.price_on_or_before("2023-12-01") == Decimal("100")

    def test_empty_prices(self):
        index = UnadjustedPriceIndex([], [make_split()])

        assert not index.has_data
        assert index.price_as_of("2024-01-02") is None

    def test_splits_input_not_mutated(self):
        splits = [make_split(split_date="2024-09-01"), make_split(split_date="2024-03-01")]
        snapshot = list(splits)

        UnadjustedPriceIndex(make_prices({"2024-01-02": "10"}), splits)

        assert splits == snapshot
