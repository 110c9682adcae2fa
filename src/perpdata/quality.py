"""Data quality validation for asset collections and order books."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from perpdata.models.asset import AssetSnapshot
from perpdata.models.orderbook import OrderBookView


@dataclass
class ValidationCheck:
    """Single validation check result."""

    name: str
    passed: bool
    message: str = ""


@dataclass
class ValidationResult:
    """Aggregate validation result."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed]

    def add(self, name: str, bad: int, message: str) -> None:
        """Record ``name`` as failed with ``message`` when ``bad`` > 0."""
        if bad:
            self.checks.append(ValidationCheck(name, False, message))
        else:
            self.checks.append(ValidationCheck(name, True))


def validate_assets(assets: Sequence[AssetSnapshot]) -> ValidationResult:
    """Run all quality checks on an asset collection.

    Checks:
        1. Not empty
        2. Unique ids
        3. Volume sanity (non-negative volumes and trade counts)
        4. Volume ordering (quote volume descending)
        5. Open interest sanity (non-negative when present)
    """
    result = ValidationResult()

    # 1. Not empty
    if not assets:
        result.checks.append(ValidationCheck("not_empty", False, "No assets provided"))
        return result
    result.checks.append(ValidationCheck("not_empty", True, f"{len(assets)} assets"))

    # 2. Unique ids
    seen: set[str] = set()
    dupes = 0
    for a in assets:
        if a.id in seen:
            dupes += 1
        seen.add(a.id)
    result.add("unique_ids", dupes, f"{dupes} duplicate ids")

    # 3. Volume sanity
    neg = sum(
        1 for a in assets
        if a.daily_volume_quote < 0 or a.daily_volume_base < 0 or a.daily_trades < 0
    )
    result.add("volume_sanity", neg, f"{neg} assets with negative volume or trades")

    # 4. Volume ordering
    out_of_order = sum(
        1 for i in range(1, len(assets))
        if assets[i].daily_volume_quote > assets[i - 1].daily_volume_quote
    )
    result.add("volume_order", out_of_order, f"{out_of_order} out of order")

    # 5. Open interest sanity
    neg_oi = sum(
        1 for a in assets
        if a.open_interest_quote is not None and a.open_interest_quote < 0
    )
    result.add("open_interest_sanity", neg_oi, f"{neg_oi} assets with negative open interest")

    return result


def validate_order_book(view: OrderBookView) -> ValidationResult:
    """Run all quality checks on one order book view.

    Checks:
        1. Positive prices and non-negative quantities
        2. Bids descending by price
        3. Asks ascending by price
        4. Book not crossed (best bid < best ask)
    """
    result = ValidationResult()
    levels = view.bids + view.asks

    # 1. Level sanity (malformed upstream levels normalize to zero)
    bad = sum(1 for lv in levels if lv.price <= 0 or lv.quantity < 0)
    result.add("level_sanity", bad, f"{bad} levels with non-positive price or negative size")

    # 2. Bid ordering
    bid_disorder = sum(
        1 for i in range(1, len(view.bids)) if view.bids[i].price > view.bids[i - 1].price
    )
    result.add("bid_order", bid_disorder, f"{bid_disorder} bids out of order")

    # 3. Ask ordering
    ask_disorder = sum(
        1 for i in range(1, len(view.asks)) if view.asks[i].price < view.asks[i - 1].price
    )
    result.add("ask_order", ask_disorder, f"{ask_disorder} asks out of order")

    # 4. Crossed book
    crossed = int(bool(view.bids and view.asks and view.bids[0].price >= view.asks[0].price))
    result.add("not_crossed", crossed, "best bid >= best ask")

    return result


__all__ = ["ValidationCheck", "ValidationResult", "validate_assets", "validate_order_book"]
