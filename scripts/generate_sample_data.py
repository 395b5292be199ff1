#!/usr/bin/env python3
"""Generate sample ledgers and yield reports for manual validation.

This script builds an in-memory card ledger from demo purchases and computes
fixed-income yields, then writes JSON files to the local/ folder. Use
``--live-rates`` to fetch the CDI series from the Central Bank; otherwise a
synthetic series is used.
"""

import argparse
import json
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Iterable

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fincontrol.billing import InMemoryLedger, InstallmentDistributor
from fincontrol.config import EngineConfig
from fincontrol.exceptions import CreditLimitExceededError
from fincontrol.generators import CardGenerator, InvestmentGenerator, PurchaseRequestGenerator
from fincontrol.investments import record_operation, revalue_position
from fincontrol.logging import get_logger, setup_logging
from fincontrol.rates import BCBRateSource, RateHistoryStore, RateSeries, synthetic_series
from fincontrol.serialization import to_dict, to_dict_fast

logger = get_logger("generate_sample_data")


def save_json(data: list[dict], filename: str, output_dir: Path) -> None:
    """Save serialized records to a JSON file."""
    filepath = output_dir / filename
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"Saved {len(data)} records to {filepath}")


def flat_rows(items: Iterable) -> list[dict]:
    """Serialize flat dataclass rows with money rounded to cents."""
    return [to_dict_fast(item, round_money=True) for item in items]


def generate_cards(
    ledger: InMemoryLedger,
    seed: int,
    num_cards: int,
    days: int,
    output_dir: Path,
) -> tuple[list, int]:
    """Create cards and distribute demo purchases over them."""
    print("\n1. Generating cards and purchases...")
    card_gen = CardGenerator(seed=seed)
    purchase_gen = PurchaseRequestGenerator(seed=seed)
    distributor = InstallmentDistributor(ledger)

    rejected = 0
    cards = []
    for _ in range(num_cards):
        card = card_gen.generate()
        ledger.add_card(card)
        cards.append(card)
        for request in purchase_gen.generate_between(date.today() - timedelta(days=days), date.today()):
            try:
                distributor.distribute(card.card_id, request)
            except CreditLimitExceededError:
                rejected += 1

    save_json(flat_rows(cards), "cards.json", output_dir)
    save_json(flat_rows(ledger.invoices.values()), "invoices.json", output_dir)
    save_json(flat_rows(ledger.purchases.values()), "purchases.json", output_dir)
    return cards, rejected


def load_series(config: EngineConfig, live: bool, days: int) -> RateSeries:
    """Benchmark series: BCB when ``live``, synthetic otherwise."""
    if live:
        store = RateHistoryStore.from_config(BCBRateSource(config.rates), config.rates)
        return store.fetch(days)
    return synthetic_series(date.today() - timedelta(days=days), date.today(), config.rates.fallback_daily_rate)


def generate_investments(
    series: RateSeries,
    seed: int,
    num_positions: int,
    days: int,
    output_dir: Path,
) -> list:
    """Create fixed-income positions with deposits and revalue them."""
    print("\n2. Generating fixed-income positions...")
    investment_gen = InvestmentGenerator(seed=seed)

    reports: list[dict[str, Any]] = []
    for _ in range(num_positions):
        position = investment_gen.generate()
        operations = []
        for request in investment_gen.generate_deposits(date.today() - timedelta(days=days)):
            outcome = record_operation(position, operations, request)
            operations.append(outcome.operation)
            position = outcome.position

        position, result = revalue_position(position, operations, series)
        report = {"position": to_dict(position, round_money=True)}
        if result is not None:
            summary = to_dict(result, round_money=True)
            summary.pop("deposits")
            report["yield"] = summary
        reports.append(report)

    save_json(reports, "investments.json", output_dir)
    return reports


def print_summary(data: dict[str, int], output_dir: Path) -> None:
    """Print generation summary."""
    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    for name, count in data.items():
        print(f"{name + ':':22}{count}")
    print(f"\nAll files saved to: {output_dir}")
    print("=" * 60)


def main() -> None:
    """Generate all sample data files."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--cards", type=int, default=3)
    parser.add_argument("--positions", type=int, default=3)
    parser.add_argument("--days", type=int, default=365)
    parser.add_argument("--live-rates", action="store_true")
    parser.add_argument("--output", type=Path, default=project_root / "local")
    args = parser.parse_args()

    config = EngineConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    output_dir = args.output
    output_dir.mkdir(exist_ok=True)

    print("=" * 60)
    print("Generating Sample Data for Validation")
    print("=" * 60)

    ledger = InMemoryLedger()
    _, rejected = generate_cards(ledger, args.seed, args.cards, args.days, output_dir)

    series = load_series(config, args.live_rates, args.days)
    if series.synthetic:
        logger.info("Using synthetic rate series (%d business days)", len(series))
    investments = generate_investments(series, args.seed, args.positions, args.days, output_dir)

    print_summary(
        {
            **{k.capitalize(): v for k, v in ledger.summary().items()},
            "Rejected purchases": rejected,
            "Positions": len(investments),
        },
        output_dir,
    )


if __name__ == "__main__":
    main()
