"""Command line entry point for the strategy engine."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from crypto_strategy_engine.config import BinanceConfig, Settings, load_settings
from crypto_strategy_engine.database import DatabaseManager
from crypto_strategy_engine.errors import StrategyEngineError
from crypto_strategy_engine.exchanges import BinanceMarketData, BinanceService
from crypto_strategy_engine.monitoring import configure_logging, signal_view, strategy_view
from crypto_strategy_engine.pipeline import StrategyPipeline
from crypto_strategy_engine.risk import RiskTolerance
from crypto_strategy_engine.signals import SignalCollector, TechnicalSignalSource, summarize_universe
from crypto_strategy_engine.strategies import Goal

logger = logging.getLogger(__name__)


def _collector(settings: Settings, service: BinanceService) -> SignalCollector:
    # Sentiment and on-chain feeds are external; only the exchange-backed source is wired here.
    market_data = BinanceMarketData(service)
    return SignalCollector(
        [TechnicalSignalSource(market_data)],
        market_data=market_data,
        timeout=settings.signal_timeout,
    )


def _print(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run_signals(settings: Settings, symbols: Sequence[str]) -> None:
    service = BinanceService(BinanceConfig.from_env(settings))
    try:
        universe = await _collector(settings, service).collect_universe(symbols)
    finally:
        await service.close()
    _print({'counts': summarize_universe(universe), 'signals': [signal_view(signal) for signal in universe]})


async def run_strategies(settings: Settings, args: argparse.Namespace) -> None:
    goal = Goal(
        target_roi=args.target_roi,
        capital=args.capital,
        timeframe_days=args.days,
        risk_tolerance=RiskTolerance(args.risk),
    )
    database = DatabaseManager(settings.database_url)
    service = BinanceService(BinanceConfig.from_env(settings))
    pipeline = StrategyPipeline(
        _collector(settings, service),
        database,
        timeout=settings.pipeline_timeout,
    )
    try:
        result = await pipeline.run(args.user_id, goal, args.symbols or settings.default_symbols)
    finally:
        await service.close()
        database.close()
    _print(
        {
            'requested': goal.risk_tolerance.value,
            'strategy_ids': result.strategy_ids,
            'strategies': [strategy_view(strategy) for strategy in result.strategies],
        }
    )


def run_profile(settings: Settings, args: argparse.Namespace) -> None:
    database = DatabaseManager(settings.database_url)
    try:
        if args.action == 'update':
            profile = database.update_risk_profile(
                args.user_id,
                max_position_size_pct=args.max_position,
                max_open_positions=args.max_open,
                daily_loss_limit_pct=args.daily_loss,
                min_confidence=args.min_confidence,
                risk_tolerance=args.risk,
                allowed_symbols=args.allowed_symbols,
            )
        else:
            profile = database.get_risk_profile(args.user_id)
    finally:
        database.close()
    _print(profile.as_dict())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Crypto signal and strategy engine CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    signals = sub.add_parser('signals', help='Aggregate signals for symbols')
    signals.add_argument('--symbols', nargs='+', default=None)

    strategies = sub.add_parser('strategies', help='Generate risk-tiered strategies for a goal')
    strategies.add_argument('--user-id', type=int, default=1)
    strategies.add_argument('--target-roi', type=float, default=30.0, help='Target ROI in percent')
    strategies.add_argument('--capital', type=float, default=10_000.0)
    strategies.add_argument('--days', type=int, default=30)
    strategies.add_argument('--risk', choices=[tier.value for tier in RiskTolerance], default='moderate')
    strategies.add_argument('--symbols', nargs='+', default=None)

    profile = sub.add_parser('profile', help='Show or update a risk profile')
    profile.add_argument('action', choices=['show', 'update'])
    profile.add_argument('--user-id', type=int, default=1)
    profile.add_argument('--max-position', type=float)
    profile.add_argument('--max-open', type=int)
    profile.add_argument('--daily-loss', type=float)
    profile.add_argument('--min-confidence', type=float)
    profile.add_argument('--risk', choices=[tier.value for tier in RiskTolerance])
    profile.add_argument('--allowed-symbols', nargs='+')

    return parser


async def async_main(args: argparse.Namespace, settings: Settings) -> None:
    if args.command == 'signals':
        await run_signals(settings, args.symbols or settings.default_symbols)
    elif args.command == 'strategies':
        await run_strategies(settings, args)
    elif args.command == 'profile':
        run_profile(settings, args)
    else:  # pragma: no cover
        raise ValueError(f'Unknown command {args.command}')


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)
    try:
        asyncio.run(async_main(args, settings))
    except (StrategyEngineError, ValueError) as error:
        logger.error('%s', error)
        return 1
    except asyncio.TimeoutError:
        logger.error('Request timed out after %.0fs', settings.pipeline_timeout)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
