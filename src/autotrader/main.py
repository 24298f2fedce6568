"""Entry point for the autotrader agent.

Wires all components together, optionally embeds the FastAPI read-only
API, and starts the scheduler. When the API is enabled (default), the
scheduler and the API share a single asyncio event loop via uvicorn's
programmatic API and FastAPI's lifespan context manager; uvicorn's own
SIGINT/SIGTERM handling triggers the lifespan shutdown. Without the API,
SIGINT/SIGTERM stop the scheduler gracefully.

Component wiring order (in _build_components):
1. ExchangeClient (ccxt, used for market data and live orders)
2. MarketDataProvider + TickHistory + MarketDataPoller
3. IndicatorEngine, SignalGenerator, RiskManager
4. OrderGateway (SimulatedGateway or LiveGateway based on mode)
5. AccountLedger and ActivityLog
6. SchedulerLoop
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from autotrader.activity.log import ActivityLog
from autotrader.config import AppSettings
from autotrader.exchange.ccxt_client import CcxtExchangeClient
from autotrader.execution.gateway import OrderGateway
from autotrader.indicators.engine import IndicatorEngine
from autotrader.indicators.history import TickHistory
from autotrader.ledger.ledger import AccountLedger
from autotrader.logging import get_logger, setup_logging
from autotrader.market_data.poller import MarketDataPoller
from autotrader.market_data.provider import CcxtMarketDataProvider
from autotrader.models import TradeMode
from autotrader.risk.manager import RiskManager
from autotrader.scheduler import SchedulerLoop
from autotrader.signals.generator import SignalGenerator


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all agent components from settings.

    Note: Does NOT call exchange_client.connect() -- that happens in the
    lifespan (API mode) or run() (headless mode).

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("autotrader.main")
    trading = settings.trading

    exchange_client = CcxtExchangeClient(settings.exchange)

    if trading.mode == "live" and not settings.exchange.api_key.get_secret_value():
        logger.warning(
            "no_api_keys_configured",
            mode=trading.mode,
            note="Market data will work. Live orders will be rejected by the exchange.",
        )

    provider = CcxtMarketDataProvider(exchange_client)
    poller = MarketDataPoller(
        provider=provider,
        symbols=trading.symbols,
        history=TickHistory(trading.history_capacity),
        poll_interval=trading.poll_interval,
        fetch_timeout=trading.feed_timeout_seconds,
        max_tick_age=trading.max_tick_age_seconds,
    )

    if trading.history_capacity < settings.strategy.required_history:
        logger.warning(
            "history_capacity_below_required",
            capacity=trading.history_capacity,
            required=settings.strategy.required_history,
        )

    gateway: OrderGateway
    if trading.mode == "simulation":
        from autotrader.execution.simulated import SimulatedGateway

        gateway = SimulatedGateway()
    else:
        from autotrader.execution.live import LiveGateway

        gateway = LiveGateway(exchange_client)

    ledger = AccountLedger(trading.initial_balance, mode=TradeMode(trading.mode))
    activity_log = ActivityLog(trading.activity_log_capacity)

    scheduler = SchedulerLoop(
        poller=poller,
        indicator_engine=IndicatorEngine(settings.strategy),
        signal_generator=SignalGenerator(settings.strategy),
        risk_manager=RiskManager(settings.risk, trading.order_amount),
        gateway=gateway,
        ledger=ledger,
        activity_log=activity_log,
        cycle_interval=trading.cycle_interval,
        gateway_timeout=trading.gateway_timeout_seconds,
    )

    return {
        "exchange_client": exchange_client,
        "poller": poller,
        "gateway": gateway,
        "ledger": ledger,
        "activity_log": activity_log,
        "scheduler": scheduler,
    }


def _setup_signal_handlers(scheduler: SchedulerLoop) -> list[asyncio.Task]:
    """Register SIGINT/SIGTERM to stop the scheduler gracefully.

    Must be called after the asyncio event loop is running.

    Returns:
        List that collects the stop tasks the handlers spawn.
    """
    logger = get_logger("autotrader.main")
    loop = asyncio.get_running_loop()
    stop_tasks: list[asyncio.Task] = []

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_tasks.append(asyncio.create_task(scheduler.stop()))

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)

    return stop_tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: exposes the scheduler on app.state, connects to the
    exchange and starts the scheduler. On shutdown: stops the scheduler
    (waiting for the in-flight cycle) and disconnects.
    """
    logger = get_logger("autotrader.main")
    settings = app.state.settings
    components = app.state.components

    app.state.scheduler = components["scheduler"]

    await components["exchange_client"].connect()
    await components["scheduler"].start()

    logger.info("lifespan_started", mode=settings.trading.mode)

    yield

    await components["scheduler"].stop()
    await components["exchange_client"].close()

    logger.info("autotrader_stopped")


async def run() -> None:
    """Run the agent, with or without the HTTP API (API_ENABLED)."""
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("autotrader.main")

    components = _build_components(settings)

    if settings.api.enabled:
        from autotrader.api.app import create_app

        app = create_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.api.host,
            port=settings.api.port,
            mode=settings.trading.mode,
            strategy=settings.strategy.variant.value,
        )

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        scheduler: SchedulerLoop = components["scheduler"]
        stop_tasks = _setup_signal_handlers(scheduler)

        logger.info(
            "starting_without_api",
            mode=settings.trading.mode,
            strategy=settings.strategy.variant.value,
            symbols=settings.trading.symbols,
            max_open_positions=settings.risk.max_open_positions,
            stop_loss_pct=str(settings.risk.stop_loss_pct),
        )

        try:
            await components["exchange_client"].connect()
            await scheduler.start()
            await scheduler.join()
            if stop_tasks:
                await asyncio.gather(*stop_tasks)
        finally:
            await scheduler.stop()
            await components["exchange_client"].close()
            logger.info("autotrader_stopped", halted=scheduler.halted)


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
