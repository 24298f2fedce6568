"""Scheduler loop -- wires the pipeline and runs one cycle per interval.

Each cycle:
  1. SNAPSHOT: Consistent per-symbol ticks and history from the poller
  2. MARK: Mark every open position to market
  3. EXIT: Force-close positions past stop-loss or take-profit
  4. DECIDE: Per symbol, indicators -> decision -> risk check
  5. EXECUTE: Gateway fill, then ledger update
  6. RECORD: Buffered activity entries are appended to the log

Works identically with SimulatedGateway and LiveGateway; the scheduler
only sees the OrderGateway ABC. Cycles are serialized under a lock and
stop() never interrupts one: the loop checks its state only between
cycles, and its sleep is an interruptible Event wait.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

import structlog

from autotrader.activity.log import ActivityEntry, ActivityKind, ActivityLog
from autotrader.exceptions import (
    FeedUnavailable,
    GatewayRejected,
    InsufficientHistory,
    InvariantViolation,
    LedgerError,
    RiskRejected,
)
from autotrader.execution.gateway import OrderGateway
from autotrader.indicators.engine import IndicatorEngine
from autotrader.ledger.ledger import AccountLedger
from autotrader.logging import get_logger
from autotrader.market_data.poller import MarketDataPoller, SymbolSnapshot
from autotrader.models import MarketTick, OrderRequest, OrderResult, Position, PositionSide
from autotrader.risk.manager import ExitReason, RiskManager
from autotrader.signals.generator import BELOW_CONFIDENCE, SignalGenerator
from autotrader.signals.models import Action, Decision

logger = get_logger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle of the scheduler loop."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


def _closes(position: Position, decision: Decision) -> bool:
    """Whether the decision points against the open position."""
    if position.side is PositionSide.LONG:
        return decision.action is Action.SELL
    return decision.action is Action.BUY


def _utc_midnight(ts: float) -> float:
    day = datetime.fromtimestamp(ts, timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return day.timestamp()


class SchedulerLoop:
    """Drives the trading pipeline on a fixed interval.

    The scheduler is the only writer of the ledger and the activity log.

    Args:
        poller: Market data poller serving per-cycle snapshots.
        indicator_engine: Computes indicators from tick history.
        signal_generator: Turns indicators into decisions.
        risk_manager: Entry and exit checks.
        gateway: Order execution (simulated or live).
        ledger: The virtual account.
        activity_log: Bounded record of everything the scheduler does.
        cycle_interval: Seconds between cycles.
        gateway_timeout: Seconds before a submit is abandoned.
        clock: Time source (Unix seconds), injectable for tests.
    """

    def __init__(
        self,
        poller: MarketDataPoller,
        indicator_engine: IndicatorEngine,
        signal_generator: SignalGenerator,
        risk_manager: RiskManager,
        gateway: OrderGateway,
        ledger: AccountLedger,
        activity_log: ActivityLog,
        cycle_interval: float = 30.0,
        gateway_timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._poller = poller
        self._indicator_engine = indicator_engine
        self._signal_generator = signal_generator
        self._risk_manager = risk_manager
        self._gateway = gateway
        self._ledger = ledger
        self._activity_log = activity_log
        self._cycle_interval = cycle_interval
        self._gateway_timeout = gateway_timeout
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._halted = False
        self._cycle_count = 0
        self._last_cycle_at: float | None = None
        self._cycle_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    # ---- lifecycle ----

    async def start(self) -> None:
        """Start the poller and the background cycle loop (idle -> running)."""
        if self._halted:
            logger.error("scheduler_start_refused_halted")
            return
        if self._state is not SchedulerState.IDLE:
            logger.info("scheduler_already_running", state=self._state.value)
            return

        logger.info(
            "scheduler_starting",
            mode=self._ledger.mode.value,
            strategy=self._signal_generator.variant.value,
            cycle_interval=self._cycle_interval,
        )
        await self._poller.start()
        self._stop_event.clear()
        self._state = SchedulerState.RUNNING
        self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        """Stop gracefully (running -> stopping -> idle).

        Waits for an in-flight cycle to finish, then stops the poller.
        Open positions are left as they are.
        """
        if self._state is not SchedulerState.RUNNING:
            return
        logger.info("scheduler_stopping")
        self._state = SchedulerState.STOPPING
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        await self._poller.stop()
        self._state = SchedulerState.IDLE
        logger.info("scheduler_stopped")

    async def join(self) -> None:
        """Wait until the cycle loop exits, whether stopped or halted."""
        task = self._task
        if task is not None:
            await task

    async def _run_loop(self) -> None:
        while self._state is SchedulerState.RUNNING:
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("scheduler_loop_error", exc_info=True)

            if self._state is not SchedulerState.RUNNING:
                break
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._cycle_interval)
            except asyncio.TimeoutError:
                pass

    # ---- cycle ----

    async def run_cycle(self) -> None:
        """Run one full cycle under the cycle lock.

        Recoverable errors become activity entries. InvariantViolation
        halts the scheduler.
        """
        async with self._cycle_lock:
            self._cycle_count += 1
            structlog.contextvars.bind_contextvars(cycle=self._cycle_count)
            pending: list[ActivityEntry] = []
            try:
                await self._cycle(pending)
            except InvariantViolation as exc:
                pending.append(
                    ActivityEntry(ActivityKind.ERROR, "invariant_violation", details={"error": str(exc)})
                )
                await self._halt(exc)
            except Exception as exc:
                logger.error("scheduler_cycle_error", error=str(exc), exc_info=True)
                pending.append(
                    ActivityEntry(ActivityKind.ERROR, "cycle_error", details={"error": str(exc)})
                )
            finally:
                self._activity_log.extend(pending)
                self._last_cycle_at = self._clock()
                structlog.contextvars.unbind_contextvars("cycle")

    async def _cycle(self, pending: list[ActivityEntry]) -> None:
        try:
            snapshots = await self._poller.get_snapshot()
        except FeedUnavailable as exc:
            logger.warning("cycle_skipped_feed_unavailable", error=str(exc))
            pending.append(
                ActivityEntry(ActivityKind.SKIPPED, "feed_unavailable", details={"error": str(exc)})
            )
            return

        for snap in snapshots.values():
            await self._ledger.mark_to_market(snap.tick)

        closed: set[str] = set()
        for position in self._ledger.get_open_positions():
            reason = self._risk_manager.check_forced_exit(position)
            snap = snapshots.get(position.symbol)
            if reason is None or snap is None:
                continue
            logger.info(
                "forced_exit_triggered",
                position_id=position.id,
                symbol=position.symbol,
                reason=reason.value,
                pnl_pct=str(position.unrealized_pnl_pct),
            )
            closing = self._close(position, snap.tick, reason, Decimal("0"), pending)
            if await self._guarded(pending, position.symbol, closing):
                closed.add(position.symbol)

        for symbol, snap in snapshots.items():
            if symbol in closed:
                continue
            await self._process_symbol(snap, pending)

        logger.debug(
            "cycle_complete",
            balance=str(self._ledger.balance),
            open_positions=len(self._ledger.get_open_positions()),
        )

    async def _process_symbol(self, snap: SymbolSnapshot, pending: list[ActivityEntry]) -> None:
        tick = snap.tick
        symbol = tick.symbol
        try:
            indicators = self._indicator_engine.compute(symbol, snap.history)
        except InsufficientHistory as exc:
            logger.debug("indicators_not_ready", symbol=symbol, error=str(exc))
            pending.append(
                ActivityEntry(
                    ActivityKind.SKIPPED,
                    "insufficient_history",
                    symbol=symbol,
                    details={
                        "have": len(snap.history),
                        "need": self._indicator_engine.required_history,
                    },
                )
            )
            return

        decision = self._signal_generator.generate(indicators, tick)
        if not decision.is_actionable:
            if decision.reason == BELOW_CONFIDENCE:
                pending.append(ActivityEntry(ActivityKind.SKIPPED, BELOW_CONFIDENCE, symbol=symbol))
            return

        position = self._ledger.get_position_for_symbol(symbol)
        if position is not None and _closes(position, decision):
            action = self._exit_on_signal(position, decision, tick, pending)
        else:
            action = self._enter(decision, tick, pending)
        await self._guarded(pending, symbol, action)

    async def _guarded(
        self, pending: list[ActivityEntry], symbol: str, action: Awaitable[None]
    ) -> bool:
        """Await one order action, turning recoverable errors into rejections.

        Returns:
            True if the action completed.
        """
        try:
            await action
        except RiskRejected as exc:
            logger.info("order_rejected", symbol=symbol, reason=exc.reason, detail=exc.detail)
            pending.append(
                ActivityEntry(ActivityKind.REJECTED, exc.reason, symbol=symbol, details={"detail": exc.detail})
            )
        except GatewayRejected as exc:
            logger.warning("order_gateway_rejected", symbol=symbol, error=str(exc))
            pending.append(
                ActivityEntry(ActivityKind.REJECTED, "gateway_rejected", symbol=symbol, details={"error": str(exc)})
            )
        else:
            return True
        return False

    async def _enter(self, decision: Decision, tick: MarketTick, pending: list[ActivityEntry]) -> None:
        trades_today = self._ledger.count_opens_since(_utc_midnight(self._clock()))
        approved = self._risk_manager.check_entry(
            decision, tick, self._ledger.snapshot(), trades_today=trades_today
        )
        result = await self._submit(
            OrderRequest(
                symbol=tick.symbol,
                side=approved.side.opening_side,
                quantity=approved.size,
                reference_price=tick.price,
            )
        )
        try:
            position = await self._ledger.open_position(
                symbol=tick.symbol,
                side=approved.side,
                size=result.filled_qty,
                price=result.filled_price,
                confidence=decision.confidence,
            )
        except (LedgerError, ValueError) as exc:
            self._unbooked_fill(result, exc, pending)
            return
        pending.append(
            ActivityEntry(
                ActivityKind.EXECUTED,
                "open_" + position.side.value,
                symbol=tick.symbol,
                details={
                    "position_id": position.id,
                    "order_id": result.order_id,
                    "size": str(position.size),
                    "price": str(position.entry_price),
                    "confidence": str(decision.confidence),
                    "downsized": approved.downsized,
                },
            )
        )

    async def _exit_on_signal(
        self, position: Position, decision: Decision, tick: MarketTick, pending: list[ActivityEntry]
    ) -> None:
        reason = self._risk_manager.check_signal_exit(position, decision)
        await self._close(position, tick, reason, decision.confidence, pending)

    async def _close(
        self,
        position: Position,
        tick: MarketTick,
        reason: ExitReason,
        confidence: Decimal,
        pending: list[ActivityEntry],
    ) -> None:
        result = await self._submit(
            OrderRequest(
                symbol=position.symbol,
                side=position.side.closing_side,
                quantity=position.size,
                reference_price=tick.price,
            )
        )
        if result.filled_qty < position.size:
            logger.warning(
                "partial_close_fill",
                position_id=position.id,
                symbol=position.symbol,
                requested=str(position.size),
                filled=str(result.filled_qty),
            )
        try:
            trade = await self._ledger.close_position(
                position.id,
                result.filled_price,
                confidence=confidence,
                reason=reason.value,
                size=result.filled_qty,
            )
        except (LedgerError, ValueError) as exc:
            self._unbooked_fill(result, exc, pending)
            return
        pending.append(
            ActivityEntry(
                ActivityKind.EXECUTED,
                reason.value,
                symbol=position.symbol,
                details={
                    "position_id": position.id,
                    "order_id": result.order_id,
                    "size": str(trade.amount),
                    "remaining": str(position.size - trade.amount),
                    "price": str(trade.price),
                    "realized_profit": str(trade.realized_profit),
                },
            )
        )

    def _unbooked_fill(
        self, result: OrderResult, exc: Exception, pending: list[ActivityEntry]
    ) -> None:
        """Record a gateway fill the ledger refused to book.

        The order already executed, so this is an error needing operator
        attention rather than a rejection.
        """
        logger.error(
            "unbooked_fill",
            symbol=result.symbol,
            order_id=result.order_id,
            side=result.side.value,
            size=str(result.filled_qty),
            price=str(result.filled_price),
            error=str(exc),
        )
        pending.append(
            ActivityEntry(
                ActivityKind.ERROR,
                "unbooked_fill",
                symbol=result.symbol,
                details={
                    "order_id": result.order_id,
                    "side": result.side.value,
                    "size": str(result.filled_qty),
                    "price": str(result.filled_price),
                    "error": str(exc),
                },
            )
        )

    async def _submit(self, request: OrderRequest) -> OrderResult:
        try:
            return await asyncio.wait_for(
                self._gateway.submit(request), timeout=self._gateway_timeout
            )
        except asyncio.TimeoutError as exc:
            raise GatewayRejected(
                f"Gateway timed out after {self._gateway_timeout}s for {request.symbol}"
            ) from exc

    async def _halt(self, exc: InvariantViolation) -> None:
        logger.critical(
            "ledger_invariant_violated",
            error=str(exc),
            ledger=self._ledger.dump(),
        )
        self._halted = True
        self._state = SchedulerState.IDLE
        self._stop_event.set()
        await self._poller.stop()

    # ---- readers ----

    def get_status(self) -> dict:
        """Return current scheduler status.

        Returns:
            Dict with: state, mode, strategy, halted, cycle_count,
            last_cycle_at, symbols, feed_error, account, stats.
        """
        snapshot = self._ledger.snapshot()
        return {
            "state": self._state.value,
            "mode": self._ledger.mode.value,
            "strategy": self._signal_generator.variant.value,
            "halted": self._halted,
            "cycle_count": self._cycle_count,
            "last_cycle_at": self._last_cycle_at,
            "symbols": self._poller.symbols,
            "feed_error": self._poller.last_error,
            "account": {
                "balance": snapshot.balance,
                "initial_balance": snapshot.initial_balance,
                "equity": snapshot.equity,
                "realized_profit": snapshot.realized_profit,
                "realized_loss": snapshot.realized_loss,
                "drawdown_pct": snapshot.drawdown_pct,
                "open_positions": len(snapshot.positions),
            },
            "stats": self._ledger.get_trade_stats(),
        }

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def halted(self) -> bool:
        """Set once a ledger invariant violation stopped the scheduler."""
        return self._halted

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def ledger(self) -> AccountLedger:
        return self._ledger

    @property
    def activity_log(self) -> ActivityLog:
        return self._activity_log
