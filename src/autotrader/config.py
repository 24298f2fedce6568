"""Configuration system using pydantic-settings with environment variable loading."""

from datetime import time
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StrategyVariant(str, Enum):
    """Closed set of supported strategy variants."""

    TREND_FOLLOWING = "trend_following"
    MEAN_REVERSION = "mean_reversion"
    MOMENTUM = "momentum"
    BREAKOUT = "breakout"
    SCALPING = "scalping"


class ExchangeSettings(BaseSettings):
    """ccxt exchange connection settings (market data and live orders)."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_")

    exchange_id: str = "binance"
    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")
    quote_currency: str = "USDT"


class TradingSettings(BaseSettings):
    """Scheduler, feed and execution parameters."""

    model_config = SettingsConfigDict(env_prefix="TRADING_")

    mode: Literal["simulation", "live"] = "simulation"
    symbols: list[str] = ["BTC", "ETH", "SOL"]
    initial_balance: Decimal = Decimal("10000")
    order_amount: Decimal = Decimal("1000")  # configured notional per entry
    cycle_interval: float = 30.0  # seconds between scheduler cycles
    poll_interval: float = 15.0  # seconds between market data polls
    max_tick_age_seconds: float = 120.0  # older cached ticks are stale
    feed_timeout_seconds: float = 10.0
    gateway_timeout_seconds: float = 5.0
    history_capacity: int = 200  # ticks retained per symbol
    activity_log_capacity: int = 500


class StrategySettings(BaseSettings):
    """Strategy variant and indicator parameters.

    Frozen: a running scheduler must be stopped and rebuilt to change it.
    """

    model_config = SettingsConfigDict(env_prefix="STRATEGY_", frozen=True)

    variant: StrategyVariant = StrategyVariant.TREND_FOLLOWING
    min_confidence: Decimal = Decimal("70")  # decisions below this degrade to hold

    # Indicator windows (in ticks)
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    short_window: int = 7
    long_window: int = 25
    volatility_window: int = 20
    momentum_window: int = 10

    # RSI thresholds
    rsi_overbought: Decimal = Decimal("70")
    rsi_oversold: Decimal = Decimal("30")

    # Variant thresholds (percent)
    momentum_threshold_pct: Decimal = Decimal("1.0")
    breakout_volatility_pct: Decimal = Decimal("2.0")
    breakout_momentum_pct: Decimal = Decimal("3.0")
    scalping_band_low_pct: Decimal = Decimal("0.1")
    scalping_band_high_pct: Decimal = Decimal("0.8")
    scalping_momentum_pct: Decimal = Decimal("0.2")

    @model_validator(mode="after")
    def _check_windows(self) -> "StrategySettings":
        for name in ("rsi_period", "macd_fast", "macd_signal", "short_window", "momentum_window"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.volatility_window < 2:
            raise ValueError("volatility_window must be >= 2")
        if self.short_window > self.long_window:
            raise ValueError("short_window must be <= long_window")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be < macd_slow")
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be < rsi_overbought")
        if self.scalping_band_low_pct > self.scalping_band_high_pct:
            raise ValueError("scalping band low must be <= high")
        return self

    @property
    def required_history(self) -> int:
        """Minimum number of ticks before every indicator is computable."""
        return max(
            self.rsi_period + 1,
            self.macd_slow + self.macd_signal,
            self.long_window,
            self.volatility_window,
            self.momentum_window + 1,
        )


class RiskSettings(BaseSettings):
    """Risk limits. All *_pct fields are percentages (2 means 2%)."""

    model_config = SettingsConfigDict(env_prefix="RISK_", frozen=True)

    max_position_size_pct: Decimal = Decimal("10")  # of cash balance
    max_drawdown_pct: Decimal = Decimal("20")
    max_open_positions: int = 5
    max_risk_per_trade_pct: Decimal = Decimal("2")
    stop_loss_pct: Decimal = Decimal("5")
    take_profit_pct: Decimal = Decimal("10")
    min_order_notional: Decimal = Decimal("10")
    max_daily_trades: int = 10
    allow_short: bool = False

    # Trading window in UTC; may wrap past midnight (start > end)
    trading_window_enabled: bool = False
    trading_window_start: time = time(0, 0)
    trading_window_end: time = time(23, 59, 59)

    @model_validator(mode="after")
    def _check_limits(self) -> "RiskSettings":
        if not 0 < self.max_position_size_pct <= 100:
            raise ValueError("max_position_size_pct must be in (0, 100]")
        if self.stop_loss_pct <= 0:
            raise ValueError("stop_loss_pct must be positive")
        if self.max_open_positions < 1:
            raise ValueError("max_open_positions must be at least 1")
        return self


class ApiSettings(BaseSettings):
    """Read-only HTTP API configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    exchange: ExchangeSettings = ExchangeSettings()
    trading: TradingSettings = TradingSettings()
    strategy: StrategySettings = StrategySettings()
    risk: RiskSettings = RiskSettings()
    api: ApiSettings = ApiSettings()
