"""
Simple trade store and balance source implementations.

- InMemoryTradeStore: trades held in a list (tests, embedding)
- CSVTradeStore: trades exported to a CSV file, one closed trade per row
- StaticBalanceSource: fixed balance (or none, forcing the margin fallback)

CSV Format:
    symbol,side,entry_price,exit_price,quantity,stop_loss,take_profit,margin,pnl,opened_at,closed_at,trade_id,leverage
    BTCUSDT,LONG,60000,61000,0.1,59000,63000,600,100,2025-01-01T09:00:00+00:00,2025-01-01T13:00:00+00:00,T1,10

Optional columns (stop_loss, take_profit, margin, trade_id, leverage) may be
missing or empty. Timestamps are ISO 8601; naive values are taken as UTC.
"""

import csv
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from tradelens.libraries.performance.models import ClosedTrade
from tradelens.services.analytics.interface import BalanceQueryError
from tradelens.system import LoggerFactory

logger = LoggerFactory.get_logger()

REQUIRED_COLUMNS = ("symbol", "side", "entry_price", "exit_price", "quantity", "pnl", "opened_at", "closed_at")
OPTIONAL_COLUMNS = ("stop_loss", "take_profit", "margin", "trade_id", "leverage")


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class InMemoryTradeStore:
    """
    Trade store over an in-memory list.

    Trades are kept sorted by close time, so callers may add them in any order.
    Naive timestamps are taken as UTC and stored timezone-aware.
    """

    def __init__(self, trades: Iterable[ClosedTrade] = ()) -> None:
        self._trades: list[ClosedTrade] = []
        for trade in trades:
            self.add(trade)

    def add(self, trade: ClosedTrade) -> None:
        """Add a closed trade."""
        if trade.opened_at.tzinfo is None or trade.closed_at.tzinfo is None:
            trade = trade.model_copy(
                update={"opened_at": _as_utc(trade.opened_at), "closed_at": _as_utc(trade.closed_at)}
            )
        self._trades.append(trade)
        self._trades.sort(key=lambda t: t.closed_at)

    def fetch_closed_trades(self, period_start: datetime, period_end: datetime) -> list[ClosedTrade]:
        """Trades closed within ``[period_start, period_end]``, oldest first."""
        start, end = _as_utc(period_start), _as_utc(period_end)
        return [t for t in self._trades if start <= t.closed_at <= end]

    def __len__(self) -> int:
        return len(self._trades)


class CSVTradeStore:
    """
    Trade store reading closed trades from a CSV file.

    The file is re-read on every fetch so that appended trades show up
    without restarting.

    Example:
        >>> store = CSVTradeStore("exports/trades.csv")
        >>> trades = store.fetch_closed_trades(start, end)
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize CSV trade store.

        Args:
            path: CSV file path

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.csv_path = Path(path)
        if not self.csv_path.exists():
            raise FileNotFoundError(f"Trade CSV not found: {self.csv_path}")

    def fetch_closed_trades(self, period_start: datetime, period_end: datetime) -> list[ClosedTrade]:
        """
        Trades closed within ``[period_start, period_end]``, oldest first.

        Raises:
            ValueError: Missing columns or an invalid row (row number included)
        """
        start, end = _as_utc(period_start), _as_utc(period_end)
        trades = [t for t in self.read_all() if start <= t.closed_at <= end]
        trades.sort(key=lambda t: t.closed_at)
        return trades

    def read_all(self) -> list[ClosedTrade]:
        """Parse every row of the file."""
        trades: list[ClosedTrade] = []

        with self.csv_path.open("r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"{self.csv_path}: missing required columns: {', '.join(missing)}")

            # Row 1 is the header
            for line_number, row in enumerate(reader, start=2):
                try:
                    trades.append(self._parse_row(row))
                except (ValueError, ArithmeticError, ValidationError) as e:
                    logger.error("csv_trade_store.parse_error", path=str(self.csv_path), line=line_number, error=str(e))
                    raise ValueError(f"{self.csv_path}:{line_number}: invalid trade row: {e}") from e

        logger.debug("csv_trade_store.loaded", path=str(self.csv_path), trades=len(trades))
        return trades

    @staticmethod
    def _parse_row(row: dict[str, str | None]) -> ClosedTrade:
        def required(column: str) -> str:
            # DictReader fills the fields of a short row with None
            value = (row.get(column) or "").strip()
            if not value:
                raise ValueError(f"missing value for {column}")
            return value

        def optional(column: str) -> str | None:
            value = (row.get(column) or "").strip()
            return value or None

        stop_loss = optional("stop_loss")
        take_profit = optional("take_profit")
        margin = optional("margin")
        leverage = optional("leverage")

        return ClosedTrade(
            symbol=required("symbol"),
            side=required("side"),
            entry_price=Decimal(required("entry_price")),
            exit_price=Decimal(required("exit_price")),
            quantity=Decimal(required("quantity")),
            stop_loss=Decimal(stop_loss) if stop_loss else None,
            take_profit=Decimal(take_profit) if take_profit else None,
            margin=Decimal(margin) if margin else Decimal("0"),
            pnl=Decimal(required("pnl")),
            opened_at=_as_utc(datetime.fromisoformat(required("opened_at"))),
            closed_at=_as_utc(datetime.fromisoformat(required("closed_at"))),
            trade_id=optional("trade_id"),
            leverage=int(leverage) if leverage else None,
        )


class StaticBalanceSource:
    """
    Balance source returning a fixed value.

    With ``balance=None`` every query fails with BalanceQueryError, which
    makes the starting equity resolver use its margin fallback.
    """

    def __init__(self, balance: Decimal | None) -> None:
        self._balance = balance

    def get_account_balance(self, asset: str) -> Decimal:
        if self._balance is None:
            raise BalanceQueryError(f"No balance available for {asset}")
        return self._balance
