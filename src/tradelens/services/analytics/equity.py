"""Starting equity resolution.

The equity curve is walked forward from a baseline that is never stored
anywhere: it is inferred from the current account balance minus the pnl
realized by the analyzed trades. When the balance cannot be queried, the
oldest trade's margin gives a rough estimate instead.
"""

from collections.abc import Sequence
from decimal import Decimal

from tradelens.libraries.performance.models import ClosedTrade
from tradelens.services.analytics.interface import IBalanceSource, StartingEquityError
from tradelens.system import LoggerFactory

logger = LoggerFactory.get_logger()

DEFAULT_MINIMUM_EQUITY = Decimal("100")
DEFAULT_LEVERAGE_ESTIMATE = 10


class StartingEquityResolver:
    """
    Resolves the equity the account held before the first analyzed trade.

    Primary path:
        ``max(current_balance - sum(pnl), minimum)``

    Fallback path (balance query raised, including auth failures):
        ``max(oldest_trade.margin * leverage_estimate, minimum)``

    The minimum is a safety floor for percentage-based drawdown math, not
    a claim about real capital. When the balance query fails and there are no
    trades to estimate from, StartingEquityError is raised: no baseline is
    manufactured.

    Example:
        >>> resolver = StartingEquityResolver(StaticBalanceSource(Decimal("1370")))
        >>> resolver.resolve(trades)  # trades sum to 370
        Decimal('1000')
    """

    def __init__(
        self,
        balance_source: IBalanceSource,
        asset: str = "USDT",
        minimum: Decimal = DEFAULT_MINIMUM_EQUITY,
        leverage_estimate: int = DEFAULT_LEVERAGE_ESTIMATE,
    ) -> None:
        """
        Initialize resolver.

        Args:
            balance_source: Current balance provider
            asset: Asset whose balance is queried
            minimum: Floor applied to both paths
            leverage_estimate: Assumed leverage for the margin fallback
        """
        self._balance_source = balance_source
        self._asset = asset
        self._minimum = minimum
        self._leverage_estimate = Decimal(leverage_estimate)

    def resolve(self, trades: Sequence[ClosedTrade]) -> Decimal:
        """
        Resolve the starting equity for an ordered trade set.

        Args:
            trades: Analyzed trades, oldest first

        Returns:
            Starting equity (never below the minimum)

        Raises:
            StartingEquityError: Balance query failed and trades is empty
        """
        try:
            balance = self._balance_source.get_account_balance(self._asset)
        except Exception as e:  # noqa: BLE001
            return self._fallback(trades, e)

        total_pnl = sum((t.pnl for t in trades), Decimal("0"))
        derived = balance - total_pnl
        starting_equity = max(derived, self._minimum)

        if derived < self._minimum:
            logger.warning(
                "analytics.starting_equity.clamped",
                derived=str(derived),
                minimum=str(self._minimum),
            )

        logger.debug(
            "analytics.starting_equity.resolved",
            asset=self._asset,
            balance=str(balance),
            total_pnl=str(total_pnl),
            starting_equity=str(starting_equity),
        )
        return starting_equity

    def _fallback(self, trades: Sequence[ClosedTrade], error: Exception) -> Decimal:
        if not trades:
            logger.error(
                "analytics.starting_equity.unresolvable",
                asset=self._asset,
                error=str(error),
            )
            raise StartingEquityError(
                f"Cannot resolve starting equity: balance query for {self._asset} failed and there are no trades"
            ) from error

        oldest = trades[0]
        starting_equity = max(oldest.margin * self._leverage_estimate, self._minimum)

        logger.warning(
            "analytics.starting_equity.fallback",
            asset=self._asset,
            error=str(error),
            oldest_margin=str(oldest.margin),
            leverage_estimate=str(self._leverage_estimate),
            starting_equity=str(starting_equity),
        )
        return starting_equity
