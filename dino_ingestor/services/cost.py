"""Azure Cost Management queries for the portal's spend card."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from azure.core.exceptions import AzureError
from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.costmanagement.aio import CostManagementClient
from azure.mgmt.costmanagement.models import (
    QueryAggregation,
    QueryDataset,
    QueryDefinition,
    QueryTimePeriod,
)

from ..exceptions import ConfigurationError, CostQueryError
from ..monitoring.metrics import record_cost_query
from ..schemas.payload import CostDetails
from ..utils.config import AzureSettings
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "CostService"})

CostClientFactory = Callable[[], AbstractAsyncContextManager[Any]]

NOT_CONFIGURED_MESSAGE = "Azure credentials or subscription details are not properly configured"
DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class CostWindow:
    """Closed date range a cost query aggregates over."""

    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return f"{self.start.date().isoformat()} to {self.end.date().isoformat()}"


def trailing_window(days: int = DEFAULT_WINDOW_DAYS, *, now: datetime | None = None) -> CostWindow:
    """Return the window of ``days`` days ending at ``now`` (call time by default)."""

    end = now or datetime.now(timezone.utc)
    return CostWindow(start=end - timedelta(days=days), end=end)


def build_query_definition(window: CostWindow) -> QueryDefinition:
    """Actual cost summed over the window, no grouping."""

    return QueryDefinition(
        type="ActualCost",
        timeframe="Custom",
        time_period=QueryTimePeriod(from_property=window.start, to=window.end),
        dataset=QueryDataset(
            aggregation={"totalCost": QueryAggregation(name="Cost", function="Sum")},
        ),
    )


def _column_index(columns: list[Any] | None, candidates: tuple[str, ...], default: int) -> int:
    for index, column in enumerate(columns or []):
        if (getattr(column, "name", None) or "").lower() in candidates:
            return index
    return default


def parse_query_result(result: Any, window: CostWindow) -> CostDetails:
    """Map the first result row to ``CostDetails``.

    Raises:
        CostQueryError: If the query returned no rows or an unparsable amount.
    """
    rows = getattr(result, "rows", None) or []
    if not rows:
        raise CostQueryError("No cost data available")

    columns = getattr(result, "columns", None)
    cost_index = _column_index(columns, ("totalcost", "cost"), 0)
    currency_index = _column_index(columns, ("currency",), 1)

    row = rows[0]
    try:
        total_cost = float(row[cost_index])
        currency = str(row[currency_index])
    except (IndexError, TypeError, ValueError) as exc:
        raise CostQueryError(f"Unexpected cost query row: {row!r}") from exc

    return CostDetails(total_cost=total_cost, currency=currency, timeframe=window.label)


class CostService:
    """Query actual spend for the configured resource group."""

    def __init__(
        self,
        settings: AzureSettings,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        client_factory: CostClientFactory | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._window_days = window_days
        self._client_factory = client_factory or self._open_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def is_configured(self) -> bool:
        return self._settings.cost_scope is not None

    def _create_credential(self) -> ClientSecretCredential | DefaultAzureCredential:
        settings = self._settings
        if settings.has_client_secret:
            return ClientSecretCredential(
                settings.tenant_id,
                settings.client_id,
                settings.client_secret,
            )
        return DefaultAzureCredential()

    @asynccontextmanager
    async def _open_client(self) -> AsyncIterator[CostManagementClient]:
        credential = self._create_credential()
        async with credential:
            async with CostManagementClient(credential) as client:
                yield client

    async def get_cost(self) -> CostDetails:
        """Return total actual cost over the trailing window ending now.

        The value is point-in-time telemetry: two calls may disagree.
        """
        scope = self._settings.cost_scope
        if scope is None:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)

        window = trailing_window(self._window_days, now=self._clock())
        definition = build_query_definition(window)

        try:
            async with self._client_factory() as client:
                result = await client.query.usage(scope, definition)
        except AzureError as exc:
            record_cost_query("error")
            raise CostQueryError(f"Cost query failed: {exc}") from exc

        try:
            details = parse_query_result(result, window)
        except CostQueryError:
            record_cost_query("empty")
            raise

        record_cost_query("success")
        logger.info(
            "Cost for %s: %.2f %s",
            details.timeframe,
            details.total_cost,
            details.currency,
            extra={"status": "success"},
        )
        return details
