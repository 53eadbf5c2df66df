"""
Raw record feed loaders.

Two ways to obtain a RecordSnapshot:
- SupabaseRecordSource: async client for the Supabase REST (PostgREST)
  tables ``sales_records`` and ``uber_ads_metrics``.
- load_snapshot_csv: pandas loader for CSV exports, used offline and in
  fixtures.

A fetch either returns the whole feed or raises DataFetchError. There is
no retry and no partial snapshot.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx
import pandas as pd

from salesboard.config import config
from salesboard.exceptions import DataFetchError, FeedSchemaError
from salesboard.models import RecordSnapshot
from salesboard.observability import Timer, get_correlation_id, get_logger

logger = get_logger(__name__)

# Each tuple lists accepted aliases for one required column
SALES_COLUMNS = (("month", "period"), ("region",), ("revenue",), ("orders",))
AD_COLUMNS = (("month_date", "period", "month"), ("region",), ("store_name", "store"))


def check_columns(columns: Iterable[str], required: Sequence[Sequence[str]], source: str) -> None:
    """
    Raise FeedSchemaError when a required column (or all its aliases) is missing.
    """
    present = set(columns)
    missing = [aliases[0] for aliases in required if not present.intersection(aliases)]
    if missing:
        raise FeedSchemaError(
            f"Feed '{source}' is missing required columns",
            details=", ".join(missing),
            missing=missing,
        )


class SupabaseRecordSource:
    """
    Async client for the Supabase REST feed.

    Usage:
        async with SupabaseRecordSource() as source:
            snapshot = await source.fetch_snapshot()
    """

    def __init__(
        self,
        url: str = None,
        key: str = None,
        page_size: int = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the feed client.

        Args:
            url: Supabase project URL (defaults to SUPABASE_URL)
            key: Supabase API key (defaults to SUPABASE_KEY)
            page_size: Rows requested per page
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        settings = config.datasource
        self.url = (url or settings.url).rstrip("/")
        self.key = key or settings.key
        self.page_size = page_size or settings.page_size
        self.timeout = timeout or settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not self.url:
            raise ValueError("SUPABASE_URL is required")
        if not self.key:
            raise ValueError("SUPABASE_KEY is required")

    @property
    def headers(self) -> Dict[str, str]:
        """Request headers with auth."""
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.url}/rest/v1",
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SupabaseRecordSource":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_page(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not self._client:
            await self.connect()

        request_headers = {}
        correlation_id = get_correlation_id()
        if correlation_id:
            request_headers["X-Request-ID"] = correlation_id

        try:
            response = await self._client.get(f"/{table}", params=params, headers=request_headers or None)
        except httpx.TimeoutException as e:
            logger.error(f"Feed request timeout: {table}", extra={"table": table, "timeout": self.timeout})
            raise DataFetchError(f"Request timeout after {self.timeout}s", source=table) from e
        except httpx.RequestError as e:
            logger.error(f"Feed request failed: {table} - {e}", extra={"table": table})
            raise DataFetchError("Feed request failed", details=str(e), source=table) from e

        if response.status_code >= 400:
            error_text = response.text[:500]
            logger.error(
                f"Feed error {response.status_code}: {error_text}",
                extra={"table": table, "status_code": response.status_code},
            )
            raise DataFetchError(
                f"Feed returned {response.status_code}",
                details=error_text,
                status_code=response.status_code,
                source=table,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DataFetchError("Feed returned invalid JSON", source=table) from e
        if not isinstance(payload, list):
            raise DataFetchError(
                "Unexpected feed payload",
                details=f"expected list, got {type(payload).__name__}",
                source=table,
            )
        return payload

    async def fetch_table(
        self,
        table: str,
        columns: str = "*",
        order: Optional[str] = None,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every row of a table, page by page.

        Args:
            table: Table name
            columns: PostgREST select list
            order: Order clause, e.g. "month.asc"
            filters: Extra PostgREST filters, e.g. {"region": "eq.BC"}

        Returns:
            All rows as dicts
        """
        rows: List[Dict[str, Any]] = []
        offset = 0
        with Timer(table, logger):
            while True:
                params: Dict[str, Any] = {"select": columns, "limit": self.page_size, "offset": offset}
                if order:
                    params["order"] = order
                params.update(filters or {})

                page = await self._get_page(table, params)
                rows.extend(page)
                if len(page) < self.page_size:
                    break
                offset += self.page_size

        logger.info(f"Fetched {len(rows)} rows from {table}", extra={"table": table, "rows": len(rows)})
        return rows

    async def fetch_sales_records(self) -> List[Dict[str, Any]]:
        rows = await self.fetch_table(config.datasource.sales_table, order="month.asc")
        if rows:
            check_columns(rows[0].keys(), SALES_COLUMNS, config.datasource.sales_table)
        return rows

    async def fetch_ad_metrics(self) -> List[Dict[str, Any]]:
        rows = await self.fetch_table(config.datasource.ads_table, order="store_name.asc")
        if rows:
            check_columns(rows[0].keys(), AD_COLUMNS, config.datasource.ads_table)
        return rows

    async def fetch_snapshot(self) -> RecordSnapshot:
        """Fetch both feeds and freeze them into a snapshot."""
        sales = await self.fetch_sales_records()
        ads = await self.fetch_ad_metrics() if config.datasource.ads_table else []
        return RecordSnapshot.from_feed(sales, ads)


# ═══════════════════════════════════════════════════════════════════════════════
# CSV
# ═══════════════════════════════════════════════════════════════════════════════

def _read_csv(path: str, required: Sequence[Sequence[str]]) -> List[Dict[str, Any]]:
    try:
        df = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataFetchError("Could not read CSV feed", details=str(e), source=path) from e

    df.columns = df.columns.str.strip()
    check_columns(df.columns, required, path)
    # NaN cells become None so records see "absent" rather than a float NaN
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict("records")


def load_snapshot_csv(sales_path: str, ads_path: Optional[str] = None) -> RecordSnapshot:
    """
    Load a snapshot from CSV exports of the two feeds.

    Raises:
        DataFetchError: File missing or unreadable
        FeedSchemaError: Required columns missing
    """
    with Timer("load_snapshot_csv", logger):
        sales = _read_csv(sales_path, SALES_COLUMNS)
        ads = _read_csv(ads_path, AD_COLUMNS) if ads_path else []
    logger.info(
        "Loaded CSV snapshot",
        extra={"sales_rows": len(sales), "ad_rows": len(ads)},
    )
    return RecordSnapshot.from_feed(sales, ads)


async def fetch_snapshot() -> RecordSnapshot:
    """Fetch a snapshot from whichever feed the configuration selects."""
    settings = config.datasource
    if settings.use_csv:
        return load_snapshot_csv(settings.sales_csv, settings.ads_csv)
    async with SupabaseRecordSource() as source:
        return await source.fetch_snapshot()
