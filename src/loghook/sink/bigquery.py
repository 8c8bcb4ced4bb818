"""BigQuery streaming-insert sink.

Each event becomes one `tabledata.insertAll` call carrying a single
row. The row's insertId is the deduplication key: BigQuery drops rows
whose insertId it has already seen recently, so a sender that retries
the same body does not produce a second row.

insertAll answers 200 even when rows fail; per-row failures come back
in `insertErrors` and count as a rejection here.
"""

from __future__ import annotations

import json
import logging
from urllib.parse import quote

import httpx

from loghook.models.credentials import BearerToken
from loghook.models.events import InsertRecord, InsertResult

logger = logging.getLogger("loghook.sink.bigquery")


class RowInserter:
    """Submits single-row batches to one BigQuery table."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        project_id: str,
        dataset: str,
        table: str,
        timeout: float = 10.0,
    ):
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.dataset = dataset
        self.table = table
        self.timeout = timeout

    @property
    def insert_url(self) -> str:
        return (
            f"{self.base_url}/projects/{quote(self.project_id, safe='')}"
            f"/datasets/{quote(self.dataset, safe='')}"
            f"/tables/{quote(self.table, safe='')}/insertAll"
        )

    async def insert(self, record: InsertRecord, token: BearerToken) -> InsertResult:
        """Insert one row. Exactly one attempt, never raises for sink failures."""
        body = {"rows": [record.to_row()]}
        try:
            resp = await self._client.post(
                self.insert_url,
                json=body,
                headers={"Authorization": token.authorization},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(
                "BigQuery insert exception: %s",
                e,
                extra={"insert_id": record.insert_id},
            )
            return InsertResult.rejected(f"BigQuery request failed: {type(e).__name__}")

        if not resp.is_success:
            text = resp.text
            logger.error(
                "BigQuery HTTP error %d: %s",
                resp.status_code,
                text,
                extra={"insert_id": record.insert_id, "upstream_status": resp.status_code},
            )
            return InsertResult.rejected(f"BigQuery HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            logger.error(
                "BigQuery returned a non-JSON body",
                extra={"insert_id": record.insert_id},
            )
            return InsertResult.rejected("BigQuery returned a non-JSON response")

        insert_errors = data.get("insertErrors") if isinstance(data, dict) else None
        if insert_errors:
            details = json.dumps(insert_errors)
            logger.error(
                "BigQuery insertErrors: %s",
                details,
                extra={"insert_id": record.insert_id},
            )
            return InsertResult.rejected(details)

        logger.debug("Row accepted", extra={"insert_id": record.insert_id})
        return InsertResult.ok()
