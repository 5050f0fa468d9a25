"""
DynamoDB catalog source.
Reads every item of the products table in low-level AttributeValue form.
"""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from exceptions import SourceFetchError

logger = logging.getLogger(__name__)

# Single attempt per request; a failed scan fails the run.
boto_config = Config(
    retries={"total_max_attempts": 1, "mode": "standard"},
    connect_timeout=10,
    read_timeout=60,
)


class DynamoDBCatalogSource:
    """Full-table scan of the products table."""

    def __init__(
        self,
        table_name: str,
        region: str,
        endpoint_url: Optional[str] = None,
        client=None,
    ):
        self.table_name = table_name
        self.region = region
        if client is None:
            kwargs = {"config": boto_config, "region_name": region}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("dynamodb", **kwargs)
        self.client = client

    def fetch_all_records(self) -> list[dict[str, Any]]:
        """
        Scan the whole table, following pagination.

        Returns:
            Raw items in AttributeValue form

        Raises:
            SourceFetchError: If any scan page cannot be read
        """
        records: list[dict[str, Any]] = []
        pages = 0
        try:
            paginator = self.client.get_paginator("scan")
            for page in paginator.paginate(TableName=self.table_name):
                records.extend(page.get("Items", []))
                pages += 1
        except (ClientError, BotoCoreError) as e:
            raise SourceFetchError(
                message=f"Failed to scan table {self.table_name}: {e}",
                table_name=self.table_name,
                original_exception=e,
            )

        logger.info(
            f"Fetched {len(records)} records from {self.table_name}",
            extra={
                "table_name": self.table_name,
                "metrics": {"record_count": len(records), "page_count": pages},
            },
        )
        return records
