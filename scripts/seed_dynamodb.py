"""Create the payrecon DynamoDB tables and seed the default TBMS mapping template.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
    python scripts/seed_dynamodb.py --freelancers-file freelancers.json
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import boto3

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {"name": "payrecon-mapping-templates"},
    {"name": "payrecon-freelancers"},
]

DEFAULT_TEMPLATE_ID = "tbms-export-format"

# Column names written by the TBMS invoice export.
TBMS_MAPPING: dict[str, str] = {
    "invoiceCode": "InvoiceCode",
    "resource": "Resource",
    "status": "Status",
    "totalCost": "TotalCost",
    "currency": "Currency",
    "vat": "VAT",
    "dateSent": "DateSent",
    "datePaid": "DatePaid",
    "description": "Description",
    "project": "Project",
    "sourceLanguage": "SourceLanguage",
    "targetLanguage": "TargetLanguage",
    "wordCount": "WordCount",
    "rate": "Rate",
    "service": "Service",
}


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create both DynamoDB tables. Skips if table already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"  Created table {table_name}")


def seed_default_template(ddb: Any, suffix: str = "") -> None:
    """Put the 'TBMS Export Format' template, flagged as the default."""
    tbl = ddb.Table(f"payrecon-mapping-templates{suffix}")
    tbl.put_item(Item={
        "PK": "TEMPLATES",
        "SK": f"TEMPLATE#{DEFAULT_TEMPLATE_ID}",
        "id": DEFAULT_TEMPLATE_ID,
        "name": "TBMS Export Format",
        "description": "Standard TBMS invoice export columns",
        "column_mappings": TBMS_MAPPING,
        "default_service_type": "Translation",
        "default_units_type": "Words",
        "default_currency": "USD",
        "is_default": True,
        "created_date": datetime.now(timezone.utc).isoformat(),
    })
    print("  Seeded default mapping template")


def seed_freelancers(ddb: Any, freelancers: list[dict[str, Any]], suffix: str = "") -> int:
    """Load freelancer entities (snake_case attributes, ``id`` required)."""
    tbl = ddb.Table(f"payrecon-freelancers{suffix}")
    count = 0
    with tbl.batch_writer() as batch:
        for freelancer in freelancers:
            if not freelancer.get("id"):
                continue
            batch.put_item(Item={
                "PK": "FREELANCERS",
                "SK": f"FREELANCER#{freelancer['id']}",
                **freelancer,
            })
            count += 1
    print(f"  Seeded {count} freelancers")
    return count


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for payrecon")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    parser.add_argument("--freelancers-file", default=None, help="JSON list of freelancer records")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding data...")
    seed_default_template(ddb, suffix=args.table_suffix)
    if args.freelancers_file:
        freelancers = json.loads(Path(args.freelancers_file).read_text(encoding="utf-8"))
        seed_freelancers(ddb, freelancers, suffix=args.table_suffix)

    print("Done!")


if __name__ == "__main__":
    main()
