"""LocalStack fixtures for the DynamoDB template store and freelancer registry.

Run ``localstack start`` (or point PAYRECON_LOCALSTACK_URL elsewhere); the
whole module is skipped when nothing answers.
"""

from __future__ import annotations

import os
import sys

import boto3
import pytest
from botocore.exceptions import BotoCoreError, ClientError

LOCALSTACK_URL = os.environ.get("PAYRECON_LOCALSTACK_URL", "http://localhost:4566")
REGION = "us-east-1"
TABLE_SUFFIX = "-inttest"

SEED_FREELANCERS = [
    {"id": "f-jane", "full_name": "Jane Doe", "email": "jane@example.com", "status": "Approved"},
    {"id": "f-sule", "full_name": "Şule Çelik", "email": "sule@example.com", "status": "Approved"},
]


def _localstack_available() -> bool:
    try:
        boto3.client("dynamodb", region_name=REGION, endpoint_url=LOCALSTACK_URL).list_tables()
        return True
    except (BotoCoreError, ClientError):
        return False


skip_no_localstack = pytest.mark.skipif(
    not _localstack_available(),
    reason=f"LocalStack not reachable at {LOCALSTACK_URL}",
)


@pytest.fixture(scope="session")
def localstack_ddb():
    return boto3.resource("dynamodb", region_name=REGION, endpoint_url=LOCALSTACK_URL)


@pytest.fixture(scope="session")
def seeded_tables(localstack_ddb):
    """Tables created and seeded once per run by the seed script; yields the suffix."""
    sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "scripts"))
    from seed_dynamodb import create_tables, seed_default_template, seed_freelancers

    create_tables(localstack_ddb, suffix=TABLE_SUFFIX)
    seed_default_template(localstack_ddb, suffix=TABLE_SUFFIX)
    seed_freelancers(localstack_ddb, SEED_FREELANCERS, suffix=TABLE_SUFFIX)
    return TABLE_SUFFIX
