"""Fixtures for live API tests.

These tests require real API credentials set via environment variables:
- B2_APPLICATION_KEY_ID: application key id (or account id)
- B2_APPLICATION_KEY: application key
"""

import os
import uuid
from collections.abc import Generator

import pytest

from b2client import B2Client, B2Error, Bucket


def has_b2_credentials() -> bool:
    """Check if B2 credentials are available."""
    return bool(os.getenv("B2_APPLICATION_KEY_ID") and os.getenv("B2_APPLICATION_KEY"))


@pytest.fixture
def live_client() -> Generator[B2Client, None, None]:
    if not has_b2_credentials():
        pytest.skip("Requires B2_APPLICATION_KEY_ID and B2_APPLICATION_KEY environment variables")
    with B2Client() as client:
        yield client


@pytest.fixture
def live_bucket(live_client: B2Client) -> Generator[Bucket, None, None]:
    """A private bucket that is emptied and deleted after the test."""
    bucket = live_client.create_bucket(f"b2client-test-{uuid.uuid4().hex[:16]}")
    try:
        yield bucket
    finally:
        try:
            for file in live_client.list_files(bucket_id=bucket.id):
                live_client.delete_file(file.id, file.name)
            live_client.delete_bucket(bucket_id=bucket.id)
        except B2Error as exc:
            print(f"Cleanup failed for bucket {bucket.name}: {exc}")
