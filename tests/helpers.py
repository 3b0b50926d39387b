"""Shared test values"""
from datetime import datetime, timezone

TENANT_ID = "tenant-a"
ACTOR_ID = "dpo@example.com"


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
