"""Resolve which user the dashboard is acting for and open their store."""

from __future__ import annotations

import random
import string
from typing import Any

import boto3

from . import dynamo
from .config import Settings
from .dynamo import REMOTE_ERRORS
from .logging_setup import get_logger
from .storage import LOCAL_USER_ID_KEY, LocalKeyValueStore, TransactionStore

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _random_suffix(length: int = 7) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def local_user_id(local: LocalKeyValueStore) -> str:
    """Return the persisted anonymous local id, creating it on first use."""

    uid = local.get_item(LOCAL_USER_ID_KEY) or f"local-{_random_suffix()}"
    local.set_item(LOCAL_USER_ID_KEY, uid)
    return uid


def resolve_user_id(
    settings: Settings,
    local: LocalKeyValueStore,
    sts_client: Any | None = None,
) -> str:
    """Pick the configured identity, the AWS caller identity, or a local id."""

    if not settings.remote_enabled:
        return local_user_id(local)

    if settings.user_id:
        return settings.user_id

    try:
        client = sts_client or boto3.client("sts", region_name=settings.aws_region)
        identity = client.get_caller_identity()
        uid = identity.get("UserId")
        if not uid:
            raise ValueError("caller identity has no UserId")
        return str(uid)
    except (*REMOTE_ERRORS, ValueError) as exc:
        logger.warning("Remote auth failed, using local identity: %s", exc)
        return local_user_id(local)


def open_store(settings: Settings, sts_client: Any | None = None) -> TransactionStore:
    """Resolve the user, connect the remote collection if any, and load."""

    local = LocalKeyValueStore(settings.local_store_path)
    user_id = resolve_user_id(settings, local, sts_client=sts_client)
    store = TransactionStore(user_id, local, remote=dynamo.connect(settings, user_id))
    store.load()
    return store
