"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

Centralizes selection of the storage backend (in-memory vs PostgreSQL) so the
rest of the app stays ignorant of where links and events live.

- Reads the environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- LINKTRACK_STORAGE_BACKEND: "memory" (default) or "postgres"
- LINKTRACK_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional, Tuple

from linktrack.storage.base import BaseEventLog, BaseLinkRegistry
from linktrack.storage.event_log import EventLog
from linktrack.storage.registry import LinkRegistry

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> Tuple[BaseLinkRegistry, BaseEventLog]:
    """
    Return a (link registry, event log) pair for the configured backend.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads LINKTRACK_STORAGE_BACKEND.
    kwargs : dict
        `dsn` for postgres; any other keyword (code_strategy, code_length,
        max_attempts) is passed to the registry constructor.
    """
    be = (backend or os.getenv("LINKTRACK_STORAGE_BACKEND", "memory")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        kwargs.pop("dsn", None)
        return LinkRegistry(**kwargs), EventLog()

    if be == "postgres":
        dsn = kwargs.pop("dsn", None) or os.getenv("LINKTRACK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env LINKTRACK_DB_DSN)")
        # Local import to avoid a hard dependency when not using postgres
        from linktrack.storage.db_storage import DBEventLog, DBLinkRegistry

        return DBLinkRegistry(dsn=dsn, **kwargs), DBEventLog(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
