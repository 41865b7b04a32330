"""
Base storage interfaces for LinkTrack.

Purpose:
    Define the two logical stores (link registry and event log) as narrow
    contracts that multiple backends (in-memory, PostgreSQL) implement without
    requiring changes to the manager or analytics code.

Shared behaviour:
    `BaseLinkRegistry.create_link` owns validation and the bounded short-code
    reservation loop. Backends only supply `_reserve`, a single atomic
    "insert if the short code is free" step, so check-then-act can never race.

Testing & Coverage:
    Abstract declarations are annotated with `# pragma: no cover`.

LLM Prompt Example:
    "Show how a template method on an abstract storage class keeps retry and
    validation rules in one place while each backend provides only the atomic
    compare-and-insert primitive."
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from linktrack.config import settings
from linktrack.errors import CapacityError, DuplicateCodeError
from linktrack.manager.strategies import BaseStrategy, get_strategy_from_config
from linktrack.models import TrackingEvent, TrackingLink, new_id, utcnow
from linktrack.validators import validate_code, validate_url

log = logging.getLogger(__name__)


class BaseLinkRegistry(ABC):
    """Owns tracking links and the unique short-code index."""

    def __init__(
        self,
        code_strategy: Optional[BaseStrategy] = None,
        code_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        self.code_strategy = code_strategy or get_strategy_from_config()
        self.code_length = code_length or settings.CODE_LENGTH
        self.max_attempts = max_attempts or settings.CODE_MAX_ATTEMPTS

    # ------------------------------------------------------------------
    # Template method
    # ------------------------------------------------------------------
    def create_link(
        self,
        original_url: str,
        short_code: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TrackingLink:
        """
        Create and store a new link.

        Rules:
            - `original_url` must be an absolute http(s) URL.
            - An explicit `short_code` is validated and reserved as-is; if it is
              taken the call fails, no substitute is chosen.
            - Without `short_code`, candidates from the code strategy are reserved
              until one is free, at most `max_attempts` times. Counter-based
              strategies walk past stored codes without using up attempts.

        Raises:
            InvalidUrlError, InvalidCodeError, DuplicateCodeError, CapacityError
        """
        validate_url(original_url)
        link = TrackingLink(
            id=new_id(),
            original_url=original_url.strip(),
            short_code="",
            title=title or None,
            description=description or None,
            created_at=utcnow(),
        )

        if short_code:
            validate_code(short_code)
            link.short_code = short_code
            if not self._reserve(link):
                raise DuplicateCodeError()
            log.info("Created link %s with custom code %s", link.id, short_code)
            return self._copy(link)

        attempt = 0
        skipped = 0
        while attempt < self.max_attempts:
            link.short_code = self.code_strategy.generate(
                link.original_url, length=self.code_length, attempt=attempt
            )
            if self._reserve(link):
                if skipped:
                    log.info("Skipped %d stored codes before %s", skipped, link.short_code)
                log.info("Created link %s with code %s", link.id, link.short_code)
                return self._copy(link)
            if self.code_strategy.skips_taken:
                skipped += 1
                continue
            attempt += 1
            log.warning("Short code collision on %s (attempt %d)", link.short_code, attempt)

        raise CapacityError(f"No free short code after {self.max_attempts} attempts")

    @staticmethod
    def _copy(link: TrackingLink) -> TrackingLink:
        return TrackingLink(**vars(link))

    # ------------------------------------------------------------------
    # Backend contract
    # ------------------------------------------------------------------
    @abstractmethod  # pragma: no cover
    def _reserve(self, link: TrackingLink) -> bool:
        """
        Insert `link` if its short code is free, as one atomic step.

        Returns:
            bool: True if inserted, False if the code was already taken.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link(self, link_id: str) -> Optional[TrackingLink]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link_by_short_code(self, code: str) -> Optional[TrackingLink]:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_all_links(self) -> List[TrackingLink]:
        """All links in creation order."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def set_active(self, link_id: str, active: bool) -> bool:
        """Toggle `is_active`. Returns False if the link does not exist."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_clicks(self, link_id: str) -> bool:
        """
        Atomically add one to the cached click counter.

        Returns:
            bool: False if the link does not exist.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count(self) -> int:
        raise NotImplementedError


class BaseEventLog(ABC):
    """Append-only log of click events."""

    @abstractmethod  # pragma: no cover
    def add_event(self, event: TrackingEvent) -> None:
        """
        Append an event. The caller guarantees the link exists and is active;
        the log accepts any well-formed event.
        """
        raise NotImplementedError

    def append_click(self, event: TrackingEvent, registry: BaseLinkRegistry) -> None:
        """
        Append a click event and bump its link's cached counter.

        In-process backends rely on the caller's write lock to make the two
        writes one step. Shared backends override this to do both in a single
        transaction that also re-checks the link is active.

        Raises:
            LinkInactiveError: the link was deactivated before the append.
        """
        self.add_event(event)
        registry.increment_clicks(event.link_id)

    @abstractmethod  # pragma: no cover
    def get_events(self, link_id: Optional[str] = None) -> List[TrackingEvent]:
        """Events in insertion order, optionally only those of one link."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count(self, link_id: Optional[str] = None) -> int:
        raise NotImplementedError
