"""
Unit tests for the in-memory LinkRegistry.

Covers:
    - URL validation (valid/invalid)
    - custom code validation, reservation and duplicates
    - generated codes and collision retry, including exhaustion
    - sequential codes after a counter restart
    - lookups by id and short code, creation order, copy semantics
    - active flag and click counter
"""

import pytest

from linktrack.errors import CapacityError, DuplicateCodeError, InvalidCodeError, InvalidUrlError
from linktrack.manager.strategies import BaseStrategy, SequentialStrategy
from linktrack.storage.registry import LinkRegistry


class ScriptedStrategy(BaseStrategy):
    """Returns codes from a fixed list, repeating the last one forever."""

    def __init__(self, codes):
        self.codes = list(codes)
        self.attempts = []

    def generate(self, seed, *, length=None, attempt=0):
        self.attempts.append(attempt)
        return self.codes[min(attempt, len(self.codes) - 1)]


@pytest.mark.parametrize(
    "url,is_valid",
    [
        ("https://example.com", True),
        ("http://example.com/path?q=1", True),
        ("ftp://bad.example.com", False),
        ("not-a-url", False),
        ("https:///missing-host", False),
        ("https://", False),
        ("", False),
        ("javascript:alert(1)", False),
    ],
)
def test_create_link_validates_url(registry, url, is_valid):
    if is_valid:
        link = registry.create_link(url)
        assert link.original_url == url
    else:
        with pytest.raises(InvalidUrlError, match="Invalid URL format"):
            registry.create_link(url)
        assert registry.count() == 0


def test_create_link_defaults(registry):
    link = registry.create_link("https://example.com", title="Home", description="")
    assert len(link.short_code) == 6
    assert link.click_count == 0
    assert link.is_active is True
    assert link.title == "Home"
    assert link.description is None
    assert link.created_at.tzinfo is not None


def test_create_then_lookup_by_short_code_returns_same_link(registry):
    link = registry.create_link("https://example.com/a")
    assert registry.get_link_by_short_code(link.short_code) == link
    assert registry.get_link(link.id) == link


@pytest.mark.parametrize("code", ["OK123", "aBc009", "Z", "9" * 32])
def test_custom_code_accepted(registry, code):
    assert registry.create_link("https://example.com", short_code=code).short_code == code


@pytest.mark.parametrize("code", ["bad-code", "has space", "123*!", "a" * 33])
def test_custom_code_rejected(registry, code):
    with pytest.raises(InvalidCodeError):
        registry.create_link("https://example.com", short_code=code)


def test_duplicate_custom_code_raises_and_keeps_original(registry):
    first = registry.create_link("https://one.com", short_code="promo")
    with pytest.raises(DuplicateCodeError, match="Custom code already exists"):
        registry.create_link("https://two.com", short_code="promo")
    assert registry.count() == 1
    assert registry.get_link_by_short_code("promo").id == first.id


def test_generated_code_retries_on_collision(registry):
    registry.create_link("https://one.com", short_code="taken1")
    strategy = ScriptedStrategy(["taken1", "taken1", "free01"])
    registry.code_strategy = strategy

    link = registry.create_link("https://two.com")
    assert link.short_code == "free01"
    assert strategy.attempts == [0, 1, 2]


def test_generated_code_gives_up_after_max_attempts():
    reg = LinkRegistry(code_strategy=ScriptedStrategy(["same00"]), max_attempts=3)
    reg.create_link("https://one.com")
    with pytest.raises(CapacityError):
        reg.create_link("https://two.com")
    assert reg.count() == 1


def test_sequential_codes_walk_past_stored_codes_after_restart():
    reg = LinkRegistry(code_strategy=SequentialStrategy(start=0), max_attempts=10)
    for i in range(12):
        reg.create_link(f"https://example.com/{i}")
    assert reg.get_link_by_short_code("00000b") is not None

    # same storage, counter starts over
    reg.code_strategy = SequentialStrategy(start=0)
    link = reg.create_link("https://y.com")
    assert link.short_code == "00000c"
    assert reg.count() == 13


def test_lookups_missing_return_none(registry):
    assert registry.get_link("nope") is None
    assert registry.get_link_by_short_code("nope") is None


def test_get_all_links_creation_order_and_idempotent(registry):
    ids = [registry.create_link(f"https://example.com/{i}").id for i in range(5)]
    first = registry.get_all_links()
    second = registry.get_all_links()
    assert [link.id for link in first] == ids
    assert first == second


def test_returned_links_are_copies(registry):
    link = registry.create_link("https://example.com")
    link.is_active = False
    link.click_count = 99
    stored = registry.get_link(link.id)
    assert stored.is_active is True
    assert stored.click_count == 0


def test_set_active_and_increment(registry):
    link = registry.create_link("https://example.com")
    assert registry.set_active(link.id, False) is True
    assert registry.get_link(link.id).is_active is False
    assert registry.increment_clicks(link.id) is True
    assert registry.get_link(link.id).click_count == 1


def test_set_active_and_increment_missing(registry):
    assert registry.set_active("missing", True) is False
    assert registry.increment_clicks("missing") is False
