"""Tests for entity <-> document conversion.

Focus: document key naming and type restoration on decode (map keys, enums,
non-native numbers, embedded records, collection implementations).
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from entitycache.core.entity import identity, transient
from entitycache.storage import decode, encode


class Rank(Enum):
    BRONZE = "bronze"
    GOLD = "gold"


@dataclass
class Stats:
    wins: int = 0
    by_round: dict[int, int] = field(default_factory=dict)


class LockedList(list):
    """List subclass standing in for a synchronized implementation."""


@dataclass
class Profile:
    _id: str = identity(default="")
    _session: str = transient(default="")
    rank: Rank = Rank.BRONZE
    balance: Decimal = Decimal("0")
    stats: Stats = field(default_factory=Stats)
    badges: frozenset[str] = frozenset()
    history: list[str] = field(default_factory=LockedList)
    counters: defaultdict[str, int] = field(default_factory=lambda: defaultdict(int))
    avatar: bytes = b""
    nickname: str | None = None

    def id(self) -> str:
        return self._id

    def get_session(self) -> str:
        return self._session

    def set_session(self, value: str) -> None:
        self._session = value


def test_encode_uses_id_key_and_skips_transient_fields(player_cls):
    player = player_cls(_id="p1", _email="neo@x.io", _bio="hi", _version=3, level=7, tags=["a"])

    assert encode(player) == {
        "_id": "p1",
        "email": "neo@x.io",
        "bio": "hi",
        "version": 3,
        "level": 7,
        "tags": ["a"],
    }


def test_encode_converts_values_to_document_types():
    profile = Profile(
        _id="p1",
        _session="secret",
        rank=Rank.GOLD,
        balance=Decimal("12.50"),
        stats=Stats(wins=2, by_round={1: 3}),
        badges=frozenset({"x"}),
    )

    document = encode(profile)

    assert "session" not in document
    assert document["rank"] == "gold"
    assert document["balance"] == "12.50"
    assert document["stats"] == {"wins": 2, "by_round": {"1": 3}}
    assert document["badges"] == ["x"]


def test_decode_restores_declared_types():
    document = {
        "_id": "p1",
        "rank": "gold",
        "balance": "12.50",
        "stats": {"wins": 2, "by_round": {"1": 3}},
        "badges": ["x", "y"],
        "history": ["joined"],
        "counters": {"logins": 4},
        "avatar": b"\x00\x01",
        "nickname": None,
    }

    profile = decode(Profile, document)

    assert profile.id() == "p1"
    assert profile.rank is Rank.GOLD
    assert profile.balance == Decimal("12.50")
    assert profile.stats == Stats(wins=2, by_round={1: 3})
    assert profile.badges == frozenset({"x", "y"})
    assert profile.avatar == b"\x00\x01"
    assert profile.nickname is None


def test_bool_map_keys_survive_a_round_trip():
    """CRITICAL: a ``False`` key is not read back as ``True``.

    Why: keys are stored as strings, and ``bool("False")`` is truthy, which
    would silently merge both entries into one.
    """

    @dataclass
    class Toggles:
        flags: dict[bool, int] = field(default_factory=dict)

    document = encode(Toggles(flags={False: 1, True: 2}))

    assert document == {"flags": {"False": 1, "True": 2}}
    assert decode(Toggles, document).flags == {False: 1, True: 2}


def test_decode_keeps_collection_implementation_of_defaults():
    """A lock-guarded list stays one after loading.

    Why: swapping in a plain list would silently drop the synchronization the
    entity author chose.
    """
    profile = decode(Profile, {"_id": "p1", "history": ["joined"], "counters": {"logins": 4}})

    assert type(profile.history) is LockedList
    assert profile.history == ["joined"]
    assert isinstance(profile.counters, defaultdict)
    assert profile.counters["missing"] == 0


def test_decode_ignores_unknown_keys_and_keeps_defaults():
    profile = decode(Profile, {"_id": "p1", "legacy": True})

    assert profile.rank is Rank.BRONZE
    assert profile.stats == Stats()
    assert not hasattr(profile, "legacy")
