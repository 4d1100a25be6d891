"""Unit tests for record JSON encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
import json

import pytest

from core.errors import RecordCodecError
from store.record_codec import check_record_type, decode_record, encode_record
from store.record_schema import id_field


@dataclass
class Address:
    city: str = ""
    postcode: str | None = None


@dataclass
class Team:
    id: int = id_field()
    name: str = ""
    address: Address = field(default_factory=Address)
    tags: list[str] = field(default_factory=list)
    rank: float | None = None


def test_encode_record_sorts_keys() -> None:
    """Encoding should be deterministic JSON with sorted keys."""
    payload = encode_record(Team(id=3, name="a"))

    assert list(json.loads(payload)) == ["address", "id", "name", "rank", "tags"]


def test_decode_record_rebuilds_nested_dataclasses() -> None:
    """Nested dataclass fields should decode back to their types."""
    team = Team(id=5, name="b", address=Address(city="San Jose"), tags=["x"], rank=1.5)

    decoded = decode_record(encode_record(team), Team)

    assert decoded == team and isinstance(decoded.address, Address)


@dataclass
class Roster:
    id: int = id_field()
    captain: Address | None = None
    stops: list[Address] = field(default_factory=list)


def test_decode_record_rebuilds_optional_and_listed_dataclasses() -> None:
    """Dataclasses inside optionals and lists should decode to their types."""
    roster = Roster(id=2, captain=Address(city="Fresno"), stops=[Address(city="Davis")])

    decoded = decode_record(encode_record(roster), Roster)

    assert decoded == roster
    assert isinstance(decoded.captain, Address) and isinstance(decoded.stops[0], Address)


def test_decode_record_uses_defaults_for_missing_fields() -> None:
    """Fields absent from the payload should take their defaults."""
    decoded = decode_record(b'{"id": 9}', Team)

    assert decoded == Team(id=9)


def test_encode_record_rejects_unserializable_values() -> None:
    """Values that are not JSON types should fail encoding."""
    with pytest.raises(RecordCodecError):
        encode_record(Team(tags=[object()]))  # type: ignore[list-item]


def test_encode_record_rejects_non_dataclass() -> None:
    """Only dataclass instances can be encoded."""
    with pytest.raises(RecordCodecError):
        encode_record({"id": 1})


@pytest.mark.parametrize("payload", [b"not json", b"[1, 2]", b'{"unknown": 1}', b"\xff"])
def test_decode_record_rejects_corrupt_payloads(payload: bytes) -> None:
    """Corrupt or mismatched payloads should fail decoding."""
    with pytest.raises(RecordCodecError):
        decode_record(payload, Team)


@dataclass
class Schedule:
    id: int = id_field()
    by_station: dict[str, Address] = field(default_factory=dict)
    scores: dict[int, int] = field(default_factory=dict)
    pair: tuple[int, int] = (0, 0)
    history: tuple[Address, ...] = ()
    notes: dict = field(default_factory=dict)


@dataclass
class Venue:
    name: str = ""


@dataclass
class Ambiguous:
    id: int = id_field()
    location: Address | Venue | None = None


@dataclass
class FloatKeyed:
    id: int = id_field()
    weights: dict[float, int] = field(default_factory=dict)


@dataclass
class Tagged:
    id: int = id_field()
    tags: set[str] = field(default_factory=set)


@dataclass
class Dangling:
    id: int = id_field()
    link: MissingType | None = None  # type: ignore[name-defined]  # noqa: F821


def test_decode_record_rebuilds_dicts_and_tuples() -> None:
    """Dict values, int keys and tuples should decode to their declared types."""
    schedule = Schedule(
        id=4,
        by_station={"R1": Address(city="San Jose")},
        scores={1: 2, 10: 3},
        pair=(1, 2),
        history=(Address(city="Davis"), Address(city="Reno")),
        notes={"shift": [1, 2]},
    )

    decoded = decode_record(encode_record(schedule), Schedule)

    assert decoded == schedule
    assert isinstance(decoded.by_station["R1"], Address)
    assert isinstance(decoded.pair, tuple) and isinstance(decoded.history[0], Address)


def test_decode_record_rejects_tuple_length_mismatch() -> None:
    """A stored array that does not fit a fixed tuple should fail decoding."""
    with pytest.raises(RecordCodecError, match="expected 2 items"):
        decode_record(b'{"id": 1, "pair": [1, 2, 3]}', Schedule)


def test_decode_record_rejects_non_integer_dict_keys() -> None:
    """Keys of an int-keyed dict must parse back as ints."""
    with pytest.raises(RecordCodecError):
        decode_record(b'{"id": 1, "scores": {"one": 1}}', Schedule)


def test_check_record_type_accepts_round_trippable_fields() -> None:
    """Supported annotations should pass the registration check."""
    check_record_type(Schedule)
    check_record_type(Team)


@pytest.mark.parametrize("record_type", [Ambiguous, FloatKeyed, Tagged])
def test_check_record_type_rejects_lossy_fields(record_type: type) -> None:
    """Annotations that cannot decode back exactly should be rejected."""
    with pytest.raises(RecordCodecError):
        check_record_type(record_type)


def test_unresolvable_annotation_raises_codec_error() -> None:
    """A field type that cannot be resolved should surface as RecordCodecError."""
    with pytest.raises(RecordCodecError, match="resolve field types"):
        check_record_type(Dangling)
    with pytest.raises(RecordCodecError, match="resolve field types"):
        decode_record(b'{"id": 1}', Dangling)
