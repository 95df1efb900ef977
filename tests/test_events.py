"""Tests for the event model."""

from datetime import datetime, timedelta, timezone

import pytest

from plantrack.core.errors import InvalidFormatError
from plantrack.core.events import Event, find_event, make_summary, parse_label, sort_events_by_start


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 3, 16, hour, minute, tzinfo=timezone.utc)


class TestParseLabel:
    def test_splits_and_trims(self):
        assert parse_label(" Acme : backend ") == ("Acme", "backend")

    def test_splits_on_first_colon_only(self):
        assert parse_label("Acme:api:v2") == ("Acme", "api:v2")

    @pytest.mark.parametrize("label", ["Acme", ":backend", "Acme:", "  :  "])
    def test_rejects_malformed(self, label):
        with pytest.raises(InvalidFormatError):
            parse_label(label)

    def test_make_summary(self):
        assert make_summary("Acme :  backend") == "Acme:backend"


class TestEvent:
    def test_create_mints_id_and_normalizes_label(self):
        event = Event.create(" Acme: dev ", at(9), at(10))
        assert event.summary == "Acme:dev"
        assert event.id
        assert Event.create("Acme:dev", at(9), at(10)).id != event.id

    def test_rejects_empty_range(self):
        with pytest.raises(InvalidFormatError):
            Event(id="1", start=at(10), end=at(10), summary="A:B")

    def test_rejects_inverted_range(self):
        with pytest.raises(InvalidFormatError):
            Event(id="1", start=at(11), end=at(10), summary="A:B")

    def test_empty_note_and_location_become_none(self):
        event = Event(id="1", start=at(9), end=at(10), summary="A:B", note="  ", location="")
        assert event.note is None
        assert event.location is None

    def test_note_and_location_text_kept_verbatim(self):
        event = Event(id="1", start=at(9), end=at(10), summary="A:B", note="  indented\n", location=" Room 4 ")
        assert event.note == "  indented\n"
        assert event.location == " Room 4 "

    def test_project_and_task(self):
        event = Event(id="1", start=at(9), end=at(10), summary="Acme:api:v2")
        assert event.project == "Acme"
        assert event.task == "api:v2"

    def test_duration(self):
        event = Event(id="1", start=at(9), end=at(10, 30), summary="A:B")
        assert event.duration == timedelta(minutes=90)
        assert event.duration_minutes() == 90

    def test_overlaps_is_strict(self):
        event = Event(id="1", start=at(9), end=at(10), summary="A:B")
        assert event.overlaps(at(9, 30), at(11)) is True
        assert event.overlaps(at(8), at(9, 1)) is True
        assert event.overlaps(at(10), at(11)) is False  # Adjacent, not overlapping
        assert event.overlaps(at(8), at(9)) is False

    def test_contains(self):
        event = Event(id="1", start=at(9), end=at(10), summary="A:B")
        assert event.contains(at(9)) is True
        assert event.contains(at(9, 59)) is True
        assert event.contains(at(10)) is False

    def test_attribute_key_ignores_time_and_id(self):
        a = Event(id="1", start=at(9), end=at(10), summary="A:B", note="n", booked=True)
        b = Event(id="2", start=at(11), end=at(12), summary="A:B", note="n", booked=True)
        assert a.attribute_key() == b.attribute_key()

    def test_with_range_keeps_attributes(self):
        event = Event(id="1", start=at(9), end=at(12), summary="A:B", location="Office", booked=True)
        part = event.with_range(at(9), at(10), "2")
        assert part.id == "2"
        assert part.location == "Office"
        assert part.booked is True
        assert part.end == at(10)

    def test_format_for_diff(self):
        event = Event(id="abc", start=at(9), end=at(10, 30), summary="A:B")
        assert event.format_for_diff() == "2024-03-16 09:00 - 10:30 A:B (abc)"


class TestHelpers:
    def test_sort_is_stable_on_ties(self):
        a = Event(id="a", start=at(9), end=at(10), summary="A:B")
        b = Event(id="b", start=at(9), end=at(11), summary="A:C")
        c = Event(id="c", start=at(8), end=at(9), summary="A:D")
        assert [e.id for e in sort_events_by_start([a, b, c])] == ["c", "a", "b"]
        assert [e.id for e in sort_events_by_start([b, a, c])] == ["c", "b", "a"]

    def test_find_event(self):
        a = Event(id="a", start=at(9), end=at(10), summary="A:B")
        assert find_event([a], "a") is a
        assert find_event([a], "missing") is None
