"""Tests for reading and history text."""
from datetime import datetime, timezone

from taro.formatter import ReadingFormatter
from taro.models import Card, DrawnCard, Orientation, Reading, ReadingRecord, Slot
from taro.spreads import SPREAD_INFO, SpreadKind


def reading_for(spread, labels, question="Love?"):
    slots = tuple(
        Slot(
            label,
            DrawnCard(
                Card(i, f"Card {i}", "Major", f"Meaning {i}"),
                Orientation.REVERSED if i % 2 else Orientation.UPRIGHT,
            ),
        )
        for i, label in enumerate(labels)
    )
    return Reading(spread, question, "1", slots, datetime(2024, 5, 1, tzinfo=timezone.utc))


class TestFormatReading:
    def test_generic_spread_uses_labels(self):
        text = ReadingFormatter().format_reading(reading_for("three", ["Past", "Present", "Future"]))

        assert text.startswith("🔮 <b>Three Card Spread</b> - Love?")
        assert "<b>Past</b>: Card 0 (Upright)" in text
        assert "<b>Present</b>: Card 1 (Reversed)" in text
        assert "<i>Meaning 2</i>" in text
        assert text.endswith("Question: Love?")

    def test_horseshoe_uses_role_headings_by_index(self):
        labels = ["a", "b", "c", "d", "e", "f", "g"]
        text = ReadingFormatter().format_reading(reading_for("horse", labels))

        roles = SPREAD_INFO[SpreadKind.HORSE].roles
        positions = [text.index(f"<b>{role}</b>\nCard {i} ") for i, role in enumerate(roles)]
        assert positions == sorted(positions)
        # label text is not used when a role template applies
        assert "<b>a</b>" not in text

    def test_two_choices_template(self):
        text = ReadingFormatter().format_reading(reading_for("nitaku", [str(i) for i in range(8)]))

        assert "<b>💡 Advice</b>\nCard 7 (Reversed)" in text

    def test_template_needs_matching_slot_count(self):
        text = ReadingFormatter().format_reading(reading_for("horse", ["Past", "Present", "Future"]))

        assert "<b>Past</b>: Card 0" in text
        assert "📅" not in text

    def test_custom_spread_shows_raw_key(self):
        text = ReadingFormatter().format_reading(reading_for("my-own", ["One", "Two"]))

        assert text.startswith("🔮 <b>my-own</b>")
        assert "<b>Two</b>: Card 1 (Reversed)" in text

    def test_user_text_is_escaped(self):
        text = ReadingFormatter().format_reading(reading_for("one", ["Message"], question="<b>hi</b> & bye"))

        assert "&lt;b&gt;hi&lt;/b&gt; &amp; bye" in text
        assert "<b>hi</b>" not in text

    def test_same_reading_same_text(self):
        formatter = ReadingFormatter()
        reading = reading_for("celt", [f"P{i}" for i in range(10)])

        assert formatter.format_reading(reading) == formatter.format_reading(reading)


class TestFormatHistory:
    def test_empty_history_message(self):
        text = ReadingFormatter().format_history([])

        assert "No readings yet." in text

    def test_numbered_list_in_local_time(self):
        records = [
            ReadingRecord("2024-05-01T15:30:00+00:00", "1", "Job?", "celt", "x"),
            ReadingRecord("2024-04-30T01:05:00+00:00", "1", "Move?", "my-own", "x"),
        ]

        text = ReadingFormatter("Asia/Tokyo").format_history(records)

        assert "(latest 2)" in text
        assert "<b>1.</b> 2024/05/02 00:30\n　Celtic Cross - Job?" in text
        assert "<b>2.</b> 2024/04/30 10:05\n　my-own - Move?" in text

    def test_bad_timestamp_is_shown_as_is(self):
        records = [ReadingRecord("sometime", "1", "Q", "one", "x")]

        text = ReadingFormatter("UTC").format_history(records)

        assert "<b>1.</b> sometime" in text
