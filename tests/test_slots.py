import pytest

from app.domain.scheduling.slots import (
    format_clock, generate_slots, overlaps, parse_clock, slot_fee_rates, validate_interval
)


@pytest.mark.unit
@pytest.mark.scheduling
class TestClockParsing:
    """Wall-clock strings in both notations."""

    @pytest.mark.parametrize("value, minutes", [
        ("09:00 AM", 540),
        ("12:00 PM", 720),
        ("12:30 AM", 30),
        ("05:15 PM", 1035),
        ("9:00am", 540),
        ("09:00", 540),
        ("17:45", 1065),
    ])
    def test_parse_clock(self, value: str, minutes: int) -> None:
        assert parse_clock(value) == minutes

    @pytest.mark.parametrize("value", ["", "25:00", "13:00 PM", "noon", None])
    def test_parse_clock_rejects_garbage(self, value) -> None:
        with pytest.raises(ValueError):
            parse_clock(value)

    def test_format_clock(self) -> None:
        assert format_clock(540) == "09:00 AM"
        assert format_clock(720) == "12:00 PM"
        assert format_clock(0) == "12:00 AM"
        assert format_clock(1035, twelve_hour=False) == "17:15"

    def test_validate_interval_requires_order(self) -> None:
        assert validate_interval("09:00 AM", "09:30 AM") == (540, 570)
        with pytest.raises(ValueError):
            validate_interval("10:00", "09:00")


@pytest.mark.unit
@pytest.mark.scheduling
class TestSlotGeneration:
    """Grid generation from working hours and breaks."""

    def test_grid_skips_breaks(self) -> None:
        slots = generate_slots(
            {"start": "09:00 AM", "end": "12:00 PM"},
            [{"start": "10:30 AM", "end": "11:00 AM"}],
            30,
        )
        assert [(s["start"], s["end"]) for s in slots] == [
            ("09:00 AM", "09:30 AM"),
            ("09:30 AM", "10:00 AM"),
            ("10:00 AM", "10:30 AM"),
            ("11:00 AM", "11:30 AM"),
            ("11:30 AM", "12:00 PM"),
        ]
        assert [s["position"] for s in slots] == [0, 1, 2, 3, 4]
        assert not any(s["is_booked"] for s in slots)

    def test_morning_without_and_with_break(self) -> None:
        hours = {"start": "09:00 AM", "end": "12:00 PM"}

        plain = generate_slots(hours, [], 30)
        assert len(plain) == 6
        assert (plain[0]["start"], plain[0]["end"]) == ("09:00 AM", "09:30 AM")
        assert (plain[-1]["start"], plain[-1]["end"]) == ("11:30 AM", "12:00 PM")

        with_break = generate_slots(hours, [{"start": "10:00 AM", "end": "10:30 AM"}], 30)
        assert len(with_break) == 5
        assert ("10:00 AM", "10:30 AM") not in [(s["start"], s["end"]) for s in with_break]

    def test_slot_touching_break_is_dropped(self) -> None:
        slots = generate_slots(
            {"start": "09:00", "end": "11:00"},
            [{"start": "09:45", "end": "10:00"}],
            30,
        )
        # 09:30-10:00 overlaps the break; 10:00 starts exactly where it ends
        assert [(s["start"], s["end"]) for s in slots] == [
            ("09:00", "09:30"),
            ("10:00", "10:30"),
            ("10:30", "11:00"),
        ]

    def test_partial_tail_is_not_generated(self) -> None:
        slots = generate_slots({"start": "09:00 AM", "end": "10:10 AM"}, [], 30)
        assert len(slots) == 2
        assert slots[-1]["end_minute"] <= parse_clock("10:10 AM")

    def test_output_follows_working_hours_notation(self) -> None:
        slots = generate_slots({"start": "14:00", "end": "15:00"}, [], 30)
        assert slots[0]["start"] == "14:00"
        assert slots[1]["end"] == "15:00"

    def test_slots_are_ordered_and_disjoint(self) -> None:
        slots = generate_slots(
            {"start": "08:00 AM", "end": "06:00 PM"},
            [{"start": "01:00 PM", "end": "02:00 PM"}, {"start": "04:10 PM", "end": "04:20 PM"}],
            20,
        )
        for current, following in zip(slots, slots[1:]):
            assert current["end_minute"] <= following["start_minute"]
        for slot in slots:
            assert slot["end_minute"] - slot["start_minute"] == 20
            assert not overlaps(slot["start_minute"], slot["end_minute"], 780, 840)
            assert not overlaps(slot["start_minute"], slot["end_minute"], 970, 980)

    @pytest.mark.parametrize("hours, duration", [
        ({"start": "05:00 PM", "end": "09:00 AM"}, 30),
        ({"start": "09:00 AM", "end": "09:00 AM"}, 30),
        ({"start": "09:00 AM", "end": "05:00 PM"}, 0),
        ({"start": "09:00 AM", "end": "09:20 AM"}, 30),
    ])
    def test_empty_grid(self, hours: dict, duration: int) -> None:
        assert generate_slots(hours, [], duration) == []

    def test_regeneration_is_deterministic(self) -> None:
        hours = {"start": "09:00 AM", "end": "01:00 PM"}
        breaks = [{"start": "11:00 AM", "end": "11:15 AM"}]
        assert generate_slots(hours, breaks, 15, 120, 90) == generate_slots(hours, breaks, 15, 120, 90)

    def test_fees_default_when_missing(self) -> None:
        slot = generate_slots({"start": "09:00", "end": "09:30"}, [], 30)[0]
        assert slot["online_fee"] == 100
        assert slot["offline_fee"] == 80


@pytest.mark.unit
class TestFeeRates:

    def test_profile_rates(self) -> None:
        assert slot_fee_rates(150, 120) == {"online_fee": 150.0, "offline_fee": 120.0}

    def test_non_positive_consultation_fee_falls_back(self) -> None:
        assert slot_fee_rates(None, 0) == {"online_fee": 100.0, "offline_fee": 80.0}
