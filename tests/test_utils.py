from reelsync.utils import format_runtime, slugify, to_epoch


def test_slugify_basic():
    assert slugify("The Lord of the Rings: The Two Towers") == "the-lord-of-the-rings-the-two-towers"


def test_to_epoch_parses_dates_and_timestamps():
    assert to_epoch("1970-01-02") == 86_400
    assert to_epoch("1970-01-01T00:01:00.000Z") == 60
    assert to_epoch(None) is None
    assert to_epoch("not a date") is None


def test_format_runtime_splits_hours_and_minutes():
    assert format_runtime(95) == {
        "full": "1 hour 35 minutes",
        "short": "1h 35min",
        "hours": 1,
        "minutes": 35,
    }
    assert format_runtime(120)["full"] == "2 hours"
    assert format_runtime(None)["short"] == "0min"
