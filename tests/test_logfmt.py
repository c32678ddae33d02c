from __future__ import annotations

from pyresource._logfmt import summarize_for_log


def test_summarize_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    summary = summarize_for_log({"value": long_value}, max_string=10)
    assert summary["value"].startswith("x" * 10)
    assert "<truncated>" in summary["value"]


def test_summarize_for_log_limits_collections() -> None:
    summary = summarize_for_log(list(range(50)))
    assert summary[:20] == list(range(20))
    assert summary[-1] == "<30 more>"

    mapping = summarize_for_log({str(i): i for i in range(25)})
    assert mapping["…"] == "<5 more>"


def test_summarize_for_log_scalars_and_objects() -> None:
    assert summarize_for_log(None) is None
    assert summarize_for_log(3) == 3
    assert summarize_for_log(b"abc") == "<bytes:3b>"
    assert summarize_for_log(ValueError("bad")) == "ValueError('bad')"
    assert summarize_for_log(("a", 1)) == ["a", 1]
