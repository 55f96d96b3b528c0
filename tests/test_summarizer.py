import pytest

from conftest import FakeBackend

from chatdigest.summarizer import COMBINE_PREAMBLE, combine_summaries, summarize_chunks


def test_each_chunk_is_tagged_with_its_position():
    backend = FakeBackend()
    chunks = [["a1", "a2"], ["b1"], ["c1", "c2", "c3"]]

    summaries = summarize_chunks(backend, chunks)

    assert backend.calls == [
        ["[Part 1 of 3]", "a1", "a2"],
        ["[Part 2 of 3]", "b1"],
        ["[Part 3 of 3]", "c1", "c2", "c3"],
    ]
    assert summaries == ["Part 1: summary 1", "Part 2: summary 2", "Part 3: summary 3"]


def test_chunk_failure_propagates_and_stops():
    error = TimeoutError("model timed out")
    backend = FakeBackend(fail_on_call=2, error=error)

    with pytest.raises(TimeoutError) as excinfo:
        summarize_chunks(backend, [["a"], ["b"], ["c"]])

    assert excinfo.value is error
    assert len(backend.calls) == 2


def test_combine_sends_preamble_and_all_parts():
    backend = FakeBackend()
    parts = ["Part 1: alpha", "Part 2: beta"]

    result = combine_summaries(backend, parts)

    assert result == "summary 1"
    assert len(backend.calls) == 1
    payload = backend.calls[0]
    assert payload[: len(COMBINE_PREAMBLE)] == COMBINE_PREAMBLE
    assert payload[-2:] == parts
