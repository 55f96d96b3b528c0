import pytest

from chatdigest.backends import MessageSource, SummaryBackend


def test_contracts_cannot_be_instantiated():
    with pytest.raises(TypeError):
        MessageSource()
    with pytest.raises(TypeError):
        SummaryBackend()


def test_partial_backend_is_rejected():
    class SummarizeOnly(SummaryBackend):
        def summarize(self, lines, options=None):
            return "summary"

    with pytest.raises(TypeError, match="get_max_context_tokens"):
        SummarizeOnly()


def test_complete_backend_can_be_built():
    class Complete(SummaryBackend):
        def summarize(self, lines, options=None):
            return "summary"

        def get_max_context_tokens(self):
            return 4096

    assert Complete().get_max_context_tokens() == 4096
