import pytest

from md_agent.response.exception.exceptions import (
    CompletionFailedException,
    EmptyExtractionException,
    MalformedResponseException,
    NoProviderException,
    ResourceNotFoundException,
    ValidationException,
)
from md_agent.response.response_codes import ResponseCode
from md_agent.response.response_factory import response_factory


@pytest.mark.parametrize("exc", [
    NoProviderException(),
    CompletionFailedException(),
    MalformedResponseException(raw_text="x"),
    EmptyExtractionException(),
    ResourceNotFoundException(),
    ValidationException(),
])
def test_exception_status_matches_response_code(exc):
    response_code = ResponseCode.lookup(exc.code)

    assert response_code is not None
    assert exc.http_status == response_code.http_status
    assert exc.retryable == response_code.retryable


def test_error_envelope_from_exception():
    response = response_factory.from_exception(EmptyExtractionException(), request_id="req-1", host_id="127.0.0.1")

    assert response.Success is False
    assert response.Code == "EmptyExtraction"
    assert response.Retryable is True
    assert response.RequestId == "req-1"
    assert ResponseCode.lookup("Unknown") is None
