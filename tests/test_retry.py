import pytest
from unittest.mock import Mock

from raju.exceptions import RemoteCallError
from raju.llm.providers.base import ErrorClass, ProviderError, RetryConfig
from raju.llm.providers import OpenAIProvider
from raju.llm.retry import RetryHandler, create_retry_handler


def _handler(max_attempts=3, sleep=None):
    config = RetryConfig(max_attempts=max_attempts, base_backoff=1.0, max_backoff=5.0)
    return RetryHandler(config, sleep=sleep or Mock())


def _server_error():
    return RemoteCallError("openai", "HTTP 503", status_code=503, retryable=True)


def test_single_attempt_by_default():
    handler = create_retry_handler()
    func = Mock(side_effect=_server_error())

    with pytest.raises(RemoteCallError):
        handler.execute_with_retry(func, OpenAIProvider().classify_error)
    assert func.call_count == 1


def test_retries_retryable_errors_until_success():
    sleep = Mock()
    handler = _handler(sleep=sleep)
    func = Mock(side_effect=[_server_error(), _server_error(), "ok"])

    assert handler.execute_with_retry(func, OpenAIProvider().classify_error, "prompt") == "ok"
    assert func.call_count == 3
    assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]


def test_last_error_propagates_after_budget():
    handler = _handler(max_attempts=2)
    func = Mock(side_effect=[_server_error(), _server_error()])

    with pytest.raises(RemoteCallError):
        handler.execute_with_retry(func, OpenAIProvider().classify_error)
    assert func.call_count == 2


def test_non_retryable_error_is_not_retried():
    handler = _handler()
    func = Mock(side_effect=RemoteCallError("openai", "HTTP 401", status_code=401))

    with pytest.raises(RemoteCallError):
        handler.execute_with_retry(func, OpenAIProvider().classify_error)
    assert func.call_count == 1


def test_other_exceptions_propagate_immediately():
    handler = _handler()
    func = Mock(side_effect=KeyError("boom"))

    with pytest.raises(KeyError):
        handler.execute_with_retry(func, OpenAIProvider().classify_error)
    assert func.call_count == 1


def test_backoff_is_capped():
    handler = _handler()
    assert handler.get_backoff_delay(1) == 1.0
    assert handler.get_backoff_delay(3) == 4.0
    assert handler.get_backoff_delay(10) == 5.0
    assert handler.get_backoff_delay(1, retry_after=60.0) == 5.0


def test_should_retry_respects_retry_list():
    handler = _handler()
    error = ProviderError(ErrorClass.AUTH_ERROR, "no", retryable=True)
    assert handler.should_retry(error, 1) is False

    error = ProviderError(ErrorClass.TIMEOUT, "slow", retryable=True)
    assert handler.should_retry(error, 1) is True
    assert handler.should_retry(error, 3) is False
