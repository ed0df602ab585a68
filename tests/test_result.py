"""Tests for the Ok/Err result type and exception kinds."""

import pytest

from reel_producer.core.exceptions import (
    ConfigurationError,
    GenerationError,
    NotificationError,
    ProviderError,
    PublishError,
    ReelProducerError,
    TimeoutError,
    ValidationError,
)
from reel_producer.core.result import Err, ErrorKind, Ok


class TestOk:
    def test_success_and_dict(self):
        ok = Ok({"prompt": "pan"})
        assert ok.success is True
        assert ok.to_dict() == {"success": True, "data": {"prompt": "pan"}}

    def test_frozen(self):
        ok = Ok(1)
        with pytest.raises(Exception):
            ok.value = 2


class TestErr:
    def test_dict_shape(self):
        err = Err(ErrorKind.UPSTREAM, "video failed")
        assert err.success is False
        assert err.to_dict() == {"success": False, "error": "video failed", "errorKind": "upstream"}

    @pytest.mark.parametrize("exc, kind", [
        (ValidationError("bad url"), ErrorKind.VALIDATION),
        (ConfigurationError("no key"), ErrorKind.VALIDATION),
        (GenerationError("failed"), ErrorKind.UPSTREAM),
        (NotificationError("smtp down"), ErrorKind.UPSTREAM),
        (PublishError("rejected"), ErrorKind.UPSTREAM),
        (ProviderError("HTTP 500", status_code=500), ErrorKind.UPSTREAM),
        (ProviderError("connect failed", transport=True), ErrorKind.TRANSPORT),
        (TimeoutError("too slow"), ErrorKind.TIMEOUT),
        (RuntimeError("boom"), ErrorKind.INTERNAL),
    ])
    def test_from_exception_kind(self, exc, kind):
        """Each exception maps onto its error kind; foreign ones are internal."""
        assert Err.from_exception(exc).kind is kind

    def test_from_exception_message(self):
        assert Err.from_exception(GenerationError("Task not found")).message == "Task not found"
        assert Err.from_exception(KeyError()).message == "KeyError"


class TestExceptions:
    def test_to_dict_includes_kind(self):
        data = ValidationError("bad", field="imageUrl", value="x").to_dict()
        assert data["error"] == "ValidationError"
        assert data["kind"] == "validation"
        assert data["details"]["field"] == "imageUrl"

    def test_provider_error_recoverable_on_server_errors(self):
        assert ProviderError("x", status_code=503).recoverable is True
        assert ProviderError("x", status_code=400).recoverable is False

    def test_publish_error_defaults(self):
        err = PublishError("rejected")
        assert err.error_type == "Unknown"
        assert err.error_code == "N/A"

    def test_all_derive_from_base(self):
        assert issubclass(PublishError, ReelProducerError)
        assert issubclass(TimeoutError, ReelProducerError)
