from __future__ import annotations

import logging

import pytest

import boostkit
from boostkit import errors
from boostkit.config import BufferConfig, JsonLimits
from boostkit.db.persistent import StoreReader
from boostkit.utils.buffers import GrowingBuffer


@pytest.mark.parametrize(
    "error_type",
    [
        errors.ParseError,
        errors.EncodingError,
        errors.FormatError,
        errors.StoreError,
        errors.SchemaError,
        errors.UnknownFeatureError,
        errors.FrozenFeatureSpaceError,
    ],
)
def test_errors_share_a_runtime_error_base(error_type) -> None:
    assert issubclass(error_type, errors.BoostkitError)
    assert issubclass(error_type, RuntimeError)


def test_buffer_overflow_is_not_a_parse_failure() -> None:
    assert issubclass(errors.BufferOverflowError, OverflowError)
    assert not issubclass(errors.BufferOverflowError, errors.BoostkitError)


def test_parse_error_message_without_position() -> None:
    error = errors.ParseError("bad", offset=3)

    assert str(error) == "<input> (offset 3): bad"
    assert error.message == "bad"


def test_json_limits_validation() -> None:
    assert JsonLimits().max_key_length == 1024
    with pytest.raises(ValueError):
        JsonLimits(max_key_length=0)


def test_buffer_spill_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    buffer = GrowingBuffer(BufferConfig(inline_capacity=1, growth_factor=2))

    with caplog.at_level(logging.DEBUG, logger="boostkit.utils.buffers"):
        buffer.extend(b"ab")

    assert caplog.records


def test_store_poisoning_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="boostkit.db.persistent"):
        with pytest.raises(errors.FormatError):
            StoreReader(b"").read_u8()

    assert any("poisoned" in record.getMessage() for record in caplog.records)


def test_package_exports_version() -> None:
    assert boostkit.__version__ == "0.1.0"
    assert boostkit.NamedFeatureSpace.class_id() == "NAMED_FEATURE_SPACE"
