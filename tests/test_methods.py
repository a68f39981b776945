import pytest

from binance_api.errors import InvalidMethodError
from binance_api.methods import (
    DEFAULT_SIGNED_METHODS,
    PRIVATE_METHODS,
    PUBLIC_METHODS,
    MethodKind,
    classify,
    requires_signature,
)


def test_public_and_private_sets_are_disjoint():
    assert PUBLIC_METHODS.isdisjoint(PRIVATE_METHODS)


@pytest.mark.parametrize("method", sorted(PUBLIC_METHODS))
def test_classify_public(method):
    assert classify(method) is MethodKind.PUBLIC


@pytest.mark.parametrize("method", sorted(PRIVATE_METHODS))
def test_classify_private(method):
    assert classify(method) is MethodKind.PRIVATE


@pytest.mark.parametrize("method", ["", "withdraw", "PING", "ticker/", "/api/v1/ping"])
def test_classify_rejects_unknown(method):
    with pytest.raises(InvalidMethodError) as excinfo:
        classify(method)
    assert excinfo.value.method == method
    assert "is not a valid API method" in str(excinfo.value)


def test_user_data_stream_is_not_signed_by_default():
    assert not requires_signature("userDataStream", DEFAULT_SIGNED_METHODS)
    assert requires_signature("order", DEFAULT_SIGNED_METHODS)


def test_public_methods_never_require_signature():
    everything = PUBLIC_METHODS | PRIVATE_METHODS
    assert not any(requires_signature(m, everything) for m in PUBLIC_METHODS)
