"""Tests for CancellationToken."""

import pytest

from config.exceptions import GenerationCancelledError


class TestCancellationToken:
    def test_starts_uncancelled(self):
        from tools.cancellation import CancellationToken
        token = CancellationToken()
        assert not token.is_cancelled
        token.raise_if_cancelled()

    def test_cancel_and_reset(self):
        from tools.cancellation import CancellationToken
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled
        with pytest.raises(GenerationCancelledError):
            token.raise_if_cancelled()
        token.reset()
        assert not token.is_cancelled

    def test_wraps_check_function(self):
        from tools.cancellation import CancellationToken
        flag = {"stop": False}
        token = CancellationToken(lambda: flag["stop"])
        assert not token.is_cancelled
        flag["stop"] = True
        assert token.is_cancelled

    def test_coerce_none(self):
        from tools.cancellation import CancellationToken
        assert not CancellationToken.coerce(None).is_cancelled

    def test_coerce_token_is_identity(self):
        from tools.cancellation import CancellationToken
        token = CancellationToken()
        assert CancellationToken.coerce(token) is token

    def test_coerce_callable(self):
        from tools.cancellation import CancellationToken
        assert CancellationToken.coerce(lambda: True).is_cancelled

    def test_coerce_rejects_other_types(self):
        from tools.cancellation import CancellationToken
        with pytest.raises(TypeError):
            CancellationToken.coerce("yes")
