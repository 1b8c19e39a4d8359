"""Tests for acmeissuer.solvers.registry.SolverRegistry."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from acmeissuer.core.types import ChallengeType
from acmeissuer.errors import UnsupportedChallengeType
from acmeissuer.solvers.registry import SolverRegistry


@pytest.fixture()
def registry():
    return SolverRegistry(http01=MagicMock(name="http01"), dns01=MagicMock(name="dns01"))


class TestSolverRegistry:
    def test_lookup_by_string(self, registry):
        assert registry.solver_for("http-01") is registry.solver_for(ChallengeType.HTTP_01)
        assert registry.solver_for("dns-01") is registry.solver_for(ChallengeType.DNS_01)
        assert registry.solver_for("http-01") is not registry.solver_for("dns-01")

    @pytest.mark.parametrize("challenge_type", ["tls-alpn-01", "HTTP-01", "", "dns-02"])
    def test_unsupported(self, registry, challenge_type):
        with pytest.raises(UnsupportedChallengeType) as exc_info:
            registry.solver_for(challenge_type)
        assert exc_info.value.challenge_type == challenge_type
        assert "implemented" in str(exc_info.value)

    def test_supported_types(self, registry):
        assert registry.supported_types == [ChallengeType.HTTP_01, ChallengeType.DNS_01]
        assert registry.is_supported("dns-01")
        assert not registry.is_supported("tls-alpn-01")
