"""
Tests for version constraint checking.
"""

import pytest

from kindling.core.services.provision.domain.version_constraint import (
    check_version_constraint,
    parse_constraint,
)


class TestCheckVersionConstraint:
    """Tests for check_version_constraint."""

    @pytest.mark.parametrize(
        "installed, constraint",
        [
            ("2.24.12", ">=2.24"),
            ("2.24.0", ">=2.24, <3"),
            ("2.30.1", "^2.18"),
            ("2.24.5", "~2.24.1"),
            ("2.24.12", "=2.24"),
            ("2.24.12", "2.20"),
        ],
    )
    def test_satisfied(self, installed, constraint):
        assert check_version_constraint(installed, constraint)["valid"] is True

    @pytest.mark.parametrize(
        "installed, constraint",
        [
            ("2.18.1", ">=2.24"),
            ("3.0.0", ">=2.20, <3"),
            ("2.25.0", "~2.24.1"),
            ("1.9.0", "^2.0"),
            ("2.24.0", ">2.24.0"),
        ],
    )
    def test_not_satisfied(self, installed, constraint):
        result = check_version_constraint(installed, constraint)
        assert result["valid"] is False
        assert installed in result["message"]

    def test_unparseable_installed_version_is_not_blocking(self):
        result = check_version_constraint("unknown", ">=2.24")
        assert result == {"valid": True, "parse_error": True}

    def test_malformed_constraint_raises(self):
        with pytest.raises(ValueError):
            check_version_constraint("2.24.0", ">=two")


class TestParseConstraint:
    def test_bare_version_is_caret(self):
        assert parse_constraint("2.24") == [("^", (2, 24, 0), 2)]

    def test_multiple_clauses(self):
        ops = [op for op, _, _ in parse_constraint(">=2.20, <3")]
        assert ops == [">=", "<"]
