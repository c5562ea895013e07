import pytest

from action_relay.compiler.risk import apply_override, protocol_tool_tags, risk_for_method, risk_for_protocol_tool
from action_relay.core.models import RiskLevel


@pytest.mark.parametrize(
    "method, expected",
    [
        ("GET", RiskLevel.safe),
        ("head", RiskLevel.safe),
        ("OPTIONS", RiskLevel.safe),
        ("POST", RiskLevel.moderate),
        ("PUT", RiskLevel.dangerous),
        ("PATCH", RiskLevel.dangerous),
        ("DELETE", RiskLevel.dangerous),
        ("TRACE", RiskLevel.moderate),
    ],
)
def test_risk_for_method(method, expected):
    assert risk_for_method(method) is expected


@pytest.mark.parametrize(
    "name, description, expected",
    [
        ("read_file", "Read a file from disk", RiskLevel.safe),
        ("listIssues", None, RiskLevel.safe),
        ("delete_branch", None, RiskLevel.dangerous),
        ("run_query", "Drop or select rows", RiskLevel.dangerous),
        ("create_issue", "Open a new issue", RiskLevel.moderate),
        ("sendMessage", None, RiskLevel.moderate),
        ("echo", "Echo the input back", RiskLevel.safe),
    ],
)
def test_risk_for_protocol_tool(name, description, expected):
    assert risk_for_protocol_tool(name, description) is expected


def test_protocol_tool_tags():
    tags = protocol_tool_tags("delete_file", "Remove a file from the repository")

    assert "file" in tags
    assert "git" in tags
    assert "destructive" in tags


class TestApplyOverride:
    def test_no_extensions(self):
        assert apply_override({}, RiskLevel.moderate) == (RiskLevel.moderate, False)
        assert apply_override({}, RiskLevel.dangerous) == (RiskLevel.dangerous, True)

    def test_risk_extension(self):
        assert apply_override({"x-risk-level": "Dangerous"}, RiskLevel.safe) == (RiskLevel.dangerous, True)

    def test_unknown_risk_extension_is_ignored(self):
        assert apply_override({"x-risk-level": "extreme"}, RiskLevel.safe) == (RiskLevel.safe, False)

    def test_confirmation_extension_adds_confirmation(self):
        assert apply_override({"x-requires-confirmation": True}, RiskLevel.moderate) == (RiskLevel.moderate, True)

    def test_confirmation_extension_clears_confirmation(self):
        assert apply_override({"x-requires-confirmation": False}, RiskLevel.dangerous) == (RiskLevel.dangerous, False)

    def test_non_boolean_confirmation_extension_is_ignored(self):
        assert apply_override({"x-requires-confirmation": "no"}, RiskLevel.dangerous) == (RiskLevel.dangerous, True)
