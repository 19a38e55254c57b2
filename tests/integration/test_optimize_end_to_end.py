"""
End-to-end tests for TokenTrim optimization

Runs real-world prompts and logs through the public optimize() entry point.
"""

import pytest

from tokentrim import optimize
from tokentrim.optimizer import Intent
from tokentrim.optimizer.optimizer import estimate_output_savings

FLUFFY_FEATURE_REQUEST = (
    "Hi there! I'm so frustrated with this, I've been working on it all week. "
    "My boss wants it done by Friday. "
    "Basically, I want to build a REST API with FastAPI and PostgreSQL. "
    "It must support pagination. Can you please help me? "
    "Any help would be greatly appreciated! Thanks in advance!"
)


class TestErrorLogs:
    """Error logs are reduced to their distinct errors."""

    def test_fastapi_repeated_failure(self, fastapi_log):
        """Startup chatter goes, one database error remains with its SQL."""
        result = optimize(fastapi_log)
        optimized = result.optimized

        assert result.is_error_log is True
        assert result.intent == Intent.DEBUG
        assert optimized.startswith("Fix these errors:")
        assert optimized.count("OperationalError: (psycopg2.OperationalError)") == 1
        assert optimized.index("[SQL: SELECT users.id") > optimized.index("OperationalError")
        assert '  File "/app/api/routes/users.py", line 54, in get_users' in optimized
        assert "INFO:" not in optimized
        assert "site-packages" not in optimized
        assert "Background on this error" not in optimized
        assert result.optimized_tokens < result.original_tokens
        assert result.savings_percent > 50
        assert result.estimated_output_savings == estimate_output_savings(result.savings_percent)

    def test_go_panic(self, go_panic_log):
        """Go panics keep the signal and user frames."""
        result = optimize(go_panic_log)

        assert result.intent == Intent.DEBUG
        assert "[SIGSEGV: segmentation violation" in result.optimized
        assert "services/user.go:42" in result.optimized
        assert "/usr/local/go/src" not in result.optimized

    def test_java_causes(self, java_caused_by_log):
        """Repeated causes are reported once."""
        result = optimize(java_caused_by_log)

        assert result.optimized.count("Caused by: java.net.ConnectException") == 1
        assert "AbstractAutowireCapableBeanFactory" not in result.optimized


class TestPrompts:
    """Conversational prompts are restructured."""

    def test_feature_request(self):
        """Filler is removed and the request is labelled."""
        result = optimize(FLUFFY_FEATURE_REQUEST)
        optimized = result.optimized

        assert result.is_error_log is False
        assert result.intent == Intent.IMPLEMENT
        assert optimized.startswith("**Implementation Request**\n\n")
        assert "Build: REST API with FastAPI and PostgreSQL." in optimized
        assert "**Stack**: fastapi, postgresql" in optimized
        assert "- pagination" in optimized
        for filler in ("frustrated", "boss", "Basically", "appreciated", "Thanks"):
            assert filler not in optimized
        assert result.savings_percent > 0

    def test_terse_prompt_untouched(self):
        """A prompt with nothing to remove is returned as is."""
        text = "Explain how useEffect cleanup works"

        result = optimize(text)

        assert result.optimized == text
        assert result.intent == Intent.EXPLAIN


class TestSafetyNet:
    """Properties that hold for every input."""

    @pytest.mark.parametrize(
        "fixture_name",
        [
            "fastapi_log",
            "python_repeated_log",
            "js_deep_stack_log",
            "go_panic_log",
            "spring_app_failed_log",
            "java_caused_by_log",
            "jest_failure_log",
            "verbose_prompt",
        ],
    )
    def test_never_grows(self, request, fixture_name):
        """Output is never longer than the input and never empty."""
        text = request.getfixturevalue(fixture_name)

        result = optimize(text)

        assert len(result.optimized) <= len(text)
        assert result.optimized.strip()
        assert 0 <= result.savings_percent <= 100
        assert result.original == text

    @pytest.mark.parametrize("text", ["ok", "?", "Thanks so much!", "```\ncode only\n```"])
    def test_degenerate_input(self, text):
        """Inputs with nothing to gain come back unchanged."""
        result = optimize(text)

        assert result.optimized == text
        assert result.savings_percent == 0

    def test_idempotent_on_condensed_log(self, python_repeated_log):
        """Condensing an already condensed log gains nothing more."""
        once = optimize(python_repeated_log).optimized

        assert optimize(once).optimized == once
