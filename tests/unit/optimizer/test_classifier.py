"""
Tests for the error-log classifier

Validates signature counting against prose and real log shapes.
"""

import pytest

from tokentrim.optimizer.classifier import TextClassifier


class TestTextClassifier:
    """Test suite for log/prompt classification"""

    @pytest.fixture
    def classifier(self):
        """Classifier with the default threshold"""
        return TextClassifier()

    def test_signature_table_size(self, classifier):
        """All signatures are compiled"""
        assert len(classifier.compiled_signatures) == 24
        names = [name for name, _ in classifier.compiled_signatures]
        assert len(set(names)) == len(names)

    def test_single_js_frame_is_not_a_log(self, classifier):
        """One bracketed frame matches exactly one signature"""
        result = classifier.classify("at foo (bar.js:1:1)")

        assert result.match_count == 1
        assert result.matched_signatures == ["js_bracketed_frame"]
        assert result.is_error_log is False

    def test_traceback_header_tips_the_balance(self, classifier):
        """Adding a Python traceback header makes it a log"""
        text = "Traceback (most recent call last):\nat foo (bar.js:1:1)"

        assert classifier.is_error_log(text) is True

    def test_prose_mentioning_error(self, classifier):
        """Prose that talks about errors stays conversational"""
        assert classifier.is_error_log("I get an Error sometimes when I click save, can you explain why?") is False

    def test_empty_text(self, classifier):
        """Empty text matches nothing"""
        result = classifier.classify("")

        assert result.match_count == 0
        assert result.is_error_log is False

    def test_python_log(self, classifier, python_repeated_log):
        """Python traceback hits several signatures"""
        result = classifier.classify(python_repeated_log)

        assert result.is_error_log is True
        assert "python_traceback" in result.matched_signatures
        assert "python_frame" in result.matched_signatures
        assert "exception_declaration" in result.matched_signatures

    def test_go_panic(self, classifier, go_panic_log):
        """Go panic dump is a log"""
        result = classifier.classify(go_panic_log)

        assert result.is_error_log is True
        assert {"go_panic", "go_goroutine", "go_signal"} <= set(result.matched_signatures)

    def test_java_stack(self, classifier, java_caused_by_log):
        """Java exception with frames is a log"""
        result = classifier.classify(java_caused_by_log)

        assert result.is_error_log is True
        assert "caused_by" in result.matched_signatures
        assert "java_frame" in result.matched_signatures

    def test_custom_threshold(self):
        """A higher threshold needs more evidence"""
        strict = TextClassifier(threshold=3)
        text = "Traceback (most recent call last):\nat foo (bar.js:1:1)"

        assert strict.is_error_log(text) is False

    def test_to_dict(self, classifier):
        """Classification serializes to a dictionary"""
        data = classifier.classify("npm ERR! code ENOENT").to_dict()

        assert data["is_error_log"] is True
        assert data["match_count"] == 2
        assert data["matched_signatures"] == ["npm_error", "os_error_code"]
