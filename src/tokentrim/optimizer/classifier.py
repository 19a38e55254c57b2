"""
Text Classifier

Decides whether input is error/log output or a conversational prompt.

Each signature recognizes one shape of machine-generated output (stack
frames, tracebacks, timestamped level lines, runtime error codes, ...).
A single match is not enough: prose that merely mentions "Error" or
quotes one frame must stay conversational, while real logs reliably hit
several independent signatures.
"""

import logging
import re
from dataclasses import dataclass, field

from .config import CLASSIFIER_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    """Result from classifying a text blob."""

    is_error_log: bool
    match_count: int
    matched_signatures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary."""
        return {
            "is_error_log": self.is_error_log,
            "match_count": self.match_count,
            "matched_signatures": self.matched_signatures,
        }


class TextClassifier:
    """
    Signature-counting log classifier.

    Counts how many distinct signatures match anywhere in the text and
    compares the count with the threshold.
    """

    # Signature table: (name, pattern, flags)
    SIGNATURES: tuple[tuple[str, str, int], ...] = (
        # JavaScript / Node
        ("js_bracketed_frame", r"\bat\s+\S+\s+\([^)]+:\d+:\d+\)", re.IGNORECASE),
        # Bare frames ("at /app/x.js:1:2", "at com.acme.Foo.bar(Foo.java:3)");
        # bracketed JS frames are already counted above
        ("bare_frame_line", r"^\s*at\s+(?!\S+\s+\()\S+", re.MULTILINE),
        ("error_then_frame", r"Error:.*\n\s+at\s+", 0),
        ("test_runner_failure", r"FAIL\s+\S+\.test\.[jt]sx?", re.IGNORECASE),
        ("module_resolution", r"Module not found|Cannot find module", re.IGNORECASE),
        ("webpack_summary", r"webpack compiled with \d+ errors?", re.IGNORECASE),
        ("npm_error", r"npm ERR!", 0),
        ("os_error_code", r"\b(?:ENOENT|EACCES|ECONNREFUSED|EADDRINUSE|ETIMEDOUT)\b", 0),
        ("numbered_source", r"\d+\s*\|\s*(?:const|let|var|function|class|import|return|if|for|while)\b", 0),
        ("ci_annotation", r"##\[error\]", re.IGNORECASE),
        # Java / Spring
        ("spring_log_line", r"\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}[.,]\d+\s+(?:INFO|WARN|ERROR|DEBUG)", 0),
        ("caused_by", r"Caused by:\s+[\w.$]+(?:Exception|Error)", 0),
        ("app_failed_banner", r"APPLICATION FAILED TO START", 0),
        ("java_frame", r"at\s+[\w$]+(?:\.[\w$<>]+)+\([^)]*\.java:\d+\)", 0),
        # Python
        ("python_level_prefix", r"^(?:INFO|ERROR|WARNING|DEBUG|CRITICAL):\s+", re.MULTILINE),
        ("python_traceback", r"Traceback \(most recent call last\)", 0),
        ("python_frame", r'File ".*", line \d+', 0),
        ("exception_declaration", r"\b\w+(?:Error|Exception):\s+\S", 0),
        # Go
        ("go_panic", r"^panic:\s+", re.MULTILINE),
        ("go_goroutine", r"^goroutine\s+\d+\s+\[running\]", re.MULTILINE),
        ("go_frame_file", r"^\s+\S+\.go:\d+", re.MULTILINE),
        ("go_signal", r"\[signal SIG[A-Z]+:", 0),
        ("iso_structured_log", r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?Z?\s+(?:INFO|WARN|ERROR|DEBUG)", 0),
        # Containers
        ("k8s_crash_reason", r"CrashLoopBackOff|OOMKilled", 0),
    )

    def __init__(self, threshold: int = CLASSIFIER_THRESHOLD) -> None:
        """
        Initialize classifier.

        Args:
            threshold: Minimum number of distinct signatures for a log
        """
        self.threshold = threshold
        self.compiled_signatures = [
            (name, re.compile(pattern, flags)) for name, pattern, flags in self.SIGNATURES
        ]

    def classify(self, text: str) -> ClassificationResult:
        """
        Classify text as error log or conversational prompt.

        Args:
            text: Input text

        Returns:
            Classification with the names of the matched signatures
        """
        matched = [name for name, pattern in self.compiled_signatures if pattern.search(text)]
        is_log = len(matched) >= self.threshold

        logger.debug(
            f"Classified input as {'error log' if is_log else 'prompt'} ({len(matched)} signatures)",
            extra={"matched_signatures": matched},
        )

        return ClassificationResult(
            is_error_log=is_log,
            match_count=len(matched),
            matched_signatures=matched,
        )

    def is_error_log(self, text: str) -> bool:
        """Return True if text looks like error/log output."""
        return self.classify(text).is_error_log
