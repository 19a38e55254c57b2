"""
Error Log Condenser

Line-oriented scanner that reduces an error/log dump to its distinct
errors: one declaration per error, at most a few user-code frames, a few
lines of supporting context, and nothing else.

The scanner is a small state machine. Each input line goes through an
ordered list of handlers; the first handler that consumes the line wins.
Every error block is keyed by a signature (exception type plus truncated
message, or level plus truncated message) and a block whose signature was
already seen in this call is dropped together with its remaining frames.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from . import log_patterns as patterns
from .config import OptimizerConfig

logger = logging.getLogger(__name__)

CONDENSED_HEADER = "Fix these errors:"


class ScanState(str, Enum):
    """Scanner state between lines."""

    IDLE = "idle"
    IN_ERROR = "in_error"
    IN_STACK_TRACE = "in_stack_trace"
    IN_CODE_CONTEXT = "in_code_context"
    IN_APP_FAILED_BLOCK = "in_app_failed_block"


class BlockKind(str, Enum):
    """What opened the current error block."""

    # Python frames collected before their exception line
    TRACEBACK = "traceback"
    # Frames with no declaration yet (goroutine dump, bare "at" frames)
    FRAMES = "frames"
    PANIC = "panic"
    # Jest "●" test banner, waiting for its error line
    BANNER = "banner"
    DECLARED = "declared"


@dataclass
class ErrorBlock:
    """One error being assembled."""

    kind: BlockKind
    lines: list[str] = field(default_factory=list)
    # Set when the signature was checked and recorded at declaration time
    signature: str | None = None
    context_count: int = 0

    @property
    def is_pending(self) -> bool:
        return self.kind in (BlockKind.TRACEBACK, BlockKind.FRAMES)


def first_line_signature(line: str) -> str:
    """Dedup key for blocks that were never declared."""
    return patterns.strip_location(line.strip())


class LogScanner:
    """
    Per-call scanning state for the condenser.

    A scanner is used for exactly one input; create a new one per call.
    """

    def __init__(self, config: OptimizerConfig) -> None:
        self.config = config
        self.state = ScanState.IDLE

        self.block: ErrorBlock | None = None
        self.frame_count = 0
        self.awaiting_frame_source = False

        self.code_context: list[str] = []
        self.app_failed_lines: list[str] = []

        self.seen_error_signatures: set[str] = set()
        self.seen_stack_frame_signatures: set[str] = set()
        self.sections: list[str] = []

        self._handlers = (
            self._handle_app_failed_block,
            self._handle_noise,
            self._handle_code_context,
            self._handle_openers,
            self._handle_frames,
            self._handle_declarations,
            self._handle_structured_lines,
            self._handle_suppressed,
            self._handle_context,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def step(self, line: str) -> ScanState:
        """
        Feed one line to the scanner.

        Args:
            line: Input line without its trailing newline

        Returns:
            State after the line was handled
        """
        for handler in self._handlers:
            if handler(line):
                break
        return self.state

    def finish(self) -> str:
        """
        Close open blocks and render the condensed log.

        Returns:
            Condensed text, or an empty string when nothing was kept
        """
        self.flush_error()
        self.flush_code_context()

        parts = list(self.sections)
        app_failed = [line for line in self.app_failed_lines if patterns.APP_FAILED_BANNER not in line]
        if app_failed:
            parts.append("\n".join([patterns.APP_FAILED_BANNER, *app_failed]))

        if not parts:
            return ""
        return f"{CONDENSED_HEADER}\n\n" + "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Block management
    # ------------------------------------------------------------------

    def flush_error(self) -> None:
        """Emit the current block unless it duplicates an earlier one."""
        block = self.block
        self.block = None
        self.frame_count = 0
        self.awaiting_frame_source = False
        if self.state in (ScanState.IN_ERROR, ScanState.IN_STACK_TRACE):
            self.state = ScanState.IDLE

        if block is None or not block.lines:
            return

        if block.signature is None:
            signature = first_line_signature(block.lines[0])
            if signature in self.seen_error_signatures:
                return
            self.seen_error_signatures.add(signature)

        text = "\n".join(block.lines).strip()
        if text:
            self.sections.append(text)

    def flush_code_context(self) -> None:
        """Emit the buffered source excerpt."""
        if self.code_context:
            self.sections.append("\n".join(self.code_context))
            self.code_context = []
        if self.state == ScanState.IN_CODE_CONTEXT:
            self.state = ScanState.IDLE

    def open_block(self, kind: BlockKind, first_line: str | None = None, signature: str | None = None) -> None:
        """Flush the current block and start a new one."""
        self.flush_error()
        self.block = ErrorBlock(kind=kind, lines=[first_line] if first_line else [], signature=signature)
        self.state = ScanState.IN_STACK_TRACE if self.block.is_pending else ScanState.IN_ERROR

    def skip_duplicate(self) -> None:
        """Drop the rest of a repeated error, including its frames."""
        self.flush_error()
        self.state = ScanState.IN_STACK_TRACE
        self.frame_count = self.config.stack_frame_cap

    def emit_line(self, signature: str, text: str) -> None:
        """Emit a one-line section, once per signature."""
        if signature in self.seen_error_signatures:
            return
        self.flush_error()
        self.seen_error_signatures.add(signature)
        self.sections.append(text)

    @property
    def frames_full(self) -> bool:
        return self.frame_count >= self.config.stack_frame_cap

    @property
    def skipping(self) -> bool:
        """True while the frames of a repeated error are being dropped."""
        return self.block is None and self.state == ScanState.IN_STACK_TRACE and self.frames_full

    def _add_frame(self, text: str) -> bool:
        """Append a frame if the cap allows; opens a pending block when needed."""
        if self.frames_full:
            return False
        if self.block is None:
            self.block = ErrorBlock(kind=BlockKind.FRAMES)
        self.block.lines.append(text)
        return True

    # ------------------------------------------------------------------
    # Handlers, in dispatch order. Each returns True if it consumed the line.
    # ------------------------------------------------------------------

    def _handle_app_failed_block(self, line: str) -> bool:
        if self.state == ScanState.IN_APP_FAILED_BLOCK:
            if patterns.APP_FAILED_RULE.match(line):
                return True
            if patterns.APP_FAILED_END.match(line):
                self.state = ScanState.IDLE
                return False
            stripped = line.strip()
            if stripped:
                self.app_failed_lines.append(stripped)
            return True

        if patterns.APP_FAILED_BANNER in line:
            self.flush_error()
            self.flush_code_context()
            self.app_failed_lines = []
            self.state = ScanState.IN_APP_FAILED_BLOCK
            return True
        return False

    def _handle_noise(self, line: str) -> bool:
        return patterns.matches_any(patterns.NOISE_PATTERNS, line)

    def _handle_code_context(self, line: str) -> bool:
        if patterns.CODE_LINE.match(line):
            if self.state != ScanState.IN_CODE_CONTEXT:
                self.flush_error()
                self.state = ScanState.IN_CODE_CONTEXT
            self.code_context.append(line.strip())
            return True

        if patterns.CODE_POINTER.match(line):
            if self.state == ScanState.IN_CODE_CONTEXT:
                self.code_context.append(line.strip())
            return True

        if self.state == ScanState.IN_CODE_CONTEXT:
            self.flush_code_context()
        return False

    def _handle_openers(self, line: str) -> bool:
        if patterns.TRACEBACK_HEADER.match(line):
            self.open_block(BlockKind.TRACEBACK)
            return True

        panic = patterns.GO_PANIC.match(line)
        if panic:
            message = panic.group(1)
            signature = f"panic: {message[:60]}"
            if signature in self.seen_error_signatures:
                self.skip_duplicate()
                return True
            self.seen_error_signatures.add(signature)
            self.open_block(BlockKind.PANIC, f"panic: {message}", signature)
            return True

        signal = patterns.GO_SIGNAL.match(line)
        if signal:
            if self.block is not None and self.block.kind == BlockKind.PANIC:
                self.block.lines.append(f"[{signal.group(1)}: {signal.group(2)}]")
            return True

        if patterns.GO_GOROUTINE.match(line):
            if self.block is not None and self.block.kind == BlockKind.PANIC:
                self.state = ScanState.IN_STACK_TRACE
                self.frame_count = 0
            elif not self.skipping:
                self.open_block(BlockKind.FRAMES)
            return True

        return False

    def _handle_frames(self, line: str) -> bool:
        if patterns.STACK_FRAME.match(line):
            return self._on_stack_frame(line)

        python_frame = patterns.PYTHON_FRAME.match(line)
        if python_frame:
            return self._on_python_frame(*python_frame.groups())

        if (
            self.state == ScanState.IN_STACK_TRACE
            and self.block is not None
            and (self.block.kind == BlockKind.TRACEBACK or self.awaiting_frame_source)
            and patterns.PYTHON_SOURCE_LINE.match(line)
        ):
            if self.awaiting_frame_source:
                self.block.lines.append("    " + line.strip())
                self.awaiting_frame_source = False
            return True

        if self.state == ScanState.IN_STACK_TRACE:
            go_function = patterns.GO_FUNCTION_FRAME.match(line)
            if go_function:
                if not patterns.matches_any(patterns.INTERNAL_FRAME_PATTERNS, line):
                    self._add_frame(f"  {go_function.group(2)}()")
                return True

            go_file = patterns.GO_FILE_FRAME.match(line)
            if go_file:
                path, line_number = go_file.groups()
                if not patterns.matches_any(patterns.INTERNAL_FRAME_PATTERNS, path):
                    short_path = patterns.strip_prefixes(patterns.GO_PATH_PREFIXES, path)
                    if self._add_frame(f"    {short_path}:{line_number}"):
                        self.frame_count += 1
                return True

        return False

    def _on_stack_frame(self, line: str) -> bool:
        """JavaScript and Java "at ..." frames."""
        if self.block is not None and not self.block.is_pending:
            self.state = ScanState.IN_STACK_TRACE
        if patterns.matches_any(patterns.INTERNAL_FRAME_PATTERNS, line):
            return True

        frame = line.strip()
        if self.frames_full or frame in self.seen_stack_frame_signatures:
            return True
        self.seen_stack_frame_signatures.add(frame)
        if self._add_frame(f"  {frame}"):
            self.frame_count += 1
            self.state = ScanState.IN_STACK_TRACE
        return True

    def _on_python_frame(self, path: str, line_number: str, function: str) -> bool:
        """Python 'File "...", line N, in f' frames, kept ahead of their exception."""
        self.awaiting_frame_source = False
        if self.block is None:
            if self.skipping:
                return True
            self.block = ErrorBlock(kind=BlockKind.TRACEBACK)
        self.state = ScanState.IN_STACK_TRACE

        if patterns.matches_any(patterns.INTERNAL_FRAME_PATTERNS, f'File "{path}"'):
            return True
        if self.frames_full:
            return True

        short_path = patterns.strip_prefixes(patterns.PYTHON_PATH_PREFIXES, path)
        self.seen_stack_frame_signatures.add(f"{short_path}:{line_number}")
        self.block.lines.append(f'  File "{short_path}", line {line_number}, in {function}')
        self.frame_count += 1
        self.awaiting_frame_source = True
        return True

    def _handle_declarations(self, line: str) -> bool:
        caused_by = patterns.CAUSED_BY.match(line)
        if caused_by:
            exception_type, message = caused_by.groups()
            signature = f"Caused by: {exception_type}: {patterns.strip_location(message)[:60]}"
            if signature in self.seen_error_signatures:
                self.skip_duplicate()
            else:
                self.seen_error_signatures.add(signature)
                self.open_block(BlockKind.DECLARED, f"Caused by: {exception_type}: {message}", signature)
            return True

        declaration = patterns.EXCEPTION_DECLARATION.match(line)
        if declaration:
            self._on_exception(*declaration.groups())
            return True

        spring = patterns.SPRING_LEVEL_LINE.match(line)
        if spring:
            level, _, message = spring.groups()
            if level == "ERROR" or "Could not" in message:
                signature = f"{level}: {message[:60]}"
                if signature in self.seen_error_signatures:
                    self.skip_duplicate()
                else:
                    self.seen_error_signatures.add(signature)
                    self.open_block(BlockKind.DECLARED, f"{level}: {message}", signature)
            return True

        python_error = patterns.PYTHON_ERROR_LINE.match(line)
        if python_error:
            message = python_error.group(1)
            signature = f"ERROR: {message[:50]}"
            if signature not in self.seen_error_signatures:
                self.seen_error_signatures.add(signature)
                self.open_block(BlockKind.DECLARED, f"ERROR: {message}", signature)
            return True

        go_level = patterns.GO_LEVEL_LINE.match(line)
        if go_level:
            level, path, line_number, message = go_level.groups()
            signature = f"{level}: {message[:50]}"
            if signature not in self.seen_error_signatures:
                self.seen_error_signatures.add(signature)
                self.open_block(BlockKind.DECLARED, f"{level} {path}:{line_number} {message}", signature)
            return True

        if patterns.BUILD_FAILURE.match(line) or patterns.MODULE_RESOLUTION.search(line):
            self.open_block(BlockKind.DECLARED, line.strip())
            return True

        if patterns.TEST_BANNER.match(line):
            self.open_block(BlockKind.BANNER, line.strip())
            return True

        if patterns.WEBPACK_SUMMARY.search(line):
            summary = line.strip()
            self.emit_line(summary, summary)
            return True

        return False

    def _on_exception(self, indent: str, full_type: str, message: str) -> None:
        short_type = full_type.rsplit(".", 1)[-1]
        signature = f"{short_type}: {patterns.strip_location(message)[:60]}"
        declaration = f"{short_type}: {message}"
        block = self.block

        if signature in self.seen_error_signatures:
            if block is not None and block.kind == BlockKind.TRACEBACK:
                # Frames of a repeated traceback go with it
                self.block = None
            self.skip_duplicate()
            return
        self.seen_error_signatures.add(signature)

        if block is not None and block.kind == BlockKind.TRACEBACK:
            block.lines.insert(0, declaration)
        elif block is not None and block.kind == BlockKind.BANNER and len(block.lines) == 1:
            block.lines.append(declaration)
        elif len(indent) > 2 and block is not None and not block.is_pending:
            block.lines.append(declaration)
            self.state = ScanState.IN_ERROR
            return
        else:
            self.open_block(BlockKind.DECLARED, declaration, signature)
            return

        block.kind = BlockKind.DECLARED
        block.signature = signature
        self.state = ScanState.IN_ERROR
        self.frame_count = 0
        self.awaiting_frame_source = False

    def _handle_structured_lines(self, line: str) -> bool:
        gorm = patterns.GORM_QUERY.match(line)
        if gorm:
            query = gorm.group(1)
            if any(keyword in query for keyword in patterns.SQL_KEYWORDS):
                self.emit_line(f"gorm:{query[:30]}", f"SQL: {query}")
            return True

        k8s = patterns.K8S_REASON.search(line)
        if k8s:
            reason = k8s.group(1)
            self.emit_line(f"k8s: {reason}", f"K8s: {reason}")
            return True

        aws = patterns.AWS_SDK_ERROR.search(line)
        if aws:
            message = aws.group(1)
            self.emit_line(f"AWS: {message[:50]}", f"AWS SDK: {message}")
            return True

        error_field = patterns.GO_ERROR_FIELD.search(line)
        if error_field:
            message = error_field.group(1)
            context = patterns.GO_ERROR_FIELD_CONTEXT.match(line)
            text = f"{context.group(2)}: {message}" if context else f"Error: {message}"
            self.emit_line(f"error: {message[:40]}", text)
            return True

        probe = patterns.PROBE_FAILURE.search(line)
        if probe:
            kind = probe.group(1).capitalize()
            self.emit_line(f"probe: {kind.lower()}", f"{kind} probe failed")
            return True

        return False

    def _handle_suppressed(self, line: str) -> bool:
        return patterns.matches_any(patterns.SUPPRESSED_PATTERNS, line)

    def _handle_context(self, line: str) -> bool:
        block = self.block
        if patterns.SQL_DETAIL.match(line):
            if block is not None and block.kind == BlockKind.DECLARED:
                block.lines.append(line.strip())
            return True

        if self.state != ScanState.IN_ERROR or block is None:
            return False
        if block.context_count >= self.config.max_context_lines:
            return False

        stripped = line.strip()
        if len(stripped) > self.config.min_context_line_length:
            block.lines.append(stripped)
            block.context_count += 1
            return True
        return False


class ErrorLogCondenser:
    """
    Condenses error logs to their distinct errors.

    Holds only configuration; scanning state lives in a fresh LogScanner
    for every call.
    """

    def __init__(self, config: OptimizerConfig | None = None) -> None:
        """
        Initialize condenser.

        Args:
            config: Engine thresholds (defaults if None)
        """
        self.config = config or OptimizerConfig()

    def condense(self, text: str) -> str:
        """
        Condense an error log.

        Args:
            text: Raw log text

        Returns:
            "Fix these errors:" followed by the kept sections, or text
            unchanged when nothing was recognized
        """
        scanner = LogScanner(self.config)
        for line in text.splitlines():
            scanner.step(line)

        condensed = scanner.finish()
        logger.debug(
            f"Condensed log into {len(scanner.sections)} sections",
            extra={
                "sections": len(scanner.sections),
                "distinct_errors": len(scanner.seen_error_signatures),
            },
        )
        return condensed or text
