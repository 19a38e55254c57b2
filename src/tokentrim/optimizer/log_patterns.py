"""
Log Pattern Tables

Compiled line patterns used by the log condenser. Tables are ordered and
immutable; the scanner only ever reads them.
"""

import re


def _compile_all(*patterns: str, flags: int = 0) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, flags) for pattern in patterns)


# Lines dropped before any other handling
NOISE_PATTERNS = _compile_all(
    r"^\s*$",
    r"^\*+\s*$",
    r"^-+$",
    r"^-+\s*(?:Captured|Additional|Repeated|More noise|Nested cause|Another nested)",
    r"^console\.error$",
    # CI and tooling banners
    r"^##\[error\]",
    r"^info\s+-\s+(?:Using|Node version|Platform|Process)",
    r"^\(node:\d+\)\s+ExperimentalWarning",
    r"^\(Use `node --trace-warnings",
    r"^\[ERROR\]\s+Failed to execute goal.*Process terminated with exit code",
    # Framework INFO lines (Spring, Python logging, uvicorn, Go)
    r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}\.\d+\s+INFO",
    r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2},\d+\s+INFO\s+",
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d+Z\s+INFO\s+",
    r"^INFO:\s+",
    r"^ERROR:\s+Exception in ASGI application",
    # Chained exception connectors
    r"^The above exception was the direct cause",
    r"^During handling of the above exception",
    r"^\s*\(repeated \d+ times\)\s*$",
    # Server lifecycle chatter
    r"Listening on :\d+",
    r"Starting API server",
    r"Loaded config from",
    r"Connecting to.*:\d+",
    r"Shutting down server",
    r"Closing database connections",
    r"Server shutdown complete",
)
NOISE_PATTERNS += _compile_all(r"connection established", flags=re.IGNORECASE)

# Frames from runtimes, test harnesses and frameworks rather than user code
INTERNAL_FRAME_PATTERNS = _compile_all(
    # Node / Jest
    r"node:internal/",
    r"node_modules/jest",
    r"node_modules/.*queueRunner",
    r"at new Promise",
    r"at mapper\s",
    r"at Object\.asyncJestTest",
    r"at Module\._(?:compile|extensions|load)",
    r"at Module\.load",
    r"at Function\.executeUserEntryPoint",
    # Spring / Hibernate / JDK
    r"org\.springframework\.beans\.factory\.support\.",
    r"org\.springframework\.context\.support\.",
    r"org\.springframework\.boot\.SpringApplication\.",
    r"org\.hibernate\.(?:boot|service\.internal|jpa\.boot)\.",
    r"java\.base/java\.util\.concurrent\.",
    r"\.\.\. \d+ common frames omitted",
    # Python web stack
    r"site-packages/(?:sqlalchemy|starlette|fastapi|uvicorn|anyio|httpx)/",
    r'File "<string>"',
    # Go runtime and net/http plumbing
    r"/usr/local/go/src/",
    r"github\.com/gin-gonic/gin",
    r"net/http\..*\.ServeHTTP",
    r"net/http\.\(\*conn\)\.serve",
    r"net/http\.serverHandler",
    r"created by net/http",
    r"database/sql\.\(\*DB\)",
)

# Chatter that would otherwise be picked up as error context
SUPPRESSED_PATTERNS = _compile_all(
    r"Field 'browser'|Parsed request|using description file|resolve as module|single file module"
    r"|doesn't exist|looking for modules|no extension|is not a directory",
    r"^\s*resolve ['\"]",
    r"Retrying.*\(attempt \d+/\d+\)",
    r"^\[Recovery\] panic recovered",
    r"^\(Background on this error",
)

# Spring "APPLICATION FAILED TO START" report
APP_FAILED_BANNER = "APPLICATION FAILED TO START"
APP_FAILED_RULE = re.compile(r"^\*+\s*$")
APP_FAILED_END = re.compile(r"^-+\s|^-{3,}\s*$|^\d{4}-\d{2}-\d{2}")

# Numbered source excerpt and its caret pointer
CODE_LINE = re.compile(r"^\s*>?\s*(\d+)\s*\|\s*(.+)")
CODE_POINTER = re.compile(r"^\s*\|?\s*\^")

# Python
TRACEBACK_HEADER = re.compile(r"^Traceback \(most recent call last\):")
PYTHON_FRAME = re.compile(r'^\s*File "([^"]+)", line (\d+), in (.+)')
PYTHON_SOURCE_LINE = re.compile(r"^\s{4,}\S")
PYTHON_ERROR_LINE = re.compile(r"^ERROR:\s+(.+)")
PYTHON_PATH_PREFIXES = _compile_all(r".*site-packages/", r".*/usr/local/lib/.*/")

# Go
GO_PANIC = re.compile(r"^panic:\s*(.+)")
GO_SIGNAL = re.compile(r"^\[signal (SIG\w+):\s*([^\]]+)\]")
GO_GOROUTINE = re.compile(r"^goroutine\s+\d+\s+\[running\]:")
GO_FUNCTION_FRAME = re.compile(r"^(\S+/)?(\w+(?:\.\(\*?\w+\))?\.[\w.]+)\(([^)]*)\)$")
GO_FILE_FRAME = re.compile(r"^\s+(\S+\.go):(\d+)")
GO_PATH_PREFIXES = _compile_all(r".*/go/pkg/mod/", r".*/app/")
GO_LEVEL_LINE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d+Z\s+(ERROR|WARN)\s+(\S+):(\d+)\s+(.+)"
)
GO_ERROR_FIELD = re.compile(r'error="([^"]+)"')
GO_ERROR_FIELD_CONTEXT = re.compile(r"^\d{4}-\d{2}-\d{2}T[\d:.]+Z\s+\w+\s+(\S+)\s+(.+?)(?:\s+error=)")

# JavaScript / Java
STACK_FRAME = re.compile(r"^\s*at\s+")
EXCEPTION_DECLARATION = re.compile(r"^(\s*)((?:[\w.$]+\.)?(?:\w*Exception|\w*Error)):\s*(.+)")
CAUSED_BY = re.compile(r"^Caused by:\s*(\S+):\s*(.+)")
SPRING_LEVEL_LINE = re.compile(
    r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}\.\d+\s+(ERROR|WARN)\s+\d+\s+---\s+\[[^\]]+\]\s+(\S+)\s*:\s*(.+)"
)
BUILD_FAILURE = re.compile(r"^\s*(?:FAIL|ERROR\s+in)[\s:]", re.IGNORECASE)
MODULE_RESOLUTION = re.compile(r"Module not found|Can't resolve")
TEST_BANNER = re.compile(r"^\s*●\s+")
WEBPACK_SUMMARY = re.compile(r"webpack compiled with \d+ errors?")

# Structured single-line forms
GORM_QUERY = re.compile(r"^gorm:\s*\[[\d\-T:Z.]+\]\s*(.+)")
SQL_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE")
K8S_REASON = re.compile(r"Reason=(CrashLoopBackOff|OOMKilled|Error)")
AWS_SDK_ERROR = re.compile(r"SdkClientException:\s*(.+)")
PROBE_FAILURE = re.compile(r"(Liveness|Readiness|Health)\s+probe\s+failed", re.IGNORECASE)

# SQLAlchemy statement details attached to the open error
SQL_DETAIL = re.compile(r"^\[(?:SQL|parameters):")

# Location suffixes stripped from messages before they become signatures
LOCATION_SUFFIXES = _compile_all(
    r"\s+at\s+.*$",
    r"\([^)]+\.java:\d+\)",
    r"\([^)]+:\d+:\d+\)",
)


def matches_any(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    """Return True if any pattern in the table matches text."""
    return any(pattern.search(text) for pattern in patterns)


def strip_prefixes(patterns: tuple[re.Pattern[str], ...], path: str) -> str:
    """Apply each prefix pattern once, in order."""
    for pattern in patterns:
        path = pattern.sub("", path, count=1)
    return path


def strip_location(message: str) -> str:
    """Remove trailing source locations from an error message."""
    for pattern in LOCATION_SUFFIXES:
        message = pattern.sub("", message, count=1)
    return message.strip()
