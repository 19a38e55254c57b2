"""
TokenTrim — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
from collections.abc import Generator

import pytest

from tokentrim.config import loader as config_loader
from tokentrim.optimizer import optimizer as optimizer_module

# Set test environment
os.environ["TOKENTRIM_ENVIRONMENT"] = "test"
os.environ["TOKENTRIM_LOG_LEVEL"] = "DEBUG"


FASTAPI_STARTUP = """INFO:     Will watch for changes in these directories: ['/app']
INFO:     Uvicorn running on http://0.0.0.0:8000 (Press CTRL+C to quit)
INFO:     Started reloader process [17] using StatReload
INFO:     Started server process [19]
INFO:     Waiting for application startup.
INFO:     Application startup complete.
2026-01-10 14:12:44,892 INFO sqlalchemy.engine.Engine BEGIN (implicit)
2026-01-10 14:12:44,893 INFO sqlalchemy.engine.Engine SELECT 1
2026-01-10 14:12:44,894 INFO sqlalchemy.engine.Engine COMMIT
"""

FASTAPI_FAILURE = """ERROR:    Exception in ASGI application
Traceback (most recent call last):
  File "/usr/local/lib/python3.11/site-packages/uvicorn/protocols/http/h11_impl.py", line 429, in run_asgi
    result = await app(
  File "/usr/local/lib/python3.11/site-packages/starlette/middleware/errors.py", line 184, in __call__
    raise exc
  File "/app/api/routes/users.py", line 54, in get_users
    users = db.query(User).limit(50).all()
  File "/usr/local/lib/python3.11/site-packages/sqlalchemy/orm/query.py", line 2704, in all
    return self._iter().all()
sqlalchemy.exc.OperationalError: (psycopg2.OperationalError) connection to server at "postgres" (172.18.0.2), port 5432 failed: Connection refused
    Is the server running on that host and accepting TCP/IP connections?

[SQL: SELECT users.id AS users_id, users.email AS users_email FROM users LIMIT %(param_1)s]
[parameters: {'param_1': 50}]
(Background on this error at: https://sqlalche.me/e/20/e3q8)
INFO:     172.18.0.1:53422 - "GET /api/users HTTP/1.1" 500 Internal Server Error
"""


@pytest.fixture
def fastapi_log() -> str:
    """FastAPI log with the same database failure repeated three times."""
    return FASTAPI_STARTUP + FASTAPI_FAILURE * 3


@pytest.fixture
def python_repeated_log() -> str:
    """The same Python traceback three times."""
    traceback = (
        "Traceback (most recent call last):\n"
        '  File "/app/main.py", line 10, in <module>\n'
        "    run()\n"
        "ValueError: x is None\n"
    )
    return traceback * 3


@pytest.fixture
def js_deep_stack_log() -> str:
    """One JavaScript error with ten user-code frames."""
    frames = "\n".join(f"    at handler{i} (/app/src/routes/user{i}.js:{i + 1}:5)" for i in range(10))
    return "TypeError: Cannot read properties of undefined (reading 'id')\n" + frames


@pytest.fixture
def go_panic_log() -> str:
    """Go nil-pointer panic with a goroutine dump."""
    return (
        "2024-01-15T10:23:45.123Z INFO  server/main.go:25 Starting API server\n"
        "panic: runtime error: invalid memory address or nil pointer dereference\n"
        "[signal SIGSEGV: segmentation violation code=0x1 addr=0x0 pc=0x4a2b3c]\n"
        "\n"
        "goroutine 1 [running]:\n"
        "main.(*UserService).GetUser(0x0, 0x2a)\n"
        "\t/app/services/user.go:42 +0x1c\n"
        "net/http.HandlerFunc.ServeHTTP(0xc000010000, {0x7f8e20, 0xc0000b2000}, 0xc0000c4000)\n"
        "\t/usr/local/go/src/net/http/server.go:2136 +0x29\n"
        "main.main()\n"
        "\t/app/main.go:15 +0x25\n"
        "exit status 2\n"
    )


@pytest.fixture
def spring_app_failed_log() -> str:
    """Spring Boot startup failure report."""
    return (
        "2024-01-15 10:23:45.123  INFO 12345 --- [main] com.example.DemoApplication : Starting DemoApplication\n"
        "***************************\n"
        "APPLICATION FAILED TO START\n"
        "***************************\n"
        "\n"
        "Description:\n"
        "\n"
        "Failed to configure a DataSource: 'url' attribute is not specified and no embedded "
        "datasource could be configured.\n"
        "\n"
        "Action:\n"
        "\n"
        "Consider defining a bean of type 'javax.sql.DataSource' in your configuration.\n"
        "2024-01-15 10:23:47.456 ERROR 12345 --- [main] o.s.boot.SpringApplication : Application run failed\n"
    )


@pytest.fixture
def java_caused_by_log() -> str:
    """Spring bean failure with a repeated cause."""
    return (
        "org.springframework.beans.factory.BeanCreationException: Error creating bean with name 'dataSource'\n"
        "\tat org.springframework.beans.factory.support.AbstractAutowireCapableBeanFactory"
        ".createBean(AbstractAutowireCapableBeanFactory.java:628)\n"
        "\tat com.example.config.DataConfig.dataSource(DataConfig.java:42)\n"
        "Caused by: java.net.ConnectException: Connection refused\n"
        "\tat com.example.db.Pool.open(Pool.java:17)\n"
        "\tat com.example.db.Pool.init(Pool.java:9)\n"
        "Caused by: java.net.ConnectException: Connection refused\n"
        "\tat com.example.db.Pool.retry(Pool.java:31)\n"
    )


@pytest.fixture
def jest_failure_log() -> str:
    """Jest failure with a source excerpt and frames."""
    return (
        "FAIL src/utils.test.js\n"
        "  ● utils › formats the date\n"
        "\n"
        "    TypeError: Cannot read properties of undefined (reading 'toISOString')\n"
        "\n"
        "      12 |   const formatDate = (date) => {\n"
        "    > 13 |     return date.toISOString();\n"
        "         |                 ^\n"
        "      14 |   };\n"
        "\n"
        "      at formatDate (src/utils.js:13:17)\n"
        "      at Object.<anonymous> (src/utils.test.js:8:12)\n"
    )


@pytest.fixture
def verbose_prompt() -> str:
    """Conversational prompt full of filler around one inline code span."""
    return (
        "Hi! I'm so frustrated, I've been trying to fix this for hours. "
        "Basically my React app crashes when I call `fetchUser()`. "
        "It must handle missing users. Thanks in advance!"
    )


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Reset module-level singletons to prevent state leakage between tests."""
    monkeypatch.setattr(config_loader, "_config_instance", None)
    monkeypatch.setattr(optimizer_module, "_optimizer_instance", None)
    yield
