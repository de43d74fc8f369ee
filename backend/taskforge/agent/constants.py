"""Constants for the agent engine.

Single source of truth for all magic numbers used across the executor,
tools, and the LLM client.
"""

# ---------------------------------------------------------------------------
# Executor loop limits
# ---------------------------------------------------------------------------
MAX_ITERATIONS = 10

# ---------------------------------------------------------------------------
# Resource limits
# ---------------------------------------------------------------------------
MAX_FILE_READ_BYTES = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Shell execution
# ---------------------------------------------------------------------------
SHELL_DEFAULT_TIMEOUT_MS = 30_000

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
SEARCH_MAX_RESULTS = 100
SEARCH_LINE_MAX_CHARS = 100
SEARCH_SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        "dist",
        "build",
        "coverage",
        ".next",
        ".nuxt",
        "__pycache__",
        ".pytest_cache",
        "venv",
        ".venv",
        "target",
    }
)

# ---------------------------------------------------------------------------
# LLM retry
# ---------------------------------------------------------------------------
LLM_MAX_RETRIES = 3
LLM_RETRY_BASE_DELAY_SECONDS = 1.0
LLM_RETRY_MAX_DELAY_SECONDS = 15.0
LLM_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
LLM_REQUEST_TIMEOUT_SECONDS = 120.0
LLM_CONNECT_TIMEOUT_SECONDS = 10.0
