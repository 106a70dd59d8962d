"""Settings used by the test-suite: SQLite database, quiet logging."""

from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

LOGGING["root"]["level"] = "WARNING"  # noqa: F405

# bcrypt's minimum work factor keeps user fixtures fast.
BCRYPT_ROUNDS = 4
