"""Test configuration: isolated state files and a known bot token."""

import json
import os
import sys
import tempfile
from pathlib import Path
from urllib.parse import urlencode

import pytest

_STATE_DIR = Path(tempfile.mkdtemp(prefix="klovn-tests-"))

os.environ["TELEGRAM_BOT_TOKEN"] = "123456:TEST-TOKEN"
os.environ["DEBUG"] = "0"
os.environ["AUTOBUS_STATE_PATH"] = str(_STATE_DIR / "autobus.json")
os.environ["DUEL_STATE_PATH"] = str(_STATE_DIR / "duels.json")
os.environ["USERS_STATE_PATH"] = str(_STATE_DIR / "users.json")
os.environ["NOTIFY_DEBOUNCE_SECONDS"] = "0.05"

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from shared.auth import sign_init_data  # noqa: E402

BOT_TOKEN = os.environ["TELEGRAM_BOT_TOKEN"]


def make_init_data(user_id: int, first_name: str = "", *, token: str = BOT_TOKEN, **user_fields) -> str:
    """Build an initData string signed the way Telegram signs it."""

    user = {"id": user_id, "first_name": first_name, **user_fields}
    fields = {"auth_date": "1700000000", "query_id": "AAE-test", "user": json.dumps(user)}
    return urlencode({**fields, "hash": sign_init_data(fields, token)})


@pytest.fixture
def anyio_backend() -> str:
    """Limit AnyIO-powered tests to asyncio."""

    return "asyncio"
