"""Reader for identity fields in the client's local account file."""

import logging
import os
from pathlib import Path

import orjson

from claude_usage_monitor.types.snapshot import AccountInfo
from claude_usage_monitor.utils.claude_paths import ACCOUNT_CONFIG_PATH

logger = logging.getLogger(__name__)


class AccountConfigReader:
    """Reads ``oauthAccount`` from ~/.claude.json, cached by (mtime, size)."""

    def __init__(self, file_path: str | Path | None = None):
        self._file_path = Path(file_path) if file_path else ACCOUNT_CONFIG_PATH
        self._cached: AccountInfo | None = None
        self._cached_stamp: tuple[float, int] | None = None

    def invalidate(self):
        self._cached = None
        self._cached_stamp = None

    def read(self) -> AccountInfo | None:
        try:
            stat = os.stat(self._file_path)
        except OSError:
            logger.info("Account config not found: %s", self._file_path)
            return None

        stamp = (stat.st_mtime, stat.st_size)
        if self._cached is not None and self._cached_stamp == stamp:
            return self._cached

        try:
            raw = orjson.loads(self._file_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning("Cannot read account config %s: %s", self._file_path, e)
            return None
        if not isinstance(raw, dict):
            return None

        account = raw.get("oauthAccount")
        if not isinstance(account, dict):
            account = {}

        info = AccountInfo(
            organization_name=_str_or_none(account.get("organizationName")),
            display_name=_str_or_none(account.get("displayName")),
            billing_type=_str_or_none(account.get("billingType") or raw.get("billingType")),
        )
        self._cached = info
        self._cached_stamp = stamp
        return info


def _str_or_none(value) -> str | None:
    return value if isinstance(value, str) and value else None
