"""Read-only table of API keys used to authenticate callers."""

import json
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from logging_utils import mask_secret

from .errors import AuthError
from .logger import logger
from .result import Result
from .schemas import Credential

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_credentials() -> list[Credential]:
    """Built-in keys used when no credential file is configured."""
    return [
        Credential(
            key="sk-test-valid-key-123456789",
            name="Test Client",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            expires_at=None,
        ),
        Credential(
            key="sk-test-limited-key-987654321",
            name="Limited Client",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            expires_at=datetime(2026, 2, 28, tzinfo=timezone.utc),
        ),
    ]


class ApiKeyRegistry:
    """Exact-match lookup of API keys with optional expiry.

    The table is frozen at construction; ``authenticate`` only reads it and is
    safe to call from any number of concurrent requests.

    Attributes:
        _credentials: Read-only mapping of key to credential.
        _clock: Source of the current time, injectable for tests.
    """

    def __init__(self, credentials: Iterable[Credential], clock: Optional[Clock] = None):
        table = {}
        for credential in credentials:
            if credential.key in table:
                raise ValueError(f"Duplicate API key for client {credential.name!r}")
            table[credential.key] = credential
        self._credentials: Mapping[str, Credential] = MappingProxyType(table)
        self._clock = clock or utc_now

    @classmethod
    def from_file(cls, path: str, clock: Optional[Clock] = None) -> "ApiKeyRegistry":
        """Load the credential table from a JSON list of credential objects.

        Args:
            path: File holding ``[{"key", "name", "created_at", "expires_at"}, ...]``
            clock: Optional clock override

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the document is not a list of valid credentials.
        """
        document = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(document, list):
            raise ValueError(f"{path} must contain a JSON list of credentials")
        credentials = [Credential.model_validate(entry) for entry in document]
        logger.info(f"Loaded {len(credentials)} API key(s) from {path}")
        return cls(credentials, clock=clock)

    @classmethod
    def from_settings(cls, api_keys_file: Optional[str], clock: Optional[Clock] = None) -> "ApiKeyRegistry":
        """Load the credential table named by settings, or the built-in keys.

        Args:
            api_keys_file: Path of a JSON credential file, or None for the built-in table
            clock: Optional clock override

        Returns:
            ApiKeyRegistry: Registry holding the loaded credentials.
        """
        if api_keys_file:
            return cls.from_file(api_keys_file, clock=clock)
        logger.info("API_KEYS_FILE not set, using built-in API keys")
        return cls(default_credentials(), clock=clock)

    def __len__(self) -> int:
        return len(self._credentials)

    def __contains__(self, key: object) -> bool:
        return key in self._credentials

    def authenticate(self, provided_key: Optional[str]) -> Result[Credential, AuthError]:
        """Resolve the caller's key to a credential.

        Args:
            provided_key: Value of the ``x-api-key`` header, if any.

        Returns:
            Result holding the credential, or the reason it was rejected.
        """
        if not provided_key:
            logger.warning("Rejected request without API key")
            return Result.err(AuthError.missing())

        credential = self._credentials.get(provided_key)
        if credential is None:
            logger.warning(f"Rejected unknown API key {mask_secret(provided_key)}")
            return Result.err(AuthError.unknown())

        if credential.is_expired(self._clock()):
            logger.warning(f"Rejected expired API key for client {credential.name!r}")
            return Result.err(AuthError.expired())

        logger.debug(f"Authenticated client {credential.name!r}")
        return Result.ok(credential)
