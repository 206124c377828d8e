"""
OAuth Account Pool Manager

Runs an upstream call against a pool of OAuth accounts: the call is tried
with one account at a time, and a failure moves on to an account not tried
yet. The account that last succeeded is preferred for the next call.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, TypeVar

from llm_bridge.common.errors import LLMBridgeError
from llm_bridge.common.retry import Err, Ok, Result, capture, retry_async
from llm_bridge.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OAuthAccount:
    id: str
    email: str = ""
    # Provider-specific JSON (e.g. project_id for Antigravity, account_id for Codex)
    provider_metadata: str = "{}"


@dataclass
class AccountSelection:
    """An account chosen for one attempt, with its current access token."""

    account: OAuthAccount
    access_token: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class AccountSelector(Protocol):
    """Source of accounts for ``OAuthPoolManager``."""

    async def select_account(
        self, provider_type: str, exclude_ids: List[str]
    ) -> Optional[AccountSelection]:
        ...

    def record_successful_account(self, provider_type: str, account_id: str) -> None:
        ...


class PoolExhaustedError(LLMBridgeError):
    """No account was left to try."""

    error_type = "oauth_pool_exhausted"
    status_code = 502

    def __init__(self, message: str, attempted: int = 0):
        super().__init__(message=message, code="oauth_pool_exhausted")
        self.attempted = attempted


def parse_metadata(raw: Optional[str]) -> Dict[str, Any]:
    """Decode ``provider_metadata``; anything unparseable yields an empty dict."""
    if not raw:
        return {}
    try:
        metadata = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring invalid OAuth account metadata")
        return {}
    return metadata if isinstance(metadata, dict) else {}


class InMemoryAccountPool:
    """
    Account pool held in memory.

    Prefers the last account that succeeded for a provider when it is not
    excluded, otherwise the first remaining account in insertion order.
    """

    def __init__(self):
        self._accounts: Dict[str, List[OAuthAccount]] = {}
        self._tokens: Dict[str, str] = {}
        self._last_success: Dict[str, str] = {}

    def add_account(self, provider_type: str, account: OAuthAccount, access_token: str) -> None:
        self._accounts.setdefault(provider_type, []).append(account)
        self._tokens[account.id] = access_token

    def remove_account(self, provider_type: str, account_id: str) -> None:
        accounts = self._accounts.get(provider_type, [])
        self._accounts[provider_type] = [a for a in accounts if a.id != account_id]
        self._tokens.pop(account_id, None)
        if self._last_success.get(provider_type) == account_id:
            del self._last_success[provider_type]

    def count(self, provider_type: str) -> int:
        return len(self._accounts.get(provider_type, []))

    async def select_account(
        self, provider_type: str, exclude_ids: List[str]
    ) -> Optional[AccountSelection]:
        available = [
            account
            for account in self._accounts.get(provider_type, [])
            if account.id not in exclude_ids
        ]
        if not available:
            return None

        preferred = self._last_success.get(provider_type)
        account = next((a for a in available if a.id == preferred), available[0])
        return AccountSelection(
            account=account,
            access_token=self._tokens[account.id],
            metadata=parse_metadata(account.provider_metadata),
        )

    def record_successful_account(self, provider_type: str, account_id: str) -> None:
        self._last_success[provider_type] = account_id


class OAuthPoolManager:
    """
    Account rotation with bounded retry.

    Args:
        selector: Account source
        max_attempts: Accounts tried per call, defaults to configuration
    """

    def __init__(self, selector: AccountSelector, max_attempts: Optional[int] = None):
        self.selector = selector
        self.max_attempts = (
            max_attempts if max_attempts is not None else get_settings().OAUTH_MAX_RETRY_ATTEMPTS
        )

    async def execute_with_retry(
        self,
        provider_type: str,
        executor: Callable[[AccountSelection], Awaitable[T]],
    ) -> T:
        """
        Run ``executor`` with successive accounts until one succeeds.

        Every failure rotates to an untried account. When accounts run out,
        the last failure carrying an HTTP status is raised as is so callers
        can relay it; without one a ``PoolExhaustedError`` is raised.

        Raises:
            The last executor error, or PoolExhaustedError
        """
        attempted: List[str] = []
        last_error: Optional[BaseException] = None

        async def attempt(n: int) -> Result[T]:
            nonlocal last_error
            selection = await self.selector.select_account(provider_type, list(attempted))
            if selection is None:
                if last_error is not None and getattr(last_error, "status", None):
                    return Err(last_error, retryable=False)
                if attempted:
                    message = f"All {len(attempted)} available accounts failed"
                else:
                    message = "No available OAuth accounts"
                return Err(PoolExhaustedError(message, attempted=len(attempted)), retryable=False)

            account_id = selection.account.id
            attempted.append(account_id)
            logger.info(
                "OAuth attempt: provider=%s, account=%s, attempt=%s/%s",
                provider_type,
                account_id,
                n + 1,
                self.max_attempts,
            )

            result = await capture(executor(selection))
            if isinstance(result, Ok):
                self.selector.record_successful_account(provider_type, account_id)
                return result

            last_error = result.error
            logger.warning(
                "OAuth account failed, rotating: provider=%s, account=%s, status=%s, error=%s",
                provider_type,
                account_id,
                getattr(result.error, "status", None),
                result.error,
            )
            return Err(result.error, retryable=True)

        return await retry_async(attempt, max_attempts=self.max_attempts)
