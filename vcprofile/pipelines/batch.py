"""Batch runs of the builder and validator over many users.

Users are processed one after another. A failure for one user is logged and
recorded in the report, and the run moves on to the next user. Store writes
are retried with exponential backoff before a user is counted as failed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import settings
from ..documents import build_vcs
from ..engine_config import ProfileEngineConfig
from ..store import ProfileStore, StoreError, UserNotFoundError
from .builder import ProfileBuildResult, build_profile
from .matching import VerificationResult, match_profile

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Outcome of one batch pass."""
    processed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.failed)


def _with_retry(
    write: Callable[..., Awaitable[None]],
    attempts: int | None,
    backoff: float | None,
) -> Callable[..., Awaitable[None]]:
    """Wrap a store write with tenacity retries.

    Only store failures are retried; a missing user is permanent.
    """
    attempts = attempts or settings.batch.retry_attempts
    backoff = settings.batch.retry_backoff if backoff is None else backoff
    return retry(
        retry=retry_if_exception_type(StoreError) & retry_if_not_exception_type(UserNotFoundError),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=backoff, max=10),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )(write)


async def populate_profile(
    store: ProfileStore,
    user_id: str,
    *,
    config: ProfileEngineConfig | None = None,
    retry_attempts: int | None = None,
    retry_backoff: float | None = None,
) -> ProfileBuildResult:
    """Build one user's profile from all their documents and save it."""
    documents = await store.fetch_documents(user_id)
    vcs = build_vcs(documents)
    result = build_profile(vcs, config)

    save = _with_retry(store.save_built_profile, retry_attempts, retry_backoff)
    await save(user_id, result)
    return result


async def validate_profile(
    store: ProfileStore,
    user_id: str,
    *,
    config: ProfileEngineConfig | None = None,
    retry_attempts: int | None = None,
    retry_backoff: float | None = None,
) -> list[VerificationResult]:
    """Cross-check one user's stored profile against their verified documents."""
    subject = await store.fetch_subject_profile(user_id)
    documents = await store.fetch_documents(user_id, verified_only=True)
    vcs = build_vcs(documents)
    results = match_profile(subject, vcs, config)

    save = _with_retry(store.save_verification, retry_attempts, retry_backoff)
    await save(user_id, results)
    return results


async def populate_profiles(
    store: ProfileStore,
    user_ids: Iterable[str],
    *,
    config: ProfileEngineConfig | None = None,
    retry_attempts: int | None = None,
    retry_backoff: float | None = None,
) -> BatchReport:
    """Build and save profiles for a batch of users.

    Args:
        store: Persistence collaborator
        user_ids: Users to process
        config: Engine tables (defaults to the cached process config)
        retry_attempts: Store write attempts (defaults to settings.batch)
        retry_backoff: Backoff multiplier in seconds (defaults to settings.batch)

    Returns:
        BatchReport listing processed and failed users
    """
    report = BatchReport()

    for user_id in user_ids:
        try:
            await populate_profile(
                store,
                user_id,
                config=config,
                retry_attempts=retry_attempts,
                retry_backoff=retry_backoff,
            )
            report.processed.append(user_id)
        except Exception as e:
            logger.error(f"Failed to process user {user_id}: {e}", exc_info=True)
            report.failed[user_id] = str(e)
            continue

    logger.info(f"Profile population finished: {len(report.processed)} ok, {len(report.failed)} failed")
    return report


async def validate_profiles(
    store: ProfileStore,
    user_ids: Iterable[str] | None = None,
    *,
    limit: int | None = None,
    config: ProfileEngineConfig | None = None,
    retry_attempts: int | None = None,
    retry_backoff: float | None = None,
) -> BatchReport:
    """Validate stored profiles for a batch of users.

    Args:
        store: Persistence collaborator
        user_ids: Users to validate; when omitted the store's pending queue is used
        limit: Page size for the pending queue (defaults to settings.batch.size)
        config: Engine tables (defaults to the cached process config)
        retry_attempts: Store write attempts (defaults to settings.batch)
        retry_backoff: Backoff multiplier in seconds (defaults to settings.batch)

    Returns:
        BatchReport listing processed and failed users
    """
    if user_ids is None:
        user_ids = await store.users_pending_validation(limit or settings.batch.size)

    report = BatchReport()

    for user_id in user_ids:
        try:
            await validate_profile(
                store,
                user_id,
                config=config,
                retry_attempts=retry_attempts,
                retry_backoff=retry_backoff,
            )
            report.processed.append(user_id)
        except Exception as e:
            logger.error(f"Failed to validate user {user_id}: {e}", exc_info=True)
            report.failed[user_id] = str(e)
            continue

    logger.info(f"Profile validation finished: {len(report.processed)} ok, {len(report.failed)} failed")
    return report
