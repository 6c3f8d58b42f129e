"""Persistence for built profiles and verification results.

The engine itself never writes anything; batch runs hand their results to a
ProfileStore. SqlAlchemyProfileStore is the reference implementation over the
users / user_info / user_docs tables. Each write is one unit of work that is
committed on success and rolled back on failure.
"""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, AsyncIterator, Callable, Protocol, Sequence

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import models
from .pipelines.builder import ProfileBuildResult
from .pipelines.matching import VerificationResult, all_verified

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when reading or writing profile data fails."""
    pass


class UserNotFoundError(StoreError):
    """Raised when a user id has no users row."""
    pass


def _to_text(value: Any) -> str | None:
    return None if value is None else str(value)


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _to_int(value: Any) -> int | None:
    number = _to_number(value)
    return None if number is None else int(number)


def _to_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


# Profile field -> (user_info column attribute, coercion)
USER_INFO_COLUMNS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "fatherName": ("father_name", _to_text),
    "gender": ("gender", _to_text),
    "caste": ("caste", _to_text),
    "aadhaar": ("aadhaar", _to_text),
    "annualIncome": ("annual_income", _to_number),
    "class": ("class_", _to_int),
    "studentType": ("student_type", _to_text),
    "previousYearMarks": ("previous_year_marks", _to_text),
    "dob": ("dob", _to_text),
    "state": ("state", _to_text),
    "udid": ("udid", _to_text),
    "disabilityType": ("disability_type", _to_text),
    "disabilityRange": ("disability_range", _to_text),
    "bankAccountHolderName": ("bank_account_holder_name", _to_text),
    "bankAccountNumber": ("bank_account_number", _to_text),
    "bankIfscCode": ("bank_ifsc_code", _to_text),
    "bankName": ("bank_name", _to_text),
    "bankAddress": ("bank_address", _to_text),
    "branchCode": ("branch_code", _to_text),
    "nspOtr": ("nsp_otr", _to_text),
    "tuitionAndAdminFeePaid": ("tuition_and_admin_fee_paid", _to_text),
    "miscFeePaid": ("misc_fee_paid", _to_text),
    "currentSchoolName": ("current_school_name", _to_text),
}


class ProfileStore(Protocol):
    """What the batch driver needs from persistence."""

    async def list_user_ids(self, limit: int | None = None) -> list[str]: ...

    async def users_pending_validation(self, limit: int) -> list[str]: ...

    async def fetch_documents(self, user_id: str, *, verified_only: bool = False) -> Sequence[Any]: ...

    async def fetch_subject_profile(self, user_id: str) -> dict[str, Any]: ...

    async def save_built_profile(self, user_id: str, result: ProfileBuildResult) -> None: ...

    async def save_verification(self, user_id: str, results: list[VerificationResult]) -> None: ...


class SqlAlchemyProfileStore:
    """ProfileStore backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def unit_of_work(self, action: str) -> AsyncIterator[AsyncSession]:
        """Commit on success, roll back and raise StoreError on failure."""
        try:
            yield self.session
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"{action} failed: {e}")
            raise StoreError(f"{action} failed: {e}") from e

    async def _get_user(self, user_id: str) -> models.User:
        result = await self.session.execute(
            select(models.User).where(models.User.user_id == user_id)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def _get_info(self, user_id: str) -> models.UserInfo | None:
        result = await self.session.execute(
            select(models.UserInfo).where(models.UserInfo.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _get_or_create_info(self, user_id: str) -> models.UserInfo:
        info = await self._get_info(user_id)
        if info is None:
            info = models.UserInfo(user_id=user_id)
            self.session.add(info)
        return info

    async def list_user_ids(self, limit: int | None = None) -> list[str]:
        query = select(models.User.user_id).order_by(models.User.created_at)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def users_pending_validation(self, limit: int) -> list[str]:
        """Users to validate next.

        Never-validated users come first, then failed validations, then the
        rest; within a group the most recently touched come first.
        """
        info = models.UserInfo
        status_order = case(
            (info.fields_verified_at.is_(None), 0),
            (info.fields_verified.is_(False), 1),
            else_=2,
        )
        recency = case(
            (info.fields_verified_at.is_(None), info.updated_at),
            else_=info.fields_verified_at,
        )
        result = await self.session.execute(
            select(info.user_id).order_by(status_order, recency.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def fetch_documents(self, user_id: str, *, verified_only: bool = False) -> list[models.UserDoc]:
        query = select(models.UserDoc).where(models.UserDoc.user_id == user_id)
        if verified_only:
            query = query.where(models.UserDoc.doc_verified.is_(True))
        result = await self.session.execute(query.order_by(models.UserDoc.uploaded_at))
        return list(result.scalars().all())

    async def fetch_subject_profile(self, user_id: str) -> dict[str, Any]:
        """Stored attributes that validation cross-checks."""
        user = await self._get_user(user_id)
        info = await self._get_info(user_id)
        return {
            "firstName": user.first_name,
            "middleName": user.middle_name,
            "lastName": user.last_name,
            "gender": info.gender if info else None,
            "dob": user.dob.isoformat() if user.dob else None,
            "income": info.annual_income if info else None,
            "caste": info.caste if info else None,
        }

    async def save_built_profile(self, user_id: str, result: ProfileBuildResult) -> None:
        """Write a freshly built profile.

        The user's verified flag is reset in its own commit first, so a failed
        write never leaves a stale "verified" profile behind.
        """
        user = await self._get_user(user_id)

        try:
            async with self.unit_of_work(f"Resetting profile of user {user_id}"):
                user.fields_verified = False
                user.fields_verified_at = datetime.utcnow()
                user.fields_verification_data = None
        except StoreError:
            user = await self._get_user(user_id)

        profile = result.profile
        async with self.unit_of_work(f"Saving profile of user {user_id}"):
            user.first_name = profile.get("firstName") or user.first_name
            user.last_name = profile.get("lastName") or user.last_name
            user.middle_name = profile.get("middleName")
            user.dob = _to_date(profile.get("dob"))
            user.fields_verified = result.is_complete
            user.fields_verified_at = datetime.utcnow()
            user.fields_verification_data = dict(result.provenance)

            info = await self._get_or_create_info(user_id)
            for field, (column, coerce) in USER_INFO_COLUMNS.items():
                setattr(info, column, coerce(profile.get(field)))

        logger.info(f"Saved built profile for user {user_id} (complete={result.is_complete})")

    async def save_verification(self, user_id: str, results: list[VerificationResult]) -> None:
        async with self.unit_of_work(f"Saving verification of user {user_id}"):
            info = await self._get_or_create_info(user_id)
            info.fields_verified = all_verified(results)
            info.fields_verified_data = [r.to_dict() for r in results]
            info.fields_verified_at = datetime.utcnow()

        logger.info(f"Saved verification for user {user_id}: {sum(r.verified for r in results)}/{len(results)} verified")
