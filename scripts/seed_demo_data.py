"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.core.config import get_settings
from lessonhub.core.database import SessionLocal, close_engine
from lessonhub.core.enums import RoleEnum
from lessonhub.core.security import create_access_token
from lessonhub.modules.availability.domain import parse_day_key, validate_time_ranges
from lessonhub.modules.availability.models import AvailabilityEntry
from lessonhub.modules.availability.repository import AvailabilityRepository
from lessonhub.modules.identity.models import User
from lessonhub.modules.identity.repository import IdentityRepository
from lessonhub.modules.messaging.models import Message
from lessonhub.modules.messaging.repository import MessagingRepository

DEMO_ADMIN_EMAIL = "demo-admin@lessonhub.dev"
DEMO_TEACHER_EMAIL = "demo-teacher@lessonhub.dev"
DEMO_STUDENT_EMAIL = "demo-student@lessonhub.dev"

DEMO_WEEKDAY_RANGES = {
    "Monday": (("10:00", "11:00"), ("18:00", "19:00")),
    "Thursday": (("17:00", "18:00"),),
}
DEMO_DATED_OFFSETS = (2, 5)
DEMO_DATED_RANGES = (("12:00", "13:00"), ("13:00", "14:00"))


@dataclass(slots=True)
class SeedStats:
    roles_created: int = 0
    users_created: int = 0
    users_updated: int = 0
    contact_message_created: bool = False
    entries_created: int = 0
    tokens: dict[str, str] = field(default_factory=dict)


async def _ensure_roles(session: AsyncSession) -> int:
    repository = IdentityRepository(session)
    created = 0
    for role_name in (RoleEnum.STUDENT, RoleEnum.TEACHER, RoleEnum.ADMIN):
        if await repository.get_role_by_name(role_name) is None:
            await repository.create_role(role_name)
            created += 1
    return created


async def _ensure_user(
    session: AsyncSession,
    *,
    email: str,
    display_name: str,
    role_name: RoleEnum,
) -> tuple[User, bool]:
    repository = IdentityRepository(session)
    role = await repository.get_role_by_name(role_name)
    if role is None:
        raise RuntimeError(f"Role {role_name} was not found after ensure_roles")

    user = await repository.get_user_by_email(email)
    created = False
    if user is None:
        user = User(
            email=email,
            display_name=display_name,
            is_active=True,
            role_id=role.id,
        )
        session.add(user)
        created = True
    else:
        if user.role_id != role.id:
            user.role_id = role.id
        if not user.is_active:
            user.is_active = True

    await session.flush()
    await session.refresh(user, attribute_names=["role"])
    return user, created


async def _ensure_contact(session: AsyncSession, *, student: User, teacher: User) -> bool:
    """Give the demo student a prior message so booking requests pass the contact gate."""
    if await MessagingRepository(session).has_message_between(student.id, teacher.id):
        return False
    session.add(
        Message(
            sender_id=student.id,
            recipient_id=teacher.id,
            body="Hi! Could we schedule a trial lesson?",
        ),
    )
    await session.flush()
    return True


def _build_demo_inventory(today: datetime) -> list[tuple[str, tuple[tuple[str, str], ...]]]:
    inventory = list(DEMO_WEEKDAY_RANGES.items())
    for day_offset in DEMO_DATED_OFFSETS:
        target = (today + timedelta(days=day_offset)).date().isoformat()
        inventory.append((target, DEMO_DATED_RANGES))
    return inventory


async def _ensure_inventory(session: AsyncSession, *, teacher: User) -> int:
    repository = AvailabilityRepository(session)
    created = 0
    for raw_day, raw_ranges in _build_demo_inventory(datetime.now(UTC)):
        day_key = parse_day_key(raw_day)
        existing = await session.scalar(
            select(AvailabilityEntry).where(
                AvailabilityEntry.teacher_id == teacher.id,
                AvailabilityEntry.day == day_key.key,
            ),
        )
        if existing is not None:
            continue

        await repository.create_entry(teacher.id, day_key, validate_time_ranges(raw_ranges))
        created += 1
    return created


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            stats.roles_created = await _ensure_roles(session)

            admin_user, admin_created = await _ensure_user(
                session,
                email=DEMO_ADMIN_EMAIL,
                display_name="Demo Admin",
                role_name=RoleEnum.ADMIN,
            )
            teacher_user, teacher_created = await _ensure_user(
                session,
                email=DEMO_TEACHER_EMAIL,
                display_name="Demo Teacher",
                role_name=RoleEnum.TEACHER,
            )
            student_user, student_created = await _ensure_user(
                session,
                email=DEMO_STUDENT_EMAIL,
                display_name="Demo Student",
                role_name=RoleEnum.STUDENT,
            )

            stats.users_created = sum([admin_created, teacher_created, student_created])
            stats.users_updated = 3 - stats.users_created

            stats.contact_message_created = await _ensure_contact(
                session,
                student=student_user,
                teacher=teacher_user,
            )
            stats.entries_created = await _ensure_inventory(session, teacher=teacher_user)

            await session.commit()
        except Exception:
            await session.rollback()
            raise

    for label, user in (("admin", admin_user), ("teacher", teacher_user), ("student", student_user)):
        stats.tokens[label] = create_access_token(str(user.id), role=user.role.name.value)
    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for LessonHub (users, prior contact message, "
            "teacher availability) and print development access tokens."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Roles created: {stats.roles_created}")
    print(f"- Users created: {stats.users_created}")
    print(f"- Users updated: {stats.users_updated}")
    print(f"- Contact message created: {stats.contact_message_created}")
    print(f"- Availability entries created: {stats.entries_created}")
    print("")
    print("Access tokens (non-production only):")
    for label, token in stats.tokens.items():
        print(f"- {label}: {token}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
