"""
Seed the admin account and the sample departments.

Run after init_db with env set:
  ADMIN_EMAIL=admin@example.com
  ADMIN_PASSWORD=YourSecurePassword

Safe to re-run: existing users and active departments with the same name are left alone.
"""
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from report_app.auth.models import User
from report_app.auth.security import hash_password
from report_app.core.config import settings
from report_app.core.models import Department
from report_app.db.session import AsyncSessionLocal

SAMPLE_DEPARTMENTS = [
    ("General Planning", "Planning and consolidated reporting"),
    ("Nursing", "Nursing and patient care"),
    ("Research and Training", "Scientific research and training"),
    ("Quality Management", "Hospital quality management"),
    ("Finance and Accounting", "Financial management"),
    ("Administration", "General administration"),
    ("Human Resources", "Staff organization"),
    ("Supplies and Equipment", "Medical supplies management"),
    ("Outpatient Clinic", "Outpatient examination and treatment"),
    ("Laboratory", "Medical testing"),
]


async def seed_admin(db: AsyncSession) -> None:
    if not settings.admin_email or not settings.admin_password:
        print("No ADMIN_EMAIL/ADMIN_PASSWORD; skipping admin user.")
        return
    result = await db.execute(select(User).where(User.email == settings.admin_email))
    if result.scalar_one_or_none():
        print("Admin user already exists:", settings.admin_email)
        return
    db.add(
        User(
            email=settings.admin_email,
            name=settings.admin_name,
            password_hash=hash_password(settings.admin_password),
        )
    )
    await db.flush()
    print("Created admin user:", settings.admin_email)


async def seed_departments(db: AsyncSession) -> None:
    result = await db.execute(select(Department.name).where(Department.active_filter()))
    existing = set(result.scalars().all())
    created = 0
    for name, description in SAMPLE_DEPARTMENTS:
        if name in existing:
            continue
        db.add(Department(name=name, description=description))
        created += 1
    await db.flush()
    print(f"Created {created} department(s).")


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_admin(db)
            await seed_departments(db)
            await db.commit()
            print("Seed done.")
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
