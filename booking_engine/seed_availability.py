# ===== seed_availability.py =====
import asyncio
from datetime import date, time

from sqlalchemy import select

from booking_engine.config.database import SessionLocal, create_tables
from booking_engine.models.availability import AppointmentSettings, DateOverride

OPEN_DAYS = range(1, 6)  # Tuesday ... Saturday


async def seed_availability():
    await create_tables()

    async with SessionLocal() as db:
        existing = await db.execute(select(AppointmentSettings.id).limit(1))
        if existing.first():
            print("ℹ️  Weekly template already present, nothing to seed")
            return

        try:
            # 1. Tue–Sat 10–17, 60 min slots; Sunday and Monday closed
            rules = [
                AppointmentSettings(
                    day_of_week=day,
                    is_open=day in OPEN_DAYS,
                    open_time=time(10, 0) if day in OPEN_DAYS else None,
                    close_time=time(17, 0) if day in OPEN_DAYS else None,
                    slot_duration_minutes=60,
                )
                for day in range(7)
            ]

            # 2. Example override: closed every Christmas
            christmas = DateOverride(
                date=date(date.today().year, 12, 25),
                is_closed=True,
                reason="Kerstmis",
                is_recurring=True,
                show_on_website=True,
            )

            db.add_all(rules + [christmas])
            await db.commit()
            print("✅ Weekly template and overrides seeded successfully!")

        except Exception as e:
            await db.rollback()
            print("❌ Error seeding availability:", e)
            raise


if __name__ == "__main__":
    asyncio.run(seed_availability())
