"""Seed script — creates the tables, the first SUPER_ADMIN and all districts.

Run this once to bootstrap an empty database.

Usage:
    python -m app.seed

Creates:
    - 1 SUPER_ADMIN account: admin / Admin@123 (change after first login)
    - the 33 districts of Telangana
"""

import asyncio

from sqlalchemy import select

from app.database import Base, async_session, engine
from app.models import District, User
from app.utils.password import hash_password
from app.utils.rbac import Role

ADMIN_USERNAME: str = "admin"
ADMIN_EMAIL: str = "admin@tbba.org"
ADMIN_PASSWORD: str = "Admin@123"

# (name, code, headquarters)
TELANGANA_DISTRICTS: list[tuple[str, str, str]] = [
    ("Adilabad", "ADB", "Adilabad"),
    ("Bhadradri Kothagudem", "BDK", "Kothagudem"),
    ("Hanumakonda", "HNK", "Hanumakonda"),
    ("Hyderabad", "HYD", "Hyderabad"),
    ("Jagtial", "JGT", "Jagtial"),
    ("Jangaon", "JGN", "Jangaon"),
    ("Jayashankar Bhupalpally", "JBP", "Bhupalpally"),
    ("Jogulamba Gadwal", "JGL", "Gadwal"),
    ("Kamareddy", "KMR", "Kamareddy"),
    ("Karimnagar", "KNR", "Karimnagar"),
    ("Khammam", "KMM", "Khammam"),
    ("Kumuram Bheem Asifabad", "KBA", "Asifabad"),
    ("Mahabubabad", "MHB", "Mahabubabad"),
    ("Mahabubnagar", "MBN", "Mahabubnagar"),
    ("Mancherial", "MNC", "Mancherial"),
    ("Medak", "MDK", "Medak"),
    ("Medchal-Malkajgiri", "MMG", "Shamirpet"),
    ("Mulugu", "MLG", "Mulugu"),
    ("Nagarkurnool", "NGK", "Nagarkurnool"),
    ("Nalgonda", "NLG", "Nalgonda"),
    ("Narayanpet", "NRP", "Narayanpet"),
    ("Nirmal", "NRM", "Nirmal"),
    ("Nizamabad", "NZB", "Nizamabad"),
    ("Peddapalli", "PDP", "Peddapalli"),
    ("Rajanna Sircilla", "RSL", "Sircilla"),
    ("Rangareddy", "RRD", "Shamshabad"),
    ("Sangareddy", "SRD", "Sangareddy"),
    ("Siddipet", "SDP", "Siddipet"),
    ("Suryapet", "SRP", "Suryapet"),
    ("Vikarabad", "VKB", "Vikarabad"),
    ("Wanaparthy", "WNP", "Wanaparthy"),
    ("Warangal", "WGL", "Warangal"),
    ("Yadadri Bhuvanagiri", "YBG", "Bhongir"),
]


async def seed() -> None:
    """Seed the database with initial data.

    Idempotent: the admin account and the districts are each skipped when
    rows already exist.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        if (await db.execute(select(User).limit(1))).scalar_one_or_none() is None:
            admin = User(
                username=ADMIN_USERNAME,
                email=ADMIN_EMAIL,
                password_hash=hash_password(ADMIN_PASSWORD),
                first_name="System",
                last_name="Administrator",
                is_active=True,
                email_verified=True,
                role_links=[],
            )
            admin.add_role(Role.SUPER_ADMIN)
            db.add(admin)
            print(f"Seeded admin user: {ADMIN_USERNAME}/{ADMIN_PASSWORD}")
        else:
            print("Users exist. Skipping admin account.")

        if (await db.execute(select(District).limit(1))).scalar_one_or_none() is None:
            for name, code, headquarters in TELANGANA_DISTRICTS:
                db.add(District(name=name, code=code, headquarters=headquarters, is_active=True))
            print(f"Seeded {len(TELANGANA_DISTRICTS)} districts")
        else:
            print("Districts exist. Skipping.")

        await db.commit()


if __name__ == "__main__":
    asyncio.run(seed())
