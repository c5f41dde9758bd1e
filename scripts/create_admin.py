import argparse
import asyncio
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv

from app.auth.password import PasswordHasher, generate_temp_password, validate_password_strength
from app.auth.store import CredentialStore
from app.core.config import Settings
from app.core.database import Database
from app.core.exceptions import DuplicateIdentity
from app.models.audit import AuditLog, AuditAction
from app.models.user import UserRole

# CLI Setup
parser = argparse.ArgumentParser(description='Create an admin account for the portfolio CMS')
parser.add_argument('--email', type=str, required=True, help='Admin email address')
parser.add_argument('--name', type=str, default='Admin User', help='Display name')
parser.add_argument('--password', type=str, default=None,
                    help='Initial password (a random one is generated if omitted)')


async def create_admin(settings: Settings, email: str, name: str, password: str) -> int:
    database = Database(settings.database_url, echo=settings.sql_debug)
    hasher = PasswordHasher.from_settings(settings)
    try:
        await database.init()
        async with database.session_maker() as session:
            store = CredentialStore(session)
            admin = await store.create(
                email=email,
                password_hash=await hasher.hash_async(password),
                name=name,
                role=UserRole.ADMIN,
            )
            session.add(AuditLog.create(
                action=AuditAction.ADMIN_SEEDED,
                user_id=admin.id,
                user_email=admin.email,
                resource_type="user",
                resource_id=admin.id,
                details={"source": "create_admin script"},
            ))
            await session.commit()
            return admin.id
    finally:
        await database.close()


def main() -> int:
    args = parser.parse_args()
    load_dotenv()
    settings = Settings.from_env()

    password = args.password
    generated = password is None
    if generated:
        password = generate_temp_password()
    else:
        ok, issues = validate_password_strength(password)
        if not ok:
            for issue in issues:
                print(f"Error: {issue}")
            return 1

    try:
        user_id = asyncio.run(create_admin(settings, args.email, args.name, password))
    except DuplicateIdentity as e:
        print(f"Error: {e.email} is already registered.")
        return 1

    print(f"Admin account created (id={user_id}): {args.email.lower().strip()}")
    if generated:
        print(f"Temporary password: {password}")
        print("Change this password after the first login.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
