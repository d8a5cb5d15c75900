"""
Admin bootstrap
- creates the tables when missing
- seeds every module_action permission and the Admin role
- creates the admin user and prints a fresh API token
"""

import argparse
import asyncio

from dcc_sfa.core.logging_config import setup_logging
from dcc_sfa.db.init_db import ensure_tables_exist
from dcc_sfa.db.seed import seed_admin
from dcc_sfa.db.session import SessionLocal


async def main(email: str, name: str):
    await ensure_tables_exist()
    async with SessionLocal() as db:
        api_token = await seed_admin(db, email=email, name=name)
    print("=" * 50)
    print(f"Admin user : {email}")
    print(f"API token  : {api_token.token}")
    print(f"Expires at : {api_token.expires_at:%Y-%m-%d}")
    print("=" * 50)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the admin user and an API token")
    parser.add_argument("--email", default="admin@dcc-sfa.local")
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()

    setup_logging("INFO")
    asyncio.run(main(args.email, args.name))
