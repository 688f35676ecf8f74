# File: bootstrap_admin.py
# Project: clearcity-api
#
# Promotes an existing account to admin. The admin endpoints need one admin to
# exist already, so the first one is created from the command line:
#
#     python bootstrap_admin.py someone@example.com

import sys

from clearcity.db.session import SessionLocal
from clearcity.services.admin import promote

def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print("usage: python bootstrap_admin.py <email>")
        return 2
    db = SessionLocal()
    try:
        user = promote(db, argv[1])
    finally:
        db.close()
    if not user:
        print(f"no user with email {argv[1]}")
        return 1
    print(f"{user.email} is now an admin (id={user.id})")
    return 0

if __name__ == "__main__":
    sys.exit(main(sys.argv))
