import sys

from leaveflow.database import SessionLocal, init_db
from leaveflow.services.directory import DirectoryService
from leaveflow.services.store import SqlStore

init_db()
db = SessionLocal()

try:
    directory = DirectoryService(SqlStore(db))

    if "--reset" in sys.argv:
        users = directory.reset()
        print(f"Reset leave data, {len(users)} demo users restored")
    elif directory.seed_demo_users():
        print("Seeded demo users")
    else:
        print("Users already present. Skipping.")

    for user in directory.list_users():
        print(f" - ID: {user.id}, Name: {user.name}, Role: {user.role.value}, Email: {user.email}")
finally:
    db.close()
