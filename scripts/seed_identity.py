"""
Seed users, folders and folder ACL entries for a local library panels service.

Users and folders are owned by other subsystems; this script only fills the
tables the bundled UserMetaResolver and FolderAclGuard read from.

Usage:
    python scripts/seed_identity.py --org-id 1 --user admin:admin@example.com \
        --folder team-a:"Team A" --acl team-a:Editor:Edit
"""
import argparse
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select

from librarypanels.database import SessionLocal, init_db
from librarypanels.models import Folder, FolderAcl, FolderPermission, OrgRole, User


def _split(value: str, parts: int, label: str) -> list:
    fields = value.split(":", parts - 1)
    if len(fields) != parts:
        raise SystemExit(f"invalid {label} '{value}'")
    return fields


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed identity tables for library panels")
    parser.add_argument("--org-id", type=int, default=1)
    parser.add_argument("--user", action="append", default=[], help="login:email")
    parser.add_argument("--folder", action="append", default=[], help="uid:title")
    parser.add_argument("--acl", action="append", default=[], help="folder_uid:Role:Permission")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        for entry in args.user:
            login, email = _split(entry, 2, "user")
            if db.scalars(select(User).where(User.login == login)).first() is None:
                db.add(User(login=login, email=email, name=login))
                print(f"user {login}")

        for entry in args.folder:
            uid, title = _split(entry, 2, "folder")
            if db.scalars(select(Folder).where(Folder.org_id == args.org_id, Folder.uid == uid)).first() is None:
                db.add(Folder(org_id=args.org_id, uid=uid, title=title))
                print(f"folder {uid}")
        db.flush()

        for entry in args.acl:
            uid, role, permission = _split(entry, 3, "acl")
            folder = db.scalars(select(Folder).where(Folder.org_id == args.org_id, Folder.uid == uid)).first()
            if folder is None:
                raise SystemExit(f"unknown folder '{uid}'")
            db.add(FolderAcl(
                org_id=args.org_id,
                folder_id=folder.id,
                role=OrgRole(role),
                permission=FolderPermission(permission),
            ))
            print(f"acl {uid} {role}:{permission} (folder id {folder.id})")

        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
