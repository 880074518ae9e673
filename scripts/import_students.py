import argparse
import asyncio
from pathlib import Path

from database.db import SessionLocal, init_db
from models.users import User as UserModel  # ✅ 모델 import
from services.bulk_import import import_students, names_from_csv, parse_student_names
from services.data_client import data_client
from services.grade_store import GradeStore


def read_names(path: Path) -> list:
    content = path.read_text(encoding="utf-8-sig")
    if path.suffix.lower() == ".csv":
        return names_from_csv(content)
    return parse_student_names(content)


def find_owner_id(email: str):
    with SessionLocal() as db:
        user = db.query(UserModel).filter(UserModel.email == email.strip().lower()).first()
        return user.id if user else None


async def migrate_students(path: Path, email: str) -> int:
    owner_id = find_owner_id(email)
    if owner_id is None:
        print(f"❌ 가입된 사용자가 없습니다: {email}")
        return 1

    store = GradeStore(data_client.for_owner(owner_id))
    if not await store.fetch_all(owner_id):
        print(f"❌ 기존 데이터를 불러오지 못했습니다: {store.error}")
        return 1

    result = await import_students(store, read_names(path), owner_id)
    print(f"✅ 학생 일괄 등록 완료: 성공 {result.success}, 실패 {result.failed}, 건너뜀 {result.skipped}")
    for error in result.errors:
        print(f"  - {error}")
    return 0 if not result.errors else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="CSV/TXT 파일의 학생 이름을 일괄 등록합니다")
    parser.add_argument("path", type=Path, help="학생 이름 파일 (.csv는 첫 번째 열, 그 외는 줄/쉼표/세미콜론 구분)")
    parser.add_argument("--email", required=True, help="학생을 등록할 사용자 이메일")
    args = parser.parse_args(argv)

    init_db()
    return asyncio.run(migrate_students(args.path, args.email))


if __name__ == "__main__":
    raise SystemExit(main())
