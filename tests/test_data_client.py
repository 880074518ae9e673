import pytest

from services.data_client import DataStoreError


def _add_student(client, owner_id, name="김하늘"):
    return client.table("students").insert({"name": name, "user_id": owner_id}).select().single().execute().data


def test_insert_returns_row_with_generated_id(owner_client, owner_id):
    row = _add_student(owner_client, owner_id)
    assert row["id"]
    assert row["name"] == "김하늘"
    assert row["user_id"] == owner_id
    assert row["created_at"] is not None


def test_select_filters_and_orders(owner_client, owner_id):
    for name in ["가", "나", "다"]:
        _add_student(owner_client, owner_id, name)

    result = owner_client.table("students").select("*").eq("user_id", owner_id).order("created_at").execute()
    assert [r["name"] for r in result.data] == ["가", "나", "다"]

    result = owner_client.table("students").select("id, name").in_("name", ["가", "다"]).execute()
    assert sorted(r["name"] for r in result.data) == ["가", "다"]
    assert set(result.data[0]) == {"id", "name"}


def test_single_raises_when_no_row(owner_client):
    with pytest.raises(DataStoreError) as exc:
        owner_client.table("students").update({"name": "x"}).eq("id", "missing").select().single().execute()
    assert exc.value.code == "PGRST116"


def test_unique_pair_violation_maps_to_23505(owner_client, owner_id):
    student = _add_student(owner_client, owner_id)
    test = owner_client.table("tests").insert({"name": "퀴즈", "maxgrade": 10, "user_id": owner_id}).select().single().execute().data
    row = {"studentid": student["id"], "testid": test["id"], "value": 5}
    owner_client.table("grades").insert(row).execute()

    with pytest.raises(DataStoreError) as exc:
        owner_client.table("grades").insert(row).execute()
    assert exc.value.code == "23505"


def test_unknown_column_and_table(owner_client):
    with pytest.raises(DataStoreError) as exc:
        owner_client.table("students").select("*").eq("studentid", "x").execute()
    assert exc.value.code == "42703"

    with pytest.raises(DataStoreError) as exc:
        owner_client.table("classes")
    assert exc.value.code == "42P01"


def test_update_and_delete_require_filter(owner_client):
    with pytest.raises(DataStoreError) as exc:
        owner_client.table("students").delete().execute()
    assert exc.value.code == "21000"


def test_row_policy_hides_other_owners_rows(data_client, auth, owner_client, owner_id):
    other_id = auth.sign_up("other@example.com", "password1").user.id
    other_client = data_client.for_owner(other_id)
    _add_student(owner_client, owner_id, "내 학생")
    _add_student(other_client, other_id, "남의 학생")

    names = [r["name"] for r in owner_client.table("students").select("*").execute().data]
    assert names == ["내 학생"]

    with pytest.raises(DataStoreError) as exc:
        owner_client.table("students").insert({"name": "침범", "user_id": other_id}).execute()
    assert exc.value.code == "42501"


def test_grade_insert_for_foreign_student_is_denied(data_client, auth, owner_client, owner_id):
    other_id = auth.sign_up("other@example.com", "password1").user.id
    foreign = _add_student(data_client.for_owner(other_id), other_id)
    test = owner_client.table("tests").insert({"name": "퀴즈", "maxgrade": 10, "user_id": owner_id}).select().single().execute().data

    with pytest.raises(DataStoreError) as exc:
        owner_client.table("grades").insert({"studentid": foreign["id"], "testid": test["id"], "value": 1}).execute()
    assert exc.value.code == "42501"


def test_delete_returns_removed_rows(owner_client, owner_id):
    row = _add_student(owner_client, owner_id)
    result = owner_client.table("students").delete().eq("id", row["id"]).execute()
    assert [r["id"] for r in result.data] == [row["id"]]
    assert owner_client.table("students").select("*").execute().data == []
