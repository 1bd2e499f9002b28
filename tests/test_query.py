from __future__ import annotations

import math

import pytest

from docstore import (
    InvalidArgumentError,
    InvalidDocumentError,
    Store,
    UnknownCollectionError,
)


@pytest.fixture
def users(counter_ids) -> Store:
    db = Store(id_factory=counter_ids)
    db.make_collection("users")
    db.get("users").insert({"name": "Mario", "age": 40, "role": "plumber"})
    db.get("users").insert({"name": "Luigi", "age": 38, "role": "plumber"})
    db.get("users").insert({"name": "Peach", "age": 35, "role": "princess"})
    return db


@pytest.fixture
def nums() -> Store:
    db = Store()
    db.make_collection("nums")
    for i in range(1, 11):
        db.get("nums").insert({"n": i})
    return db


def test_basic_crud(users):
    plumbers = users.get("users").where({"role": "plumber"}).all()
    assert [u["name"] for u in plumbers] == ["Mario", "Luigi"]

    users.get("users").where({"name": "Mario"}).update({"active": True})
    mario = users.get("users").where({"name": "Mario"}).first()
    assert mario is not None and mario["active"] is True

    users.get("users").where({"name": "Luigi"}).delete()
    assert users.get("users").count() == 2


def test_insert_assigns_unique_ids(users):
    ids = users.get("users").ids()
    assert ids == ["id-1", "id-2", "id-3"]
    assert all(isinstance(i, str) for i in ids)


def test_insert_copies_payload_and_replaces_id():
    db = Store()
    db.make_collection("c")
    payload = {"_id": "mine", "tags": ["a"]}
    db.get("c").insert(payload)

    stored = db.get("c").first()
    assert stored is not None
    assert stored["_id"] != "mine"
    assert payload == {"_id": stored["_id"], "tags": ["a"]}
    payload["tags"].append("b")
    assert stored["tags"] == ["a"]


def test_inserted_payload_can_be_found_by_its_id(users):
    doc = {"name": "Toad", "tags": ["mushroom"]}
    users.get("users").insert(doc)
    assert doc["_id"] == "id-4"

    found = users.get("users").where({"_id": doc["_id"]}).first()
    assert found == doc
    assert found is not doc


def test_insert_rejects_non_json_values_without_side_effects(users):
    for bad in ({"when": object()}, {"pair": (1, 2)}, {"nested": {"s": {1, 2}}}, {"raw": b"x"}, {"x": float("nan")}):
        with pytest.raises(InvalidDocumentError):
            users.get("users").insert(bad)
        assert "_id" not in bad
    assert users.get("users").count() == 3


def test_update_rejects_non_json_values_without_side_effects(users):
    with pytest.raises(InvalidDocumentError):
        users.get("users").update({"tags": ("a", "b")})
    assert users.get("users").where({"tags": {"$exists": True}}).count() == 0


def test_colliding_generated_ids_are_regenerated():
    ids = iter(["dup", "dup", "fresh"])
    db = Store(id_factory=lambda: next(ids))
    db.make_collection("c")
    db.get("c").insert({"x": 1})
    db.get("c").insert({"x": 2})
    assert db.get("c").ids() == ["dup", "fresh"]


def test_find_by_id_after_insert_and_unrelated_delete(users):
    target = users.get("users").where({"name": "Peach"}).first()
    assert target is not None

    found = users.get("users").where({"_id": target["_id"]}).first()
    assert found == target

    users.get("users").where({"name": "Luigi"}).delete()
    found = users.get("users").where({"_id": target["_id"]}).first()
    assert found == target


def test_insert_rejects_non_objects(users):
    for bad in (None, [], "doc", 3, [("a", 1)]):
        with pytest.raises(InvalidDocumentError):
            users.get("users").insert(bad)
    with pytest.raises(InvalidDocumentError):
        users.get("users").insert({1: "x"})
    assert users.get("users").count() == 3


def test_update_rejects_non_objects_and_id(users):
    with pytest.raises(InvalidDocumentError):
        users.get("users").update(["x"])
    with pytest.raises(InvalidDocumentError):
        users.get("users").update({"_id": "other"})
    assert users.get("users").ids() == ["id-1", "id-2", "id-3"]


def test_update_is_top_level_overwrite(counter_ids):
    db = Store(id_factory=counter_ids)
    db.make_collection("c")
    db.get("c").insert({"meta": {"a": 1, "b": 2}, "x": 1})
    db.get("c").update({"meta": {"a": 9}})
    assert db.get("c").first()["meta"] == {"a": 9}
    assert db.get("c").first()["x"] == 1


def test_update_only_touches_filtered_documents(users):
    users.get("users").where({"role": "plumber"}).update({"role": "hero"})
    assert users.get("users").where({"role": "hero"}).count() == 2
    assert users.get("users").where({"name": "Peach"}).first()["role"] == "princess"


def test_update_after_limit_touches_only_the_limited_set(users):
    users.get("users").sort("age").limit(1).update({"youngest": True})
    assert users.get("users").where({"youngest": True}).all()[0]["name"] == "Peach"
    assert users.get("users").where({"youngest": True}).count() == 1


def test_updated_documents_do_not_share_values(counter_ids):
    db = Store(id_factory=counter_ids)
    db.make_collection("c")
    db.get("c").insert({"n": 1})
    db.get("c").insert({"n": 2})
    db.get("c").update({"tags": ["x"]})
    a, b = db.get("c").all()
    a["tags"].append("y")
    assert b["tags"] == ["x"]


def test_delete_is_by_identity_not_value():
    db = Store()
    db.make_collection("c")
    db.get("c").insert({"v": 1})
    db.get("c").insert({"v": 1})
    before = db.get("c").count()

    doc = {"v": 1}
    db.get("c").insert(doc)
    db.get("c").where({"_id": doc["_id"]}).delete()

    assert db.get("c").count() == before
    assert doc["_id"] not in db.get("c").ids()


def test_delete_after_skip(nums):
    nums.get("nums").sort("n", "desc").skip(5).delete()
    assert sorted(d["n"] for d in nums.get("nums").all()) == [6, 7, 8, 9, 10]


def test_insert_goes_to_collection_not_view(users):
    q = users.get("users").where({"role": "princess"})
    q.insert({"name": "Daisy", "role": "princess"})
    assert q.count() == 1
    assert users.get("users").where({"role": "princess"}).count() == 2


def test_view_is_a_snapshot_of_the_collection(users):
    q = users.get("users")
    users.get("users").insert({"name": "Toad"})
    assert q.count() == 3
    assert users.get("users").count() == 4


def test_sort_limit_skip(nums):
    desc = nums.get("nums").sort("n", "desc").all()
    assert desc[0]["n"] == 10

    limited = nums.get("nums").sort("n", "asc").limit(3).all()
    assert len(limited) == 3
    assert limited[2]["n"] == 3

    skipped = nums.get("nums").sort("n", "asc").skip(8).all()
    assert len(skipped) == 2
    assert skipped[0]["n"] == 9


def test_limit_and_skip_edges(nums):
    assert nums.get("nums").limit(0).count() == 0
    assert nums.get("nums").limit(100).count() == 10
    assert nums.get("nums").skip(0).count() == 10
    assert nums.get("nums").skip(100).count() == 0


@pytest.mark.parametrize("bad", [-1, 1.5, "2", True])
def test_limit_and_skip_reject_bad_counts(nums, bad):
    with pytest.raises(InvalidArgumentError):
        nums.get("nums").limit(bad)
    with pytest.raises(InvalidArgumentError):
        nums.get("nums").skip(bad)


def test_sort_is_stable_in_both_directions(counter_ids):
    db = Store(id_factory=counter_ids)
    db.make_collection("c")
    for name, rank in [("a", 1), ("b", 2), ("c", 1), ("d", 2)]:
        db.get("c").insert({"name": name, "rank": rank})

    asc = [d["name"] for d in db.get("c").sort("rank").all()]
    desc = [d["name"] for d in db.get("c").sort("rank", "desc").all()]
    assert asc == ["a", "c", "b", "d"]
    assert desc == ["b", "d", "a", "c"]


def test_sort_strings_lexicographically(users):
    assert [u["name"] for u in users.get("users").sort("name").all()] == ["Luigi", "Mario", "Peach"]


def test_sort_tolerates_missing_and_mixed_values():
    db = Store()
    db.make_collection("c")
    for v in [3, None, "x", 1]:
        db.get("c").insert({"v": v})
    db.get("c").insert({})
    assert db.get("c").sort("v").count() == 5


def test_sort_rejects_unknown_direction(nums):
    with pytest.raises(InvalidArgumentError):
        nums.get("nums").sort("n", "up")


def test_first_exists_count(users):
    assert users.get("users").where({"name": "Nobody"}).first() is None
    assert users.get("users").where({"name": "Nobody"}).exists() is False
    assert users.get("users").exists() is True
    assert users.get("users").count() == 3


def test_all_returns_a_copy_of_the_view(users):
    q = users.get("users")
    docs = q.all()
    docs.clear()
    assert q.count() == 3


def test_distinct(counter_ids):
    db = Store(id_factory=counter_ids)
    db.make_collection("stats")
    for cat in ["A", "B", "A", 1, True, 1.0]:
        db.get("stats").insert({"cat": cat})
    db.get("stats").insert({})
    assert db.get("stats").distinct("cat") == ["A", "B", 1, True]


def test_aggregations():
    db = Store()
    db.make_collection("stats")
    db.get("stats").insert({"score": 10, "cat": "A"})
    db.get("stats").insert({"score": 20, "cat": "A"})
    db.get("stats").insert({"score": 30, "cat": "B"})

    assert db.get("stats").sum("score") == 60
    assert db.get("stats").avg("score") == 20
    assert db.get("stats").min("score") == 10
    assert db.get("stats").max("score") == 30
    assert len(db.get("stats").distinct("cat")) == 2


def test_aggregations_on_empty_and_missing_values():
    db = Store()
    db.make_collection("empty")
    assert db.get("empty").avg("x") == 0
    assert db.get("empty").sum("x") == 0
    assert db.get("empty").min("x") == math.inf
    assert db.get("empty").max("x") == -math.inf

    db.make_collection("mixed")
    db.get("mixed").insert({"x": 10})
    db.get("mixed").insert({"x": "lots"})
    db.get("mixed").insert({})
    assert db.get("mixed").sum("x") == 10
    assert db.get("mixed").avg("x") == pytest.approx(10 / 3)
    assert db.get("mixed").min("x") == 10
    assert db.get("mixed").max("x") == 10


def test_operator_scenarios():
    db = Store()
    db.make_collection("items")
    for i, val in enumerate([10, 20, 30, 40], start=1):
        db.get("items").insert({"id": i, "val": val})

    gt20 = db.get("items").where({"val": {"$gt": 20}}).all()
    assert sorted(d["val"] for d in gt20) == [30, 40]

    in_list = db.get("items").where({"id": {"$in": [1, 3]}}).all()
    assert len(in_list) == 2

    db.get("items").insert({"id": 5, "val": 50, "name": "Special Item"})
    assert db.get("items").where({"name": {"$like": "Special"}}).count() == 1


def test_where_rejects_non_mapping(users):
    with pytest.raises(InvalidArgumentError):
        users.get("users").where([("name", "Mario")])


def test_get_unknown_collection():
    with pytest.raises(UnknownCollectionError):
        Store().get("nope")
