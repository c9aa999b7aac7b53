import pytest

import database


def test_tenant_collections_are_scoped(mongo):
    database.get_tenant_collections("tenant-a")["leads"].insert_one({"name": "Lead"})
    assert database.get_tenant_collections("tenant-b")["leads"].count_documents({}) == 0
    assert database.get_tenant_collections("tenant-a")["leads"].count_documents({}) == 1


def test_superadmin_data_is_separate_from_tenants(mongo):
    database.get_superadmin_collections()["companies"].insert_one({"name": "Acme"})
    assert database.get_tenant_collections("tenant-a")["companies"].count_documents({}) == 0


def test_accessors_need_a_client(mongo):
    database.set_client(None)
    with pytest.raises(RuntimeError):
        database.get_superadmin_collections()
    with pytest.raises(RuntimeError):
        database.get_tenant_collections("tenant-a")


def test_utcnow_is_naive():
    assert database.utcnow().tzinfo is None
