"""
Tests for the sample expert seed.
"""
from fityog.core.security import verify_password
from fityog.schemas import UserCreate
from fityog.services.expert_seed import SAMPLE_EXPERTS, seed_experts

from conftest import register


def test_seed_creates_flagged_experts(storage):
    created = seed_experts(storage)

    assert len(created) == len(SAMPLE_EXPERTS)
    experts = storage.get_experts()
    assert [e.username for e in experts] == ["Sarah Chen", "Mike Rodriguez", "Priya Patel"]
    assert all(e.is_expert and e.specialties and e.photo_url for e in experts)


def test_seed_is_idempotent(storage):
    seed_experts(storage)

    assert seed_experts(storage) == []
    assert len(storage.get_experts()) == len(SAMPLE_EXPERTS)


def test_seed_skips_taken_usernames(memory_storage):
    memory_storage.create_user(UserCreate(username="Sarah Chen", password="hash"))

    created = seed_experts(memory_storage)

    assert [e.username for e in created] == ["Mike Rodriguez", "Priya Patel"]


def test_seeded_accounts_have_unguessable_passwords(memory_storage):
    seed_experts(memory_storage)

    for expert in memory_storage.get_experts():
        assert expert.password.startswith("$2")
        assert not verify_password("", expert.password)
        assert not verify_password(expert.username, expert.password)


def test_seeded_expert_cannot_log_in(client, memory_storage):
    seed_experts(memory_storage)

    response = client.post("/api/login", json={"username": "Sarah Chen", "password": "password"})

    assert response.status_code == 401


def test_users_see_seeded_experts(client, memory_storage):
    seed_experts(memory_storage)
    register(client)

    experts = client.get("/api/experts").json()

    assert {e["username"] for e in experts} == {"Sarah Chen", "Mike Rodriguez", "Priya Patel"}
    assert all(e["photoUrl"] for e in experts)
