"""Tests for GadgetService, codename generation and seeding, without HTTP"""
import re

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

import codenames
import gadget_service
from codenames import ADJECTIVES, NOUNS, compose_codename, generate_codename
from errors import BadRequestError, NotFoundError
from gadget_service import GadgetService, generate_confirmation_code
from models import Gadget, GadgetStatus, User
from probability import generate_success_probability
from seed import SEED_GADGETS, SEED_USERS, seed


@pytest.mark.asyncio
class TestGadgetService:
    async def test_create_forces_available(self, db_session):
        service = GadgetService(db_session)
        gadget = await service.create_gadget("Invisible Pen")
        assert gadget.status == GadgetStatus.AVAILABLE
        assert gadget.decommissioned_at is None
        assert gadget.created_at is not None

    async def test_create_rejects_blank_name(self, db_session):
        with pytest.raises(BadRequestError):
            await GadgetService(db_session).create_gadget("")

    async def test_create_retries_after_codename_race(self, db_session, deployed_gadget, monkeypatch):
        picks = iter(["The Silver Ascender", "The Velvet Falcon"])

        async def fake_generate(db):
            return next(picks)

        monkeypatch.setattr(gadget_service, "generate_codename", fake_generate)
        gadget = await GadgetService(db_session).create_gadget("Lip Balm Laser")
        assert gadget.codename == "The Velvet Falcon"
        rows = (await db_session.execute(select(Gadget))).scalars().all()
        assert len(rows) == 2

    async def test_create_gives_up_after_repeated_races(self, db_session, deployed_gadget, monkeypatch):
        calls = []

        async def fake_generate(db):
            calls.append(1)
            return "The Silver Ascender"

        monkeypatch.setattr(gadget_service, "generate_codename", fake_generate)
        with pytest.raises(IntegrityError):
            await GadgetService(db_session).create_gadget("Lip Balm Laser")
        assert len(calls) == gadget_service.CREATE_RETRIES

    async def test_update_overwrites_only_supplied_fields(self, db_session, deployed_gadget):
        service = GadgetService(db_session)
        updated = await service.update_gadget(deployed_gadget.id, name="Grappling Watch Mk II")
        assert updated.name == "Grappling Watch Mk II"
        assert updated.status == GadgetStatus.DEPLOYED
        assert updated.codename == "The Silver Ascender"

    async def test_update_can_leave_terminal_state(self, db_session, deployed_gadget):
        service = GadgetService(db_session)
        await service.destroy_gadget(deployed_gadget.id)
        revived = await service.update_gadget(deployed_gadget.id, status=GadgetStatus.AVAILABLE)
        assert revived.status == GadgetStatus.AVAILABLE

    async def test_update_validates_before_lookup(self, db_session):
        with pytest.raises(BadRequestError):
            await GadgetService(db_session).update_gadget("missing")

    async def test_decommission_stamps_time(self, db_session, deployed_gadget):
        gadget = await GadgetService(db_session).decommission_gadget(deployed_gadget.id)
        assert gadget.status == GadgetStatus.DECOMMISSIONED
        assert gadget.decommissioned_at is not None

    async def test_destroy_leaves_decommission_time_unset(self, db_session, deployed_gadget):
        gadget = await GadgetService(db_session).destroy_gadget(deployed_gadget.id)
        assert gadget.status == GadgetStatus.DESTROYED
        assert gadget.decommissioned_at is None

    @pytest.mark.parametrize("operation", ["get_gadget", "decommission_gadget", "destroy_gadget"])
    async def test_missing_gadget(self, db_session, operation):
        with pytest.raises(NotFoundError):
            await getattr(GadgetService(db_session), operation)("missing")

    async def test_get_by_status_filters_exactly(self, db_session, deployed_gadget):
        service = GadgetService(db_session)
        await service.create_gadget("Spare Mask")
        deployed = await service.get_gadgets_by_status(GadgetStatus.DEPLOYED)
        assert [g.id for g in deployed] == [deployed_gadget.id]
        assert len(await service.list_gadgets()) == 2

    async def test_self_destruct_mismatch_echoes_code(self, db_session, deployed_gadget):
        with pytest.raises(BadRequestError) as exc_info:
            await GadgetService(db_session).self_destruct(deployed_gadget.id, "WRONG!")
        expected = exc_info.value.extra["expectedCode"]
        assert expected != "WRONG!"
        assert exc_info.value.to_dict()["error"] == "Invalid confirmation code"


@pytest.mark.asyncio
class TestCodenames:
    async def test_generated_codename_uses_word_lists(self, db_session):
        codename = await generate_codename(db_session)
        match = re.fullmatch(r"The (\w+) (\w+)", codename)
        assert match.group(1) in ADJECTIVES
        assert match.group(2) in NOUNS

    async def test_skips_taken_codename(self, db_session):
        db_session.add(Gadget(name="Taken", codename=compose_codename("Iron", "Wolf")))
        await db_session.commit()
        codename = await generate_codename(db_session, adjectives=["Iron", "Ghost"], nouns=["Wolf"])
        assert codename == "The Ghost Wolf"

    async def test_exhausted_pool_falls_back_to_suffix(self, db_session):
        db_session.add(Gadget(name="Only", codename="The Iron Wolf"))
        await db_session.commit()
        codename = await generate_codename(db_session, max_attempts=3, adjectives=["Iron"], nouns=["Wolf"])
        assert re.fullmatch(r"The Iron Wolf [0-9A-F]{4}", codename)

    async def test_suffix_retried_on_collision(self, db_session, monkeypatch):
        db_session.add(Gadget(name="Only", codename="The Iron Wolf"))
        db_session.add(Gadget(name="Twin", codename="The Iron Wolf AAAA"))
        await db_session.commit()
        suffixes = iter(["aaaa", "bbbb"])
        monkeypatch.setattr(codenames.secrets, "token_hex", lambda n: next(suffixes))
        codename = await generate_codename(db_session, max_attempts=1, adjectives=["Iron"], nouns=["Wolf"])
        assert codename == "The Iron Wolf BBBB"


def test_error_body_may_carry_message_field():
    err = BadRequestError("Invalid confirmation code", message="details")
    assert err.to_dict() == {"error": "Invalid confirmation code", "message": "details"}
    assert BadRequestError().to_dict() == {"error": "Invalid request"}


def test_confirmation_code_format():
    for _ in range(20):
        assert re.fullmatch(r"[A-Z0-9]{6}", generate_confirmation_code())


def test_success_probability_range():
    assert all(0 <= generate_success_probability() <= 100 for _ in range(200))


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session):
    first = await seed(db_session)
    await db_session.commit()
    second = await seed(db_session)
    await db_session.commit()

    assert first == {"users": len(SEED_USERS), "gadgets": len(SEED_GADGETS)}
    assert second == {"users": 0, "gadgets": 0}
    users = (await db_session.execute(select(User))).scalars().all()
    assert {u.username for u in users} == {"imfadmin", "agent007"}
