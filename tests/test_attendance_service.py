"""
Redemption / NES attendance tests.

Goal: attendance records carry no area of their own, so a scoped user sees
and records them only for beneficiaries inside their areas (matched by HHID),
and one FRM period holds one record per beneficiary.
"""
import asyncio

import pytest

from beneficiary_api.core.errors import BeneficiaryAPIError, NotFoundError, UnauthorizedAreaError
from beneficiary_api.core.gate import Actor
from beneficiary_api.schemas.attendance import NESUpsert, RedemptionUpsert
from beneficiary_api.schemas.beneficiary import BeneficiaryCreate, BeneficiaryUpdate
from beneficiary_api.services.attendance_service import AttendanceService, split_ids
from beneficiary_api.services.beneficiary_service import BeneficiaryService


def run(coro):
    return asyncio.run(coro)


ADMIN = Actor(id="650000000000000000000001", name="Admin", role="admin")
ENCODER = Actor(
    id="650000000000000000000002", name="Encoder", role="user", assigned_areas=("negocc",)
)
UNASSIGNED = Actor(id="650000000000000000000003", name="New Hire", role="user")


@pytest.fixture
def beneficiaries(store, beneficiary_db):
    return BeneficiaryService(store)


@pytest.fixture
def redemptions(beneficiaries, fake_documents):
    return AttendanceService(
        fake_documents("Redemption"), "redemptions", beneficiary_service=beneficiaries
    )


@pytest.fixture
def nes(beneficiaries, fake_documents):
    return AttendanceService(
        fake_documents("NESRecord"),
        "nes",
        refuse_not_for_recording=True,
        beneficiary_service=beneficiaries,
    )


@pytest.fixture
def seeded(beneficiaries, make_row):
    """One beneficiary in Negros Occidental, one in Iloilo."""
    negros = run(beneficiaries.create_beneficiary(ADMIN, BeneficiaryCreate(**make_row())))
    iloilo = run(
        beneficiaries.create_beneficiary(
            ADMIN,
            BeneficiaryCreate(
                **make_row(
                    first_name="Jose",
                    hhid="160300001-0002",
                    province="Iloilo",
                    municipality="Oton",
                    barangay="Poblacion",
                )
            ),
        )
    )
    return negros, iloilo


def redemption(beneficiary, attendance="present", period="2025-01"):
    return RedemptionUpsert(
        beneficiary_id=str(beneficiary.id),
        frm_period=period,
        attendance=attendance,
        date_recorded="2025-01-15",
    )


def test_records_are_scoped_through_beneficiary_hhids(redemptions, seeded):
    negros, iloilo = seeded
    for beneficiary in seeded:
        run(redemptions.upsert_record(ADMIN, redemption(beneficiary)))

    assert run(redemptions.get_records(ADMIN))[1] == 2
    visible, total = run(redemptions.get_records(ENCODER))
    assert total == 1
    assert visible[0].hhid == negros.hhid
    assert run(redemptions.get_records(ENCODER, hhid=iloilo.hhid)) == ([], 0)
    assert run(redemptions.get_records(UNASSIGNED)) == ([], 0)


def test_beneficiary_ids_filter(redemptions, seeded):
    negros, iloilo = seeded
    for beneficiary in seeded:
        run(redemptions.upsert_record(ADMIN, redemption(beneficiary)))

    records, total = run(redemptions.get_records(ADMIN, beneficiary_ids=[str(iloilo.id)]))
    assert total == 1
    assert records[0].beneficiary_id == str(iloilo.id)
    assert split_ids(f" {negros.id}, ,{iloilo.id}") == [str(negros.id), str(iloilo.id)]
    assert split_ids("") is None


def test_upsert_replaces_the_record_of_a_period(redemptions, seeded, audit_trail):
    negros, _ = seeded

    first = run(redemptions.upsert_record(ENCODER, redemption(negros, "present")))
    second = run(redemptions.upsert_record(ENCODER, redemption(negros, "absent")))

    assert first.id == second.id
    assert len(redemptions.document.records) == 1
    assert second.attendance == "absent"
    assert [entry[0] for entry in audit_trail if entry[1] == "redemptions"] == ["CREATE", "UPDATE"]

    run(redemptions.upsert_record(ENCODER, redemption(negros, period="2025-02")))
    assert len(redemptions.document.records) == 2


def test_nes_refuses_beneficiaries_not_for_recording(nes, redemptions, beneficiaries, seeded):
    negros, _ = seeded
    not_for_recording = BeneficiaryUpdate(status="Not for Recording")
    run(beneficiaries.update_beneficiary(ADMIN, str(negros.id), not_for_recording))
    record = NESUpsert(
        beneficiary_id=str(negros.id),
        frm_period="2025-01",
        attendance="absent",
        action="Home visit",
        date_recorded="2025-01-20",
    )

    with pytest.raises(BeneficiaryAPIError):
        run(nes.upsert_record(ADMIN, record))
    assert nes.document.records == []
    run(redemptions.upsert_record(ADMIN, redemption(negros)))


def test_unassigned_user_cannot_record_attendance(redemptions, seeded):
    negros, _ = seeded
    with pytest.raises(UnauthorizedAreaError):
        run(redemptions.upsert_record(UNASSIGNED, redemption(negros)))
    with pytest.raises(UnauthorizedAreaError):
        run(redemptions.delete_record(UNASSIGNED, "0" * 24))


def test_out_of_scope_records_read_as_missing(redemptions, seeded):
    _, iloilo = seeded
    with pytest.raises(NotFoundError):
        run(redemptions.upsert_record(ENCODER, redemption(iloilo)))

    record = run(redemptions.upsert_record(ADMIN, redemption(iloilo)))
    with pytest.raises(NotFoundError):
        run(redemptions.delete_record(ENCODER, str(record.id)))

    run(redemptions.delete_record(ADMIN, str(record.id)))
    assert redemptions.document.records == []
