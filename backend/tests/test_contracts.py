from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models
from app.crud import crud_booking_talent, crud_contract
from app.models import (
    BookingStatus,
    ContractStatus,
    NotificationType,
    RequestStatus,
    SignatureStatus,
    User,
    UserRole,
)
from app.models.base import BaseModel
from app.services import contract_service
from app.utils.errors import ConflictError, DomainValidationError, ForbiddenError, NotFoundError


def setup_db():
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    return Session()


def _seed(db):
    admin = User(email="admin@test.com", password="x", first_name="Ada", last_name="Admin", role=UserRole.ADMIN)
    client = User(email="client@test.com", password="x", first_name="Cy", last_name="Client", role=UserRole.CLIENT)
    t1 = User(email="t1@test.com", password="x", first_name="Tia", last_name="One", role=UserRole.TALENT)
    t2 = User(email="t2@test.com", password="x", first_name="Theo", last_name="Two", role=UserRole.TALENT)
    db.add_all([admin, client, t1, t2])
    db.commit()
    booking = models.Booking(
        code="BK-2024-0001",
        title="Holiday Lookbook",
        start_date=datetime(2030, 11, 2, 9, 0),
        end_date=datetime(2030, 11, 2, 18, 0),
        client_id=client.id,
        created_by=admin.id,
    )
    db.add(booking)
    db.commit()
    return admin, client, t1, t2, booking


def _request(db, admin, booking, talent, answer=RequestStatus.ACCEPTED):
    created, _ = crud_booking_talent.send_requests(db, booking.id, [talent.id], admin)
    if answer is None:
        return created[0]
    return crud_booking_talent.respond_to_request(db, created[0].id, answer, None, talent)


def _sent_contract(db, admin, booking, talent):
    link = _request(db, admin, booking, talent)
    contract = contract_service.create_contract(db, booking.id, link.id, admin)
    return contract_service.send_contract_for_signing(db, contract.id, admin)


def _sign(db, contract, signer):
    return contract_service.sign_contract(
        db,
        contract.id,
        signer,
        "data:image/png;base64,AAAA",
        "203.0.113.7",
        "pytest-agent/1.0",
    )


def test_create_contract_drafts_from_the_category_template(local_storage_dir):
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)

    contract = contract_service.create_contract(db, booking.id, link.id, admin)

    assert contract.status == ContractStatus.DRAFT
    assert contract.template_id == "general-standard"
    assert contract.title == "Contract - Holiday Lookbook"
    assert "BK-2024-0001" in contract.content
    assert contract.created_by == admin.id
    assert contract.pdf_url.startswith("/static/contracts/BK-2024-0001/")
    stored = local_storage_dir / contract.pdf_url[len("/static/"):]
    assert stored.read_bytes().startswith(b"%PDF")
    expected_due = datetime.utcnow() + timedelta(days=7)
    assert abs((contract.due_date - expected_due).total_seconds()) < 60


def test_create_contract_uses_requested_template_and_due_date():
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)
    due = datetime(2030, 10, 1)

    contract = contract_service.create_contract(
        db, booking.id, link.id, admin, template_id="event-standard", due_date=due
    )

    assert contract.template_id == "event-standard"
    assert contract.due_date == due


@pytest.mark.parametrize("answer", [None, RequestStatus.DECLINED])
def test_contract_needs_an_accepted_request(answer):
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1, answer=answer)

    with pytest.raises(ConflictError) as exc:
        contract_service.create_contract(db, booking.id, link.id, admin)
    assert exc.value.field_errors == {"booking_talent_id": "not_accepted"}


def test_one_contract_per_booking_talent():
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)
    contract_service.create_contract(db, booking.id, link.id, admin)

    with pytest.raises(ConflictError) as exc:
        contract_service.create_contract(db, booking.id, link.id, admin)
    assert exc.value.field_errors == {"booking_talent_id": "duplicate"}


def test_racing_duplicate_leaves_no_stored_pdf(monkeypatch, local_storage_dir):
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)
    first = contract_service.create_contract(db, booking.id, link.id, admin)
    # Simulate a concurrent request that passed the duplicate check first
    monkeypatch.setattr(crud_contract, "get_for_booking_talent", lambda db, link_id: None)

    with pytest.raises(ConflictError) as exc:
        contract_service.create_contract(db, booking.id, link.id, admin)

    assert exc.value.field_errors == {"booking_talent_id": "duplicate"}
    stored = sorted(p.name for p in (local_storage_dir / "contracts/BK-2024-0001").iterdir())
    assert stored == [f"{link.id}-{first.id}.pdf"]
    assert db.query(models.Contract).count() == 1


def test_create_contract_validation():
    db = setup_db()
    admin, client, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)
    other = models.Booking(
        code="BK-2024-0002",
        title="Other",
        start_date=datetime(2030, 1, 1),
        end_date=datetime(2030, 1, 1),
        client_id=client.id,
        created_by=admin.id,
    )
    db.add(other)
    db.commit()

    with pytest.raises(ForbiddenError):
        contract_service.create_contract(db, booking.id, link.id, client)
    with pytest.raises(NotFoundError):
        contract_service.create_contract(db, 999, link.id, admin)
    with pytest.raises(NotFoundError):
        contract_service.create_contract(db, booking.id, 999, admin)
    with pytest.raises(ConflictError):
        contract_service.create_contract(db, other.id, link.id, admin)
    with pytest.raises(DomainValidationError):
        contract_service.create_contract(db, booking.id, link.id, admin, template_id="missing")
    assert db.query(models.Contract).count() == 0


def test_send_opens_a_pending_signature_and_advances_booking(patch_send_email):
    db = setup_db()
    admin, client, t1, _, booking = _seed(db)

    contract = _sent_contract(db, admin, booking, t1)

    assert contract.status == ContractStatus.SENT
    assert [(s.signer_id, s.status) for s in contract.signatures] == [(t1.id, SignatureStatus.PENDING)]
    db.refresh(booking)
    assert booking.status == BookingStatus.CONTRACT_SENT
    talent_note = (
        db.query(models.Notification)
        .filter_by(user_id=t1.id, type=NotificationType.CONTRACT_CREATED)
        .one()
    )
    assert talent_note.data["contract_id"] == contract.id
    assert any(call.args[0] == "client@test.com" for call in patch_send_email.call_args_list)


def test_send_only_from_draft():
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    contract = _sent_contract(db, admin, booking, t1)

    with pytest.raises(ConflictError) as exc:
        contract_service.send_contract_for_signing(db, contract.id, admin)
    assert exc.value.message == "Contract is already sent"
    assert db.query(models.Signature).count() == 1


def test_sign_before_send_is_rejected():
    db = setup_db()
    admin, client, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)
    contract = contract_service.create_contract(db, booking.id, link.id, admin)

    with pytest.raises(ConflictError) as exc:
        _sign(db, contract, t1)
    assert exc.value.field_errors == {"status": "not_sent"}
    with pytest.raises(ForbiddenError):
        _sign(db, contract, client)


def test_sign_records_signature_and_moves_booking_to_signed():
    db = setup_db()
    admin, client, t1, _, booking = _seed(db)
    contract = _sent_contract(db, admin, booking, t1)

    signed = _sign(db, contract, t1)

    assert signed.status == ContractStatus.SIGNED
    signature = crud_contract.get_signature(db, contract.id, t1.id)
    assert signature.status == SignatureStatus.SIGNED
    assert signature.ip_address == "203.0.113.7"
    assert signature.user_agent == "pytest-agent/1.0"
    assert signature.signature_image_url == "data:image/png;base64,AAAA"
    assert signature.signed_at is not None
    db.refresh(booking)
    assert booking.status == BookingStatus.SIGNED
    admin_types = [n.type for n in db.query(models.Notification).filter_by(user_id=admin.id)]
    assert NotificationType.CONTRACT_SIGNED in admin_types
    client_statuses = [
        n.data["status"]
        for n in db.query(models.Notification).filter_by(
            user_id=client.id, type=NotificationType.BOOKING_STATUS_UPDATED
        )
    ]
    assert client_statuses == ["proposed", "contract_sent", "signed"]


def test_contract_is_signed_only_once():
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    contract = _sent_contract(db, admin, booking, t1)
    _sign(db, contract, t1)

    with pytest.raises(ConflictError) as exc:
        _sign(db, contract, t1)
    assert exc.value.field_errors == {"status": "already_signed"}
    assert db.query(models.Signature).filter_by(status=SignatureStatus.SIGNED).count() == 1


@pytest.mark.parametrize("who", ["admin", "client", "other_talent"])
def test_only_the_pending_signer_may_sign(who):
    db = setup_db()
    admin, client, t1, t2, booking = _seed(db)
    contract = _sent_contract(db, admin, booking, t1)
    actor = {"admin": admin, "client": client, "other_talent": t2}[who]

    with pytest.raises(ForbiddenError):
        _sign(db, contract, actor)
    db.refresh(contract)
    assert contract.status == ContractStatus.SENT


def test_booking_waits_for_every_sent_contract():
    db = setup_db()
    admin, _, t1, t2, booking = _seed(db)
    first = _sent_contract(db, admin, booking, t1)
    second = _sent_contract(db, admin, booking, t2)

    _sign(db, first, t1)
    db.refresh(booking)
    assert booking.status == BookingStatus.CONTRACT_SENT

    _sign(db, second, t2)
    db.refresh(booking)
    assert booking.status == BookingStatus.SIGNED


def test_no_contract_work_on_cancelled_bookings():
    db = setup_db()
    admin, _, t1, _, booking = _seed(db)
    link = _request(db, admin, booking, t1)
    contract = contract_service.create_contract(db, booking.id, link.id, admin)
    booking.status = BookingStatus.CANCELLED
    db.commit()

    with pytest.raises(ConflictError):
        contract_service.send_contract_for_signing(db, contract.id, admin)
    with pytest.raises(ConflictError):
        contract_service.create_contract(db, booking.id, link.id, admin)


def test_contract_visibility_by_role():
    db = setup_db()
    admin, client, t1, t2, booking = _seed(db)
    contract = _sent_contract(db, admin, booking, t1)
    stranger = User(email="s@test.com", password="x", first_name="Sam", last_name="Stranger", role=UserRole.CLIENT)
    db.add(stranger)
    db.commit()

    assert crud_contract.can_view(contract, admin)
    assert crud_contract.can_view(contract, client)
    assert crud_contract.can_view(contract, t1)
    assert not crud_contract.can_view(contract, t2)
    assert not crud_contract.can_view(contract, stranger)

    assert crud_contract.list_for_user(db, t1)[1] == 1
    assert crud_contract.list_for_user(db, t2)[1] == 0
    assert crud_contract.list_for_user(db, client)[1] == 1
    assert crud_contract.list_for_user(db, stranger)[1] == 0
    items, total = crud_contract.list_for_user(db, admin, status=ContractStatus.SIGNED)
    assert (items, total) == ([], 0)
