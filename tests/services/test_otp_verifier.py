import pytest
from sqlalchemy.orm import Session

from phone_claim.core.errors import ExpiredError, InvalidError, NotFoundError
from phone_claim.core.security import decode_claim_token
from phone_claim.models import OtpRecord
from phone_claim.services.otp import OtpService
from tests.conftest import FakeClock, FakeSmsChannel

PHONE = "+15551234567"


@pytest.fixture()
def issued(db_session: Session, clock: FakeClock) -> OtpRecord:
    record = OtpRecord(phone_number=PHONE, code="123456", used=False, created_at=clock())
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture()
def service(db_session: Session, sms_channel: FakeSmsChannel, clock: FakeClock) -> OtpService:
    return OtpService(db_session, sms_channel, clock)


def _reload(db_session: Session) -> OtpRecord:
    db_session.expire_all()
    record = db_session.get(OtpRecord, PHONE)
    assert record is not None
    return record


def test_unknown_phone_is_not_found(service: OtpService) -> None:
    with pytest.raises(NotFoundError):
        service.verify_otp(PHONE, "123456")


def test_correct_code_succeeds_exactly_once(
    service: OtpService, issued: OtpRecord, db_session: Session
) -> None:
    verification = service.verify_otp(PHONE, "123456")

    grant = decode_claim_token(verification.claim_token)
    assert grant.phone_number == PHONE
    assert verification.expires_in > 0
    assert _reload(db_session).used is True

    with pytest.raises(InvalidError) as excinfo:
        service.verify_otp(PHONE, "123456")
    assert "already used" in excinfo.value.message


def test_each_verification_issues_distinct_token(
    db_session: Session, sms_channel: FakeSmsChannel, clock: FakeClock
) -> None:
    service = OtpService(db_session, sms_channel, clock)
    tokens = set()
    for phone in ("+15550000001", "+15550000002"):
        db_session.add(OtpRecord(phone_number=phone, code="654321", created_at=clock()))
        db_session.commit()
        tokens.add(decode_claim_token(service.verify_otp(phone, "654321").claim_token).token_id)
    assert len(tokens) == 2


def test_expired_code_is_rejected_even_if_unused(
    service: OtpService, issued: OtpRecord, clock: FakeClock, db_session: Session
) -> None:
    clock.advance(901)
    with pytest.raises(ExpiredError):
        service.verify_otp(PHONE, "123456")
    assert _reload(db_session).used is False


def test_code_at_window_boundary_is_still_valid(
    service: OtpService, issued: OtpRecord, clock: FakeClock
) -> None:
    clock.advance(900)
    service.verify_otp(PHONE, "123456")


def test_mismatch_leaves_code_redeemable(
    service: OtpService, issued: OtpRecord, db_session: Session
) -> None:
    with pytest.raises(InvalidError) as excinfo:
        service.verify_otp(PHONE, "000000")
    assert "mismatch" in excinfo.value.message
    assert _reload(db_session).used is False

    service.verify_otp(PHONE, "123456")


@pytest.mark.parametrize("submitted", [" 123456", "123456 ", "12345", "1234567"])
def test_comparison_is_exact(service: OtpService, issued: OtpRecord, submitted: str) -> None:
    with pytest.raises(InvalidError):
        service.verify_otp(PHONE, submitted)


def test_concurrent_redemption_has_single_winner(
    service: OtpService,
    issued: OtpRecord,
    db_session: Session,
    sms_channel: FakeSmsChannel,
    clock: FakeClock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    snapshot = _reload(db_session)
    stale = OtpRecord(
        phone_number=PHONE,
        code=snapshot.code,
        used=False,
        created_at=snapshot.created_at,
    )

    service.verify_otp(PHONE, "123456")

    # The second attempt read the row before the first one committed.
    loser = OtpService(db_session, sms_channel, clock)
    monkeypatch.setattr(loser, "_find_otp", lambda phone_number: stale)
    with pytest.raises(InvalidError) as excinfo:
        loser.verify_otp(PHONE, "123456")
    assert "already used" in excinfo.value.message
