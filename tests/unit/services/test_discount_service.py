import re
import pytest
from sqlalchemy.dialects import postgresql
import time_machine
from datetime import datetime, timezone
from app.services import discount_service
from app.domain.discounts import crud as discount_crud
from app.services.discount_service import DiscountReason
from app.domain.discounts.models import DiscountCode, DiscountType, DiscountCodeStatus
from app.domain.exceptions import InvalidInput, NotFound


def _code(**overrides) -> DiscountCode:
    values = dict(
        id=3,
        event_id=1,
        code="SAVE10",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=10,
        starts_at=datetime(2024, 12, 1, tzinfo=timezone.utc),
        expires_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
        max_redemptions=100,
        times_redeemed=0,
        status=DiscountCodeStatus.ACTIVE,
    )
    values.update(overrides)
    return DiscountCode(**values)


@pytest.mark.parametrize("subtotal, discount_type, value, expected", [
    (1000, DiscountType.PERCENTAGE, 10, 100),
    (999, DiscountType.PERCENTAGE, 15, 149),
    (1000, DiscountType.PERCENTAGE, 150, 1000),
    (1000, DiscountType.FIXED_AMOUNT, 300, 300),
    (300, DiscountType.FIXED_AMOUNT, 500, 300),
    (0, DiscountType.FIXED_AMOUNT, 500, 0),
    (1000, DiscountType.PERCENTAGE, 0, 0),
])
def test_compute_discount(subtotal, discount_type, value, expected):
    assert discount_service.compute_discount(subtotal, discount_type, value) == expected


@time_machine.travel("2025-01-01 12:00:00", tick=False)
@pytest.mark.asyncio
async def test_validate_discount_code_valid(mocker):
    mocker.patch(
        "app.services.discount_service.crud.get_active_code_for_event",
        new=mocker.AsyncMock(return_value=_code())
    )

    result = await discount_service.validate_discount_code(mocker.Mock(), 1, "save10")

    assert result.valid is True
    assert result.code == "SAVE10"
    assert result.discount_id == 3
    assert result.discount_type == DiscountType.PERCENTAGE
    assert result.discount_value == 10
    assert "discount_id" not in result.model_dump()


@time_machine.travel("2025-01-01 12:00:00", tick=False)
@pytest.mark.asyncio
@pytest.mark.parametrize("code, reason", [
    (None, DiscountReason.NOT_FOUND),
    (_code(starts_at=datetime(2025, 1, 2, tzinfo=timezone.utc)), DiscountReason.NOT_STARTED),
    (_code(expires_at=datetime(2025, 1, 1, 11, tzinfo=timezone.utc)), DiscountReason.EXPIRED),
    (_code(times_redeemed=100), DiscountReason.EXHAUSTED),
])
async def test_validate_discount_code_soft_failures(mocker, code, reason):
    mocker.patch(
        "app.services.discount_service.crud.get_active_code_for_event",
        new=mocker.AsyncMock(return_value=code)
    )

    result = await discount_service.validate_discount_code(mocker.Mock(), 1, "SAVE10")

    assert result.valid is False
    assert result.reason == reason
    assert result.discount_id is None


@pytest.mark.asyncio
async def test_check_discount_code_unknown_event_raises_not_found(mocker):
    mocker.patch("app.services.discount_service.get_event", new=mocker.AsyncMock(side_effect=NotFound))
    lookup_spy = mocker.patch(
        "app.services.discount_service.crud.get_active_code_for_event",
        new=mocker.AsyncMock()
    )

    with pytest.raises(NotFound):
        await discount_service.check_discount_code(mocker.Mock(), 1, "SAVE10")

    lookup_spy.assert_not_awaited()


@pytest.mark.asyncio
async def test_redeem_discount_code_returns_new_count(mocker):
    mocker.patch("app.services.discount_service.crud.increment_redemptions", new=mocker.AsyncMock(return_value=4))

    assert await discount_service.redeem_discount_code(mocker.Mock(), 3) == 4


@pytest.mark.asyncio
async def test_redeem_discount_code_at_cap_raises_invalid_input(mocker):
    mocker.patch("app.services.discount_service.crud.increment_redemptions", new=mocker.AsyncMock(return_value=None))

    with pytest.raises(InvalidInput) as e:
        await discount_service.redeem_discount_code(mocker.Mock(), 3)

    assert str(e.value) == DiscountReason.EXHAUSTED


@pytest.mark.asyncio
async def test_increment_redemptions_only_below_cap(mocker):
    db = mocker.Mock()
    db.scalar = mocker.AsyncMock(return_value=1)

    assert await discount_crud.increment_redemptions(db, 3) == 1

    compiled = db.scalar.await_args.args[0].compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert sql.startswith("UPDATE discount_codes SET times_redeemed=")
    assert "discount_codes.times_redeemed < discount_codes.max_redemptions" in sql
    assert re.search(r"discount_codes\.id = %\(\w+\)s", sql)
    assert sql.endswith("RETURNING discount_codes.times_redeemed")
    assert sorted(compiled.params.values()) == [1, 3]
