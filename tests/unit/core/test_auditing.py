import json
import pytest
from redis.exceptions import RedisError
from app.core import auditing
from app.core.ctx import REDIS_CTX, REQUEST_ID_CTX, bind_actor
from app.domain.exceptions import Conflict


@pytest.mark.asyncio
async def test_audit_span_emits_success_record_with_actor(mocker):
    redis = mocker.Mock()
    redis.xadd = mocker.AsyncMock(return_value="1-0")
    REDIS_CTX.set(redis)
    REQUEST_ID_CTX.set("req-1")
    bind_actor(3, {"STAFF"}, 7)

    async with auditing.AuditSpan(scope="TICKETS", action="CHECK_IN", object_type="ticket") as span:
        span.ticket_id = 5

    stream, fields = redis.xadd.await_args.args
    record = json.loads(fields["json"])
    assert stream == auditing.AUDIT_STREAM
    assert record["status"] == auditing.SUCCESS
    assert record["ticket_id"] == 5
    assert record["request_id"] == "req-1"
    assert record["actor_user_id"] == 3
    assert record["actor_roles"] == ["STAFF"]
    assert "duration_ms" in record["meta"]


@pytest.mark.asyncio
async def test_audit_span_records_failure_and_reraises(mocker):
    redis = mocker.Mock()
    redis.xadd = mocker.AsyncMock(return_value="1-0")
    REDIS_CTX.set(redis)

    with pytest.raises(Conflict):
        async with auditing.AuditSpan(scope="TICKETS", action="CANCEL"):
            raise Conflict("This ticket is already cancelled")

    record = json.loads(redis.xadd.await_args.args[1]["json"])
    assert record["status"] == auditing.FAIL
    assert record["reason"] == "Conflict: This ticket is already cancelled"


@pytest.mark.asyncio
async def test_audit_span_survives_redis_failure(mocker):
    redis = mocker.Mock()
    redis.xadd = mocker.AsyncMock(side_effect=RedisError("down"))
    REDIS_CTX.set(redis)

    async with auditing.AuditSpan(scope="CHECKOUT", action="CREATE_ORDER"):
        pass

    redis.xadd.assert_awaited_once()


@pytest.mark.asyncio
async def test_audit_span_without_redis_is_noop():
    REDIS_CTX.set(None)

    async with auditing.AuditSpan(scope="CHECKOUT", action="CREATE_ORDER") as span:
        span.order_id = 1
