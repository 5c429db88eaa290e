import json
import pytest
from redis.exceptions import RedisError
from app.core import notifications
from app.core.ctx import REDIS_CTX
from tests.helper import make_order


@pytest.mark.asyncio
async def test_publish_order_completed_writes_fact_to_orders_stream(mocker):
    redis = mocker.Mock()
    redis.xadd = mocker.AsyncMock(return_value="1-0")
    REDIS_CTX.set(redis)

    assert await notifications.publish_order_completed(make_order()) == "1-0"

    stream, fields = redis.xadd.await_args.args
    body = json.loads(fields["json"])
    assert stream == notifications.ORDERS_STREAM
    assert body["type"] == notifications.OrderFact.ORDER_COMPLETED
    assert body["data"]["order_id"] == 10
    assert body["data"]["ticket_count"] == 1


@pytest.mark.asyncio
async def test_publish_fact_swallows_redis_errors(mocker):
    redis = mocker.Mock()
    redis.xadd = mocker.AsyncMock(side_effect=RedisError("down"))
    REDIS_CTX.set(redis)
    order = make_order()

    assert await notifications.publish_ticket_cancelled(order, order.tickets[0], 5000) is None


@pytest.mark.asyncio
async def test_publish_fact_without_redis_returns_none():
    REDIS_CTX.set(None)

    assert await notifications.publish_fact(notifications.OrderFact.TICKET_CANCELLED, {"order_id": 1}) is None
