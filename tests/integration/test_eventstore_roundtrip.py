import httpx
import pytest

from inoovum_eventstore.client import AsyncEventStore, EventStore
from inoovum_eventstore.errors import TransportError
from tests.support.eventstore_helpers import API_URL, API_VERSION, AUTH_TOKEN, FakeEventStoreService


def test_commit_stream_query_against_fake_service() -> None:
    service = FakeEventStoreService()
    transport = httpx.MockTransport(service)
    with EventStore(API_URL, API_VERSION, AUTH_TOKEN, transport=transport) as store:
        assert store.ping() == "pong"
        store.commit_events(
            [
                {"subject": "/orders/1", "type": "order.created", "data": {"total": 10}},
                {"subject": "/orders/2", "type": "order.created", "data": {"total": 5}},
                {"subject": "/orders/1", "type": "order.paid", "data": None},
            ]
        )

        events = store.stream_events("/orders/1")
        assert [event.type for event in events] == ["order.created", "order.paid"]
        assert events[0].data == {"total": 10}
        assert events[1].data is None
        assert events[0].time < events[1].time

        assert store.q("select type") == [
            {"type": "order.created"},
            {"type": "order.created"},
            {"type": "order.paid"},
        ]
        assert service.queries == ["select type"]
        assert store.audit() == "events=3"


def test_wrong_token_is_rejected_by_service() -> None:
    service = FakeEventStoreService(token="expected")
    store = EventStore(API_URL, API_VERSION, "other", transport=httpx.MockTransport(service))
    with pytest.raises(TransportError) as exc_info:
        store.ping()
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_async_roundtrip_against_fake_service() -> None:
    service = FakeEventStoreService()
    async with AsyncEventStore(
        API_URL,
        API_VERSION,
        AUTH_TOKEN,
        transport=httpx.MockTransport(service),
    ) as store:
        await store.commit_events([{"subject": "/a", "type": "created", "data": [1, 2]}])
        events = await store.stream_events("/a")
        assert len(events) == 1
        assert events[0].data == [1, 2]
        assert await store.stream_events("/missing") == []
