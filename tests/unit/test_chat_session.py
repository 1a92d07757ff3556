"""Tests for the per-conversation chat channel."""
from __future__ import annotations

import pytest

from tests.conftest import ME, FakeConnector, FakeMessageApi, message_payload, settle
from vibely_realtime.application.dto.message import UploadFile
from vibely_realtime.application.exceptions import ChannelNotConnected, ValidationError
from vibely_realtime.domain.aggregates.unread_counters import UnreadCounters
from vibely_realtime.domain.value_objects.enums import ContentType
from vibely_realtime.infrastructure.ws.manager import ConnectionManager
from vibely_realtime.services.cache_reconciler import ConversationCacheReconciler
from vibely_realtime.services.chat_session import ChatChannelSession

CID = 10


@pytest.fixture
def make_chat(manager: ConnectionManager, message_api: FakeMessageApi, reconciler: ConversationCacheReconciler):
    def factory(user_id: int | None = ME, conversation_id: int | None = CID) -> ChatChannelSession:
        return ChatChannelSession(
            manager,
            api=message_api,
            reconciler=reconciler,
            user_id=user_id,
            conversation_id=conversation_id,
        )

    return factory


class TestChannel:
    @pytest.mark.asyncio
    async def test_url_carries_user_and_conversation(self, make_chat, connector: FakeConnector):
        chat = make_chat()
        await settle()
        assert connector.attempted_urls == [f"ws://testserver/ws/chat?userId={ME}&conversationId={CID}"]
        assert chat.is_connected
        await chat.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id, conversation_id", [(None, CID), (ME, None)])
    async def test_disabled_without_both_keys(self, make_chat, connector: FakeConnector, user_id, conversation_id):
        chat = make_chat(user_id, conversation_id)
        await settle()
        assert not chat.handle.enabled
        assert connector.attempted_urls == []


class TestSend:
    @pytest.mark.asyncio
    async def test_text_goes_over_socket_without_local_append(
        self, make_chat, connector: FakeConnector, reconciler: ConversationCacheReconciler,
    ):
        chat = make_chat()
        await settle()

        assert await chat.send_message("  hello  ") is None
        assert connector.last.sent == [{"type": "chat_message", "content": "hello"}]
        assert reconciler.messages(CID) == []

    @pytest.mark.asyncio
    async def test_empty_message_is_rejected(self, make_chat):
        chat = make_chat()
        await settle()
        with pytest.raises(ValidationError):
            await chat.send_message("   ")

    @pytest.mark.asyncio
    async def test_send_while_disconnected_raises(self, make_chat, connector: FakeConnector):
        connector.fail_next = 1
        chat = make_chat()
        await settle()
        with pytest.raises(ChannelNotConnected):
            await chat.send_message("hello")

    @pytest.mark.asyncio
    async def test_file_uses_upload_path_even_when_disconnected(
        self,
        make_chat,
        connector: FakeConnector,
        message_api: FakeMessageApi,
        reconciler: ConversationCacheReconciler,
    ):
        connector.fail_next = 1
        chat = make_chat()
        await settle()

        file = UploadFile(filename="cat.png", data=b"\x89PNG", mime_type="image/png")
        message = await chat.send_message("look", file)

        assert message is not None
        assert message_api.uploads[0].content_type is ContentType.IMAGE
        assert message_api.uploads[0].file is file
        assert [m.id for m in reconciler.messages(CID)] == [message.id]

        # the echo of the uploaded message is not appended twice
        connector.fail_next = 0
        await chat.handle_frame({"type": "new_message", "data": message_payload(message.id, senderId=ME)})
        assert [m.id for m in reconciler.messages(CID)] == [message.id]
        await reconciler.close()

    @pytest.mark.asyncio
    async def test_typing_indicator_frames(self, make_chat, connector: FakeConnector):
        chat = make_chat()
        await settle()
        await chat.send_typing_indicator(True)
        await chat.send_typing_indicator(False)
        assert connector.last.sent == [
            {"type": "start_typing", "conversationId": CID},
            {"type": "stop_typing", "conversationId": CID},
        ]

    @pytest.mark.asyncio
    async def test_typing_indicator_never_raises(self, make_chat, connector: FakeConnector):
        connector.fail_next = 1
        chat = make_chat()
        await settle()
        await chat.send_typing_indicator(True)


class TestInbound:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("frame_type", ["chat_message", "new_message"])
    async def test_message_is_appended_and_list_refreshed(
        self,
        make_chat,
        connector: FakeConnector,
        message_api: FakeMessageApi,
        reconciler: ConversationCacheReconciler,
        counters: UnreadCounters,
        frame_type: str,
    ):
        make_chat()
        await settle()
        connector.last.push({"type": frame_type, "data": message_payload(42)})
        connector.last.push({"type": frame_type, "data": message_payload(42)})
        await settle()

        assert [m.id for m in reconciler.messages(CID)] == [42]
        assert any(c[0] == "list_conversations" for c in message_api.calls)
        assert counters.count(CID) == 0  # server list reports zero unread

    @pytest.mark.asyncio
    async def test_message_updated_replaces_in_place(
        self, make_chat, connector: FakeConnector, reconciler: ConversationCacheReconciler,
    ):
        make_chat()
        await settle()
        connector.last.push({"type": "chat_message", "data": message_payload(1)})
        connector.last.push({"type": "chat_message", "data": message_payload(2)})
        connector.last.push({"type": "message_updated", "data": message_payload(1, content="edited")})
        await settle()

        assert [m.content for m in reconciler.messages(CID)] == ["edited", "message 2"]
        await reconciler.close()

    @pytest.mark.asyncio
    async def test_typing_state(self, make_chat, connector: FakeConnector):
        chat = make_chat()
        await settle()
        connector.last.push({"type": "user_typing", "from": 2})
        connector.last.push({"type": "user_typing", "from": 3})
        connector.last.push({"type": "user_stopped_typing", "from": 3})
        await settle()
        assert chat.typing_users == frozenset({2})

        connector.last.push({"type": "chat_message", "data": message_payload(7, senderId=2)})
        await settle()
        assert chat.typing_users == frozenset()
        await chat.close()

    @pytest.mark.asyncio
    async def test_message_for_other_conversation_is_dropped(
        self, make_chat, connector: FakeConnector, reconciler: ConversationCacheReconciler,
    ):
        make_chat()
        await settle()
        connector.last.push({"type": "chat_message", "data": message_payload(1, conversation_id=99)})
        await settle()
        assert reconciler.messages(99) == []

    @pytest.mark.asyncio
    async def test_close_stops_dispatch(
        self, make_chat, connector: FakeConnector, reconciler: ConversationCacheReconciler,
    ):
        chat = make_chat()
        await settle()
        connection = connector.last
        await chat.close()
        connection.push({"type": "chat_message", "data": message_payload(1)})
        await settle()
        assert reconciler.messages(CID) == []
        assert connection.closed_with == (1000, "Manual disconnect")
