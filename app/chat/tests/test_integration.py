"""
End-to-end conversation journey over the REST API.

Two users start a chat, exchange and read messages, react, edit and delete,
then a third user is added and the chat becomes a group. Realtime events are
captured with the `published` fixture.
"""

from rest_framework import status

from chat.constants import MESSAGE_CONFIG, REALTIME_EVENTS


BASE_URL = "/api/v1/chat"


class TestConversationJourney:
    def test_direct_chat_to_group(
        self, client_for, alice, bob, carol, published, django_capture_on_commit_callbacks
    ):
        as_alice = client_for(alice)
        as_bob = client_for(bob)

        created = as_alice.post(
            f"{BASE_URL}/conversations/", {"participant_ids": [bob.id]}, format="json"
        )
        assert created.status_code == status.HTTP_201_CREATED
        conversation_id = created.data["id"]
        messages_url = f"{BASE_URL}/conversations/{conversation_id}/messages/"

        with django_capture_on_commit_callbacks(execute=True):
            sent = as_alice.post(messages_url, {"content": "Lunch?"}, format="json")
        assert sent.status_code == status.HTTP_201_CREATED
        message_id = sent.data["id"]
        assert published.events_for(bob.id) == [REALTIME_EVENTS.NEW_MESSAGE]

        inbox = as_bob.get(f"{BASE_URL}/conversations/")
        assert inbox.data[0]["unread_count"] == 1
        assert inbox.data[0]["last_message_content"] == "Lunch?"

        with django_capture_on_commit_callbacks(execute=True):
            read = as_bob.post(f"{BASE_URL}/messages/{message_id}/read/")
        assert read.status_code == status.HTTP_200_OK
        assert REALTIME_EVENTS.MESSAGE_SEEN in published.events_for(alice.id)
        assert as_bob.get(f"{BASE_URL}/conversations/").data[0]["unread_count"] == 0

        reacted = as_bob.post(
            f"{BASE_URL}/messages/{message_id}/reactions/", {"emoji": "👍"}, format="json"
        )
        assert reacted.status_code == status.HTTP_201_CREATED

        edited = as_alice.patch(
            f"{BASE_URL}/messages/{message_id}/", {"content": "Lunch at noon?"}, format="json"
        )
        assert edited.status_code == status.HTTP_200_OK

        page = as_bob.get(messages_url).data["messages"]
        assert page[0]["content"] == "Lunch at noon?"
        assert page[0]["status"] == "seen"
        assert [r["id"] for r in page[0]["reactions"]["👍"]] == [bob.id]

        deleted = as_alice.delete(f"{BASE_URL}/messages/{message_id}/?for_everyone=true")
        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert as_bob.get(messages_url).data["messages"] == []
        assert as_bob.get(f"{BASE_URL}/conversations/").data[0]["last_message_content"] == (
            MESSAGE_CONFIG.DELETED_PLACEHOLDER
        )

        added = as_alice.post(
            f"{BASE_URL}/conversations/{conversation_id}/participants/",
            {"user_ids": [carol.id]},
            format="json",
        )
        assert added.status_code == status.HTTP_200_OK
        detail = client_for(carol).get(f"{BASE_URL}/conversations/{conversation_id}/")
        assert detail.status_code == status.HTTP_200_OK
        assert detail.data["is_group"] is True
