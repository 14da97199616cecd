"""
Realtime conversations.

Services (chat.services) own every rule: membership, message edit and
delete windows, reactions, read receipts, typing and presence. Views and
the websocket consumer only translate transport to service calls. State
changes are pushed to each recipient's private channel group through
chat.realtime, dispatched after commit onto Celery (chat.tasks).

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create_conversation(user, [other.id])
    conversation, created = result.data
    MessageService.send_message(conversation.id, user, content="Hello!")
"""
