"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversations, participants, message pages, typing
- MessageViewSet: Edit, delete, reactions and read receipts on one message
- PresenceView: Presence lookup, explicit transitions and heartbeat

URL Structure:
    /api/v1/chat/conversations/                        GET, POST
    /api/v1/chat/conversations/{id}/                   GET
    /api/v1/chat/conversations/{id}/participants/      POST, DELETE (?user_id=)
    /api/v1/chat/conversations/{id}/messages/          GET (?cursor=&limit=), POST
    /api/v1/chat/conversations/{id}/typing/            POST
    /api/v1/chat/messages/{id}/                        PATCH, DELETE (?for_everyone=true)
    /api/v1/chat/messages/{id}/reactions/              GET, POST, DELETE (?emoji=)
    /api/v1/chat/messages/{id}/read/                   POST
    /api/v1/chat/presence/                             GET (?user_ids=), POST, PATCH

Design Decisions:
    - Views only parse input and shape output; every rule lives in chat.services
    - A failed ServiceResult is raised as BaseApplicationError.from_result and
      rendered by core.exceptions.application_exception_handler, so status
      codes follow ErrorCode in one place
    - Realtime fan-out happens inside the services after commit
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BadRequestError, BaseApplicationError
from chat.serializers import (
    ConversationCreateSerializer,
    ConversationListSerializer,
    MessageCreateSerializer,
    MessageEditSerializer,
    MessageListQuerySerializer,
    MessagePageSerializer,
    MessageSerializer,
    ParticipantAddSerializer,
    ParticipantSerializer,
    PresenceQuerySerializer,
    PresenceSetSerializer,
    ReactionCreateSerializer,
    ReactionSerializer,
    ReadReceiptSerializer,
    TypingSerializer,
)
from chat.services import (
    ConversationService,
    MessageService,
    ParticipantService,
    PresenceService,
    ReactionService,
    TypingService,
)


def _unwrap(result):
    """Return result.data, raising the mapped application error on failure."""
    if not result:
        raise BaseApplicationError.from_result(result)
    return result.data


def _query_flag(request, name: str) -> bool:
    return request.query_params.get(name, "").lower() in ("1", "true", "yes")


def _presence_body(presence) -> dict:
    return PresenceService.get_presence([presence.user_id]).data[presence.user_id]


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        responses={200: ConversationListSerializer(many=True)},
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        request=ConversationCreateSerializer,
        responses={
            200: ConversationListSerializer,
            201: ConversationListSerializer,
        },
        tags=["Chat - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={200: ConversationListSerializer},
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for conversation operations.

    list:
        Active conversations of the current user, newest activity first,
        with unread counts and last message preview.

    create:
        One other user: returns the existing one-on-one conversation (200)
        or creates it (201). Several users: creates a group (201).

    retrieve:
        Conversation with its active participants.

    participants:
        POST adds users (group conversion for one-on-one), DELETE removes
        ?user_id= (self-removal is leaving).

    messages:
        GET returns one cursor page, POST sends a message.

    typing:
        Broadcast a typing indicator to the other participants.
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        conversations = _unwrap(ConversationService.list_conversations(request.user))
        return Response(ConversationListSerializer(conversations, many=True).data)

    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        conversation, created = _unwrap(
            ConversationService.create_conversation(
                creator=request.user,
                participant_ids=serializer.validated_data["participant_ids"],
                title=serializer.validated_data["title"],
            )
        )
        conversation = _unwrap(
            ConversationService.get_conversation(conversation.id, request.user)
        )
        return Response(
            ConversationListSerializer(conversation).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def retrieve(self, request, pk=None):
        conversation = _unwrap(ConversationService.get_conversation(pk, request.user))
        return Response(ConversationListSerializer(conversation).data)

    @extend_schema(
        operation_id="add_participants",
        summary="Add participants",
        request=ParticipantAddSerializer,
        responses={
            200: ParticipantSerializer(many=True),
            403: OpenApiResponse(description="Not a participant, or not a group admin"),
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Chat - Participants"],
    )
    def add_participants(self, request, pk=None):
        serializer = ParticipantAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        added = _unwrap(
            ParticipantService.add_participants(
                conversation_id=pk,
                actor=request.user,
                user_ids=serializer.validated_data["user_ids"],
            )
        )
        return Response(ParticipantSerializer(added, many=True).data)

    @extend_schema(
        operation_id="remove_participant",
        summary="Remove participant or leave",
        parameters=[
            OpenApiParameter(
                name="user_id",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="User to remove; defaults to the current user (leave)",
            ),
        ],
        responses={
            204: OpenApiResponse(description="Participant removed"),
            403: OpenApiResponse(description="Not a participant, or not an admin"),
            404: OpenApiResponse(description="Target is not an active participant"),
        },
        tags=["Chat - Participants"],
    )
    def remove_participant(self, request, pk=None):
        raw_user_id = request.query_params.get("user_id")
        try:
            target_user_id = int(raw_user_id) if raw_user_id else request.user.id
        except ValueError:
            raise BadRequestError(
                "user_id must be an integer",
                details={"user_id": ["A valid integer is required."]},
            )

        _unwrap(
            ParticipantService.remove_participant(
                conversation_id=pk,
                actor=request.user,
                target_user_id=target_user_id,
            )
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="list_messages",
        summary="List messages",
        description=(
            "Messages strictly older than the cursor, in chronological order. "
            "Without a cursor returns the newest page and marks it read."
        ),
        parameters=[MessageListQuerySerializer],
        responses={
            200: MessagePageSerializer,
            403: OpenApiResponse(description="Not a participant in this conversation"),
        },
        tags=["Chat - Messages"],
    )
    def list_messages(self, request, pk=None):
        query = MessageListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        page = _unwrap(
            ConversationService.list_messages(
                conversation_id=pk,
                user=request.user,
                cursor=query.validated_data.get("cursor"),
                limit=query.validated_data["limit"],
            )
        )
        return Response(
            {
                "messages": MessageSerializer(page.messages, many=True).data,
                "has_more": page.has_more,
                "next_cursor": page.next_cursor,
            }
        )

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Empty content or invalid reply target"),
            403: OpenApiResponse(description="Not a participant in this conversation"),
        },
        tags=["Chat - Messages"],
    )
    def send_message(self, request, pk=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = _unwrap(
            MessageService.send_message(
                conversation_id=pk,
                sender=request.user,
                **serializer.validated_data,
            )
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="set_typing",
        summary="Set typing indicator",
        request=TypingSerializer,
        responses={
            200: OpenApiResponse(description="Typing indicator accepted"),
            403: OpenApiResponse(description="Not a participant in this conversation"),
        },
        tags=["Chat - Messages"],
    )
    def typing(self, request, pk=None):
        serializer = TypingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        _unwrap(
            TypingService.set_typing(
                conversation_id=pk,
                user=request.user,
                is_typing=serializer.validated_data["is_typing"],
            )
        )
        return Response({"status": "ok"})


class MessageViewSet(viewsets.ViewSet):
    """
    ViewSet for operations on a single message.

    partial_update:
        Edit content (sender only, text only, within 15 minutes).

    destroy:
        Hide for self, or ?for_everyone=true to redact for all
        participants (sender only, within 1 hour).

    reactions / react / unreact:
        Grouped reactions, add one, remove one (?emoji=).

    read:
        Record a read receipt.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        request=MessageEditSerializer,
        responses={
            200: MessageSerializer,
            400: OpenApiResponse(description="Edit window expired or not a text message"),
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def partial_update(self, request, pk=None):
        serializer = MessageEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = _unwrap(
            MessageService.edit_message(
                user=request.user,
                message_id=pk,
                new_content=serializer.validated_data["content"],
            )
        )
        return Response(MessageSerializer(message).data)

    @extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        parameters=[
            OpenApiParameter(
                name="for_everyone",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                description="Redact for all participants instead of hiding for yourself",
            ),
        ],
        responses={
            204: OpenApiResponse(description="Message deleted"),
            400: OpenApiResponse(description="Delete window expired or already deleted"),
            403: OpenApiResponse(description="Not a participant, or not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def destroy(self, request, pk=None):
        _unwrap(
            MessageService.delete_message(
                user=request.user,
                message_id=pk,
                for_everyone=_query_flag(request, "for_everyone"),
            )
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="get_message_reactions",
        summary="Get message reactions",
        description="Reactions grouped by emoji, each with the list of reactors.",
        responses={
            200: OpenApiResponse(description="{'reactions': {emoji: [user]}, 'total': n}"),
            403: OpenApiResponse(description="Not a participant in this conversation"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Reactions"],
    )
    def reactions(self, request, pk=None):
        return Response(_unwrap(ReactionService.get_reactions(request.user, pk)))

    @extend_schema(
        operation_id="add_reaction",
        summary="Add reaction",
        request=ReactionCreateSerializer,
        responses={
            201: ReactionSerializer,
            400: OpenApiResponse(description="Emoji not allowed"),
            409: OpenApiResponse(description="Reaction already exists"),
        },
        tags=["Chat - Reactions"],
    )
    def react(self, request, pk=None):
        serializer = ReactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reaction = _unwrap(
            ReactionService.react(
                user=request.user,
                message_id=pk,
                emoji=serializer.validated_data["emoji"],
            )
        )
        return Response(ReactionSerializer(reaction).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="remove_reaction",
        summary="Remove reaction",
        parameters=[
            OpenApiParameter(
                name="emoji",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
            ),
        ],
        responses={
            204: OpenApiResponse(description="Reaction removed"),
            404: OpenApiResponse(description="Message or reaction not found"),
        },
        tags=["Chat - Reactions"],
    )
    def unreact(self, request, pk=None):
        emoji = request.query_params.get("emoji", "")
        if not emoji:
            raise BadRequestError(
                "emoji is required",
                details={"emoji": ["This field is required."]},
            )

        _unwrap(ReactionService.unreact(user=request.user, message_id=pk, emoji=emoji))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="mark_message_read",
        summary="Mark message read",
        request=None,
        responses={
            200: ReadReceiptSerializer,
            400: OpenApiResponse(description="Cannot read your own message"),
            403: OpenApiResponse(description="Not a participant in this conversation"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def read(self, request, pk=None):
        receipt = _unwrap(MessageService.mark_read(user=request.user, message_id=pk))
        return Response(ReadReceiptSerializer(receipt).data)


class PresenceView(APIView):
    """
    Presence endpoints.

    GET: presence for ?user_ids=1,2,3 (unknown users get the offline default)
    POST: explicit online/offline transition
    PATCH: heartbeat
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_presence",
        summary="Get presence",
        parameters=[
            OpenApiParameter(
                name="user_ids",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Comma-separated user IDs",
            ),
        ],
        responses={200: OpenApiResponse(description="{user_id: presence}")},
        tags=["Chat - Presence"],
    )
    def get(self, request):
        query = PresenceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        presence = _unwrap(PresenceService.get_presence(query.validated_data["user_ids"]))
        return Response({"presence": {str(k): v for k, v in presence.items()}})

    @extend_schema(
        operation_id="set_presence",
        summary="Set presence",
        request=PresenceSetSerializer,
        responses={200: OpenApiResponse(description="Updated presence")},
        tags=["Chat - Presence"],
    )
    def post(self, request):
        serializer = PresenceSetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        presence = _unwrap(
            PresenceService.set_presence(
                user=request.user,
                is_online=serializer.validated_data["is_online"],
                session_id=serializer.validated_data.get("session_id"),
            )
        )
        return Response(_presence_body(presence))

    @extend_schema(
        operation_id="presence_heartbeat",
        summary="Presence heartbeat",
        request=None,
        responses={200: OpenApiResponse(description="Heartbeat accepted")},
        tags=["Chat - Presence"],
    )
    def patch(self, request):
        presence = _unwrap(PresenceService.heartbeat(request.user))
        return Response(_presence_body(presence))
