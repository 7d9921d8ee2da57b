from flask import Blueprint, jsonify, request

from models.message import ROLES, Message, conversation_id_for, serialize_message
from utils.conversation_purge import purge_conversation
from utils.db import store_call
from utils.errors import InvalidArgument

message_bp = Blueprint("messages", __name__, url_prefix="/api/messages")
conversation_bp = Blueprint("conversations", __name__, url_prefix="/api/conversations")


# ==========================================================
# MESSAGES
# ==========================================================
@message_bp.route("", methods=["GET"])
def list_messages():
    conversation_id = request.args.get("conversationId")
    if not conversation_id:
        # Never list a global thread
        return jsonify({"success": True, "messages": []}), 200

    with store_call("message listing"):
        messages = Message.find_by_conversation(conversation_id)
    return jsonify({"success": True, "messages": [serialize_message(m) for m in messages]}), 200


@message_bp.route("", methods=["POST"])
def send_message():
    data = request.get_json(silent=True) or {}
    message = Message.compose(
        data.get("conversationId"),
        data.get("sender"),
        text=data.get("text"),
        attachment=data.get("attachment"),
    )
    with store_call("message insert"):
        result = message.save()

    doc = message.to_dict()
    doc["_id"] = result.inserted_id
    return jsonify({"success": True, "data": serialize_message(doc)}), 201


@message_bp.route("/read", methods=["PATCH"])
def mark_read():
    data = request.get_json(silent=True) or {}
    conversation_id = str(data.get("conversationId") or "").strip()
    receiver = data.get("receiver")
    if not conversation_id:
        raise InvalidArgument("conversationId is required")
    if receiver not in ROLES:
        raise InvalidArgument("Invalid receiver type")

    with store_call("mark read"):
        updated = Message.mark_read(conversation_id, receiver)
    return jsonify({"success": True, "updatedCount": updated}), 200


@message_bp.route("/delete-all", methods=["POST"])
def delete_all():
    data = request.get_json(silent=True) or {}
    result = purge_conversation(data.get("conversationId"))
    return jsonify({"success": True, **result}), 200


# ==========================================================
# CONVERSATIONS
# ==========================================================
@conversation_bp.route("", methods=["GET"])
def inbox():
    role = request.args.get("role")
    if role not in ROLES:
        raise InvalidArgument("role must be client or superadmin")

    with store_call("conversation inbox"):
        rows = Message.inbox(role)

    return jsonify([{
        "conversationId": row["_id"],
        "lastMessage": serialize_message(row["last_message"]),
        "unreadCount": row["unread_count"],
    } for row in rows]), 200


@conversation_bp.route("", methods=["POST"])
def start_conversation():
    data = request.get_json(silent=True) or {}
    conversation_id = conversation_id_for(data.get("participant1"), data.get("participant2"))

    with store_call("conversation start"):
        if Message.collection().find_one({"conversation_id": conversation_id}, {"_id": 1}) is None:
            Message(conversation_id, "system", "all", text="Conversation started", read=True).save()

    return jsonify({"conversationId": conversation_id}), 200
