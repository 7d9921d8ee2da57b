from datetime import datetime

from pymongo import ASCENDING, DESCENDING

from utils.db import mongo
from utils.errors import InvalidArgument

ROLES = ("client", "superadmin")


class Message:

    @staticmethod
    def collection():
        return mongo.db.messages

    def __init__(self, conversation_id, sender, receiver, text="", timestamp=None,
                 read=False, attachment=None):
        self.conversation_id = conversation_id
        self.sender = sender      # "client" | "superadmin" | "system"
        self.receiver = receiver  # "client" | "superadmin" | "all"
        self.text = text or ""
        self.timestamp = timestamp or datetime.utcnow()
        self.read = read
        self.attachment = attachment

    def to_dict(self):
        doc = {
            "conversation_id": self.conversation_id,
            "sender": self.sender,
            "receiver": self.receiver,
            "text": self.text,
            "timestamp": self.timestamp,
            "read": self.read,
        }
        if self.attachment:
            doc["attachment"] = self.attachment
        return doc

    def save(self):
        return Message.collection().insert_one(self.to_dict())

    @staticmethod
    def compose(conversation_id, sender, text=None, attachment=None):
        """Build a new message from client input, validating it first."""
        text = (text or "").strip()
        if (not text and not attachment) or not sender:
            raise InvalidArgument("Missing required fields")
        if sender not in ROLES:
            raise InvalidArgument("Invalid sender type")
        conversation_id = str(conversation_id or "").strip()
        if not conversation_id:
            raise InvalidArgument("conversationId is required")

        receiver = "superadmin" if sender == "client" else "client"
        return Message(conversation_id, sender, receiver, text=text,
                       attachment=normalize_attachment(attachment))

    @staticmethod
    def find_by_conversation(conversation_id):
        return list(
            Message.collection().find({"conversation_id": conversation_id}).sort("timestamp", ASCENDING)
        )

    @staticmethod
    def mark_read(conversation_id, receiver):
        result = Message.collection().update_many(
            {"conversation_id": conversation_id, "receiver": receiver, "read": False},
            {"$set": {"read": True}},
        )
        return result.modified_count

    @staticmethod
    def inbox(role):
        """
        One row per conversation the role takes part in: the latest message
        and how many messages addressed to the role are still unread.
        """
        pipeline = [
            {"$match": {"$or": [{"sender": role}, {"receiver": role}]}},
            {"$sort": {"timestamp": ASCENDING}},
            {"$group": {
                "_id": "$conversation_id",
                "last_message": {"$last": "$$ROOT"},
                "unread_count": {"$sum": {"$cond": [
                    {"$and": [{"$eq": ["$receiver", role]}, {"$eq": ["$read", False]}]}, 1, 0
                ]}},
            }},
            {"$sort": {"last_message.timestamp": DESCENDING}},
        ]
        return list(Message.collection().aggregate(pipeline))

    @staticmethod
    def ensure_indexes():
        Message.collection().create_index(
            [("conversation_id", ASCENDING), ("timestamp", ASCENDING)],
            name="conversation_id_1_timestamp_1",
        )


def conversation_id_for(participant1, participant2):
    participants = [str(participant1 or "").strip(), str(participant2 or "").strip()]
    if not all(participants):
        raise InvalidArgument("participant1 and participant2 are required")
    return "_".join(sorted(participants))


def normalize_attachment(attachment):
    """Accept camelCase attachment metadata from the API and store it snake_case."""
    if not attachment:
        return None
    file_url = attachment.get("fileUrl") or attachment.get("file_url")
    if not file_url:
        raise InvalidArgument("Attachment must include fileUrl")
    return {
        "file_url": file_url,
        "file_name": attachment.get("fileName") or attachment.get("file_name"),
        "file_size": attachment.get("fileSize") or attachment.get("file_size"),
        "file_type": attachment.get("fileType") or attachment.get("file_type"),
    }


def serialize_message(doc):
    attachment = doc.get("attachment")
    return {
        "id": str(doc["_id"]),
        "conversationId": doc.get("conversation_id"),
        "text": doc.get("text", ""),
        "sender": doc.get("sender"),
        "receiver": doc.get("receiver"),
        "timestamp": doc["timestamp"].isoformat() if doc.get("timestamp") else None,
        "read": bool(doc.get("read")),
        "attachment": {
            "fileUrl": attachment.get("file_url"),
            "fileName": attachment.get("file_name"),
            "fileSize": attachment.get("file_size"),
            "fileType": attachment.get("file_type"),
        } if attachment else None,
    }
