"""
utils/conversation_purge.py
---------------------------------
Remove a whole conversation: attachments first, then every message
record in one transaction.

Blob deletion is cleanup and may be repeated, the transactional
record delete is the unit of atomicity. If any blob cannot be
deleted nothing else is touched, so the caller can simply retry.
"""

from botocore.exceptions import BotoCoreError, ClientError
from pymongo.errors import PyMongoError

from models.message import Message
from utils.db import store_call
from utils.errors import AttachmentDeleteFailed, InvalidArgument, RecordDeleteFailed
from utils.logger import get_logger
from utils.storage import get_storage

logger = get_logger(__name__)


def collect_attachment_urls(messages):
    """Distinct, non-empty attachment URLs in first-seen order."""
    urls = []
    seen = set()
    for m in messages:
        url = (m.get("attachment") or {}).get("file_url")
        if url and isinstance(url, str) and url not in seen:
            seen.add(url)
            urls.append(url)
    return urls


def purge_conversation(conversation_id, collection=None, storage=None):
    conversation_id = str(conversation_id or "").strip()
    if not conversation_id:
        raise InvalidArgument("conversationId is required")

    collection = collection if collection is not None else Message.collection()
    query = {"conversation_id": conversation_id}

    with store_call("attachment collection"):
        messages = list(collection.find(query, {"attachment": 1}))

    if not messages:
        return {"deletedCount": 0, "attachmentCount": 0}

    file_urls = collect_attachment_urls(messages)
    if file_urls:
        storage = storage if storage is not None else get_storage()
        for url in file_urls:
            try:
                storage.delete(url)
            except (ClientError, BotoCoreError, InvalidArgument) as e:
                logger.error("Attachment delete failed for %s in %s: %s", url, conversation_id, e)
                raise AttachmentDeleteFailed("Failed to delete one or more attachments", file_url=url) from e

    deleted_count = _delete_messages(collection, query, conversation_id, file_urls)
    logger.info("Purged conversation %s: %d messages, %d attachments",
                conversation_id, deleted_count, len(file_urls))

    return {"deletedCount": deleted_count, "attachmentCount": len(file_urls)}


def _delete_messages(collection, query, conversation_id, file_urls):
    client = collection.database.client
    try:
        with client.start_session() as session:
            with session.start_transaction():
                # Attachments added since the scan would be orphaned by the delete
                current = collection.find(query, {"attachment": 1}, session=session)
                late = [u for u in collect_attachment_urls(current) if u not in file_urls]
                if late:
                    logger.warning("Conversation %s gained %d attachments during purge, aborting",
                                   conversation_id, len(late))
                    raise AttachmentDeleteFailed(
                        "Conversation changed during purge, retry", file_url=late[0]
                    )
                result = collection.delete_many(query, session=session)
    except PyMongoError as e:
        # start_transaction aborts on the way out, blobs are already gone
        logger.error(
            "Message deletion failed for %s after removing %d attachments: %s",
            conversation_id, len(file_urls), e,
        )
        raise RecordDeleteFailed("Failed to delete messages") from e
    return result.deleted_count or 0
