"""Cloudflare R2 blob storage (S3 compatible) for message attachments and uploads."""

import re
import time

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from flask import current_app

from utils.errors import InvalidArgument
from utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
)

# Deleting an absent object is not an error
MISSING_OBJECT_CODES = ("NoSuchKey", "404", "NotFound")


class StorageService:
    """Put and delete blobs in a single R2 bucket."""

    def __init__(self, client, bucket, public_url):
        self.client = client
        self.bucket = bucket
        self.public_url = (public_url or "").rstrip("/")

    @classmethod
    def from_config(cls, config):
        timeout = config.get("R2_TIMEOUT_SECONDS", 10)
        client = boto3.client(
            "s3",
            endpoint_url=config.get("R2_ENDPOINT") or None,
            aws_access_key_id=config.get("R2_ACCESS_KEY_ID") or None,
            aws_secret_access_key=config.get("R2_SECRET_ACCESS_KEY") or None,
            config=BotoConfig(
                region_name="auto",
                connect_timeout=timeout,
                read_timeout=timeout,
                # Retrying is the caller's decision
                retries={"total_max_attempts": 1, "mode": "standard"},
                s3={"addressing_style": "path"},
            ),
        )
        return cls(client, config.get("R2_BUCKET_NAME"), config.get("R2_PUBLIC_URL"))

    def key_from_url(self, file_url):
        file_url = str(file_url or "").strip()
        if not file_url:
            raise InvalidArgument("No file URL provided")
        prefix = f"{self.public_url}/"
        if self.public_url and file_url.startswith(prefix):
            return file_url[len(prefix):]
        if re.match(r"^[a-z][a-z0-9+.-]*://", file_url, re.IGNORECASE):
            logger.warning("Refusing to delete %s: not under %s", file_url, self.public_url)
            raise InvalidArgument("File URL is outside the storage bucket")
        return file_url

    def public_url_for(self, key):
        return f"{self.public_url}/{key}"

    def delete(self, file_url):
        """Delete the object behind `file_url`. Missing objects count as deleted."""
        key = self.key_from_url(file_url)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in MISSING_OBJECT_CODES:
                logger.info("Blob %s already gone", key)
                return
            raise
        logger.debug("Deleted blob %s", key)

    def upload(self, data, file_name, content_type, folder="uploads"):
        sanitized = re.sub(r"[^a-zA-Z0-9.-]", "_", file_name or "file")
        key = f"{folder}/{int(time.time() * 1000)}_{sanitized}"

        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            ContentLength=len(data),
            Metadata={"originalName": sanitized},
        )
        logger.info("Uploaded %s (%d bytes)", key, len(data))

        return {
            "fileUrl": self.public_url_for(key),
            "fileName": file_name,
            "fileSize": len(data),
            "fileType": content_type,
        }


def validate_file(content_type, size, max_size_mb=10):
    if content_type not in ALLOWED_TYPES:
        raise InvalidArgument(f"File type {content_type} is not supported")
    if size > max_size_mb * 1024 * 1024:
        raise InvalidArgument(f"File size exceeds {max_size_mb}MB limit")


def init_storage(app):
    app.extensions["r2_storage"] = StorageService.from_config(app.config)


def get_storage():
    return current_app.extensions["r2_storage"]
