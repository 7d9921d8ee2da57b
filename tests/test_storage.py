import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import ANY, Stubber

from utils.errors import InvalidArgument
from utils.storage import StorageService, validate_file


@pytest.fixture
def s3():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def service(s3):
    client, _ = s3
    return StorageService(client, "bucket", "https://files.example.com/")


def test_key_from_url(service):
    assert service.key_from_url("https://files.example.com/chat/a.pdf") == "chat/a.pdf"
    assert service.key_from_url("chat/a.pdf") == "chat/a.pdf"
    with pytest.raises(InvalidArgument):
        service.key_from_url("")


@pytest.mark.parametrize("url", [
    "https://elsewhere.example.org/chat/a.pdf",
    "http://files.example.com.evil.net/chat/a.pdf",
])
def test_delete_refuses_urls_outside_the_bucket(service, url):
    with pytest.raises(InvalidArgument):
        service.key_from_url(url)
    # Nothing stubbed, so any S3 call would fail the test
    with pytest.raises(InvalidArgument):
        service.delete(url)


def test_delete_sends_key(s3, service):
    _, stubber = s3
    stubber.add_response("delete_object", {}, {"Bucket": "bucket", "Key": "chat/a.pdf"})

    service.delete("https://files.example.com/chat/a.pdf")


def test_delete_missing_object_is_success(s3, service):
    _, stubber = s3
    stubber.add_client_error("delete_object", service_error_code="NoSuchKey", http_status_code=404)

    service.delete("https://files.example.com/chat/gone.pdf")


def test_delete_propagates_other_errors(s3, service):
    _, stubber = s3
    stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(ClientError):
        service.delete("https://files.example.com/chat/a.pdf")


def test_upload_returns_attachment_metadata(s3, service):
    _, stubber = s3
    stubber.add_response(
        "put_object",
        {"ETag": '"abc"'},
        {
            "Bucket": "bucket",
            "Key": ANY,
            "Body": b"hello",
            "ContentType": "text/plain",
            "ContentLength": 5,
            "Metadata": {"originalName": "site_notes.txt"},
        },
    )

    result = service.upload(b"hello", "site notes.txt", "text/plain", folder="chat")

    assert result["fileUrl"].startswith("https://files.example.com/chat/")
    assert result["fileUrl"].endswith("_site_notes.txt")
    assert result["fileName"] == "site notes.txt"
    assert result["fileSize"] == 5
    assert result["fileType"] == "text/plain"


def test_validate_file():
    validate_file("application/pdf", 1024)
    with pytest.raises(InvalidArgument):
        validate_file("application/x-msdownload", 10)
    with pytest.raises(InvalidArgument):
        validate_file("image/png", 11 * 1024 * 1024, max_size_mb=10)
