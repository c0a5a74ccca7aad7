import io

import pytest
from botocore.response import StreamingBody
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from exceptions import StorageError
from s3_client import S3Client


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")


def make_client(prefix=""):
    s3 = S3Client("site", prefix=prefix, region="us-east-1")
    return s3, Stubber(s3.client)


def test_prefix_is_normalized():
    assert S3Client("site", prefix="/www/", region="us-east-1").prefix == "www/"
    assert S3Client("site", region="us-east-1").prefix == ""


def test_check_exists_paginates_and_answers_every_key():
    s3, stubber = make_client()
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "about"}, {"Key": "about.html"}], "IsTruncated": True,
         "NextContinuationToken": "page-2"},
        {"Bucket": "site", "Prefix": ""},
    )
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "team/index.html"}], "IsTruncated": False},
        {"Bucket": "site", "Prefix": "", "ContinuationToken": "page-2"},
    )

    with stubber:
        found = s3.check_exists(["about", "about.html", "about/index.html", "team/index.html"])

    assert found == {
        "about": True,
        "about.html": True,
        "about/index.html": False,
        "team/index.html": True,
    }


def test_list_keys_strips_prefix():
    s3, stubber = make_client(prefix="www")
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "www/"}, {"Key": "www/a.html"}], "IsTruncated": False},
        {"Bucket": "site", "Prefix": "www/"},
    )
    with stubber:
        assert s3.list_keys() == {"a.html"}


def test_listing_failure_raises_storage_error():
    s3, stubber = make_client()
    stubber.add_client_error("list_objects_v2", service_error_code="AccessDenied", http_status_code=403)
    with stubber, pytest.raises(StorageError):
        s3.check_exists(["a"])


def test_copy_object_is_server_side_within_bucket():
    s3, stubber = make_client(prefix="www")
    stubber.add_response(
        "copy_object",
        {},
        {"Bucket": "site", "Key": "www/a", "CopySource": {"Bucket": "site", "Key": "www/a.html"}},
    )
    with stubber:
        assert s3.copy_object("a.html", "a") is True
    stubber.assert_no_pending_responses()


def test_copy_failure_returns_false():
    s3, stubber = make_client()
    stubber.add_client_error("copy_object", service_error_code="NoSuchKey", http_status_code=404)
    with stubber:
        assert s3.copy_object("a.html", "a") is False


def test_delete_object():
    s3, stubber = make_client()
    stubber.add_response("delete_object", {}, {"Bucket": "site", "Key": "a.html"})
    stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
    with stubber:
        assert s3.delete_object("a.html") is True
        assert s3.delete_object("a.html") is False


def test_get_object_text():
    s3, stubber = make_client()
    data = b"<urlset/>"
    stubber.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(data), len(data))},
        {"Bucket": "site", "Key": "sitemap.xml"},
    )
    stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
    with stubber:
        assert s3.get_object_text("sitemap.xml") == "<urlset/>"
        with pytest.raises(StorageError):
            s3.get_object_text("sitemap.xml")


def test_get_object_text_that_is_not_utf8_raises_storage_error():
    s3, stubber = make_client()
    data = b"<urlset><loc>\xff\xfe</loc></urlset>"
    stubber.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(data), len(data))},
        {"Bucket": "site", "Key": "sitemap.xml"},
    )
    with stubber, pytest.raises(StorageError):
        s3.get_object_text("sitemap.xml")


def test_connection_errors_return_false(monkeypatch):
    s3, _ = make_client()

    def unreachable(**kwargs):
        raise EndpointConnectionError(endpoint_url="https://site.s3.amazonaws.com")

    monkeypatch.setattr(s3.client, "copy_object", unreachable)
    monkeypatch.setattr(s3.client, "delete_object", unreachable)

    assert s3.copy_object("a.html", "a") is False
    assert s3.delete_object("a.html") is False
