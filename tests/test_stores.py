"""Tests for store adapters against mocked client libraries"""

import io
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from elasticsearch import ConflictError, NotFoundError, TransportError

from around.models.account import Account
from around.models.post import Location, Post
from around.services.ingestion import IngestionPipeline, parse_submission
from around.stores.elasticsearch_store import (
    POST_MAPPINGS,
    ElasticsearchCredentialStore,
    ElasticsearchDocumentIndex,
)
from around.stores.memory import InMemoryBlobStore, InMemoryDocumentIndex, InMemoryWideColumnStore
from around.stores.s3_store import S3BlobStore
from around.utils.exceptions import BlobStoreFailed, StoreUnavailable


def api_error(cls, status):
    return cls(message=cls.__name__, meta=MagicMock(status=status), body={})


@pytest.fixture
def es():
    return MagicMock()


class TestElasticsearchDocumentIndex:

    def test_index_now_refreshes(self, es):
        post = Post(id="p1", user="alice", message="hi", location=Location(lat=1, lon=2))
        ElasticsearchDocumentIndex(es, "around").index_now("p1", post)

        es.index.assert_called_once_with(
            index="around",
            id="p1",
            document={"id": "p1", "user": "alice", "message": "hi", "url": "", "location": {"lat": 1.0, "lon": 2.0}},
            refresh=True,
        )

    def test_query_by_radius_builds_geo_distance_query(self, es):
        es.search.return_value = {
            "took": 3,
            "hits": {
                "total": {"value": 1},
                "hits": [
                    {
                        "_id": "p1",
                        "_source": {"user": "bob", "message": "m", "url": "", "location": {"lat": 37.0, "lon": -122.0}},
                    }
                ],
            },
        }
        posts = ElasticsearchDocumentIndex(es, "around").query_by_radius(37.0, -122.0, 1.5, limit=10)

        es.search.assert_called_once_with(
            index="around",
            query={"geo_distance": {"distance": "1.5km", "location": {"lat": 37.0, "lon": -122.0}}},
            size=10,
        )
        assert posts == [Post(id="p1", user="bob", message="m", location=Location(lat=37.0, lon=-122.0))]

    def test_transport_error_is_store_unavailable(self, es):
        es.search.side_effect = TransportError("connection refused")
        with pytest.raises(StoreUnavailable) as exc_info:
            ElasticsearchDocumentIndex(es).query_by_radius(0, 0, 1)
        assert exc_info.value.store == "index"

    def test_ensure_ready_creates_missing_index(self, es):
        es.indices.exists.return_value = False
        ElasticsearchDocumentIndex(es, "around").ensure_ready()
        es.indices.create.assert_called_once_with(index="around", mappings=POST_MAPPINGS)

    def test_ensure_ready_keeps_existing_index(self, es):
        es.indices.exists.return_value = True
        ElasticsearchDocumentIndex(es).ensure_ready()
        es.indices.create.assert_not_called()


class TestElasticsearchCredentialStore:

    def test_find_unknown_user(self, es):
        es.get.side_effect = api_error(NotFoundError, 404)
        assert ElasticsearchCredentialStore(es).find("nobody") is None

    def test_find_existing_user(self, es):
        es.get.return_value = {"_source": {"username": "alice", "password_hash": "h", "age": 3}}
        account = ElasticsearchCredentialStore(es).find("alice")
        assert account == Account(username="alice", password_hash="h", age=3)

    def test_insert_if_absent_uses_create(self, es):
        account = Account(username="alice", password_hash="h")
        assert ElasticsearchCredentialStore(es, "users").insert_if_absent(account) is True
        es.create.assert_called_once_with(
            index="users",
            id="alice",
            document=account.model_dump(),
            refresh=True,
        )

    def test_insert_conflict_returns_false(self, es):
        es.create.side_effect = api_error(ConflictError, 409)
        account = Account(username="alice", password_hash="h")
        assert ElasticsearchCredentialStore(es).insert_if_absent(account) is False

    def test_find_transport_error(self, es):
        es.get.side_effect = TransportError("timeout")
        with pytest.raises(StoreUnavailable):
            ElasticsearchCredentialStore(es).find("alice")


class TestS3BlobStore:

    def test_put_returns_public_url(self):
        s3 = MagicMock()
        store = S3BlobStore("post-images", client=s3)

        url = store.put("p1", b"data", "image/jpeg")

        assert url == "https://post-images.s3.amazonaws.com/p1"
        kwargs = s3.upload_fileobj.call_args.kwargs
        assert kwargs["Bucket"] == "post-images"
        assert kwargs["Key"] == "p1"
        assert kwargs["ExtraArgs"] == {"ContentType": "image/jpeg"}
        assert kwargs["Fileobj"].read() == b"data"

    def test_custom_endpoint_url(self):
        store = S3BlobStore("b", endpoint_url="http://localhost:4566/", client=MagicMock())
        assert store.put("k", b"") == "http://localhost:4566/b/k"

    def test_set_public_readable(self):
        s3 = MagicMock()
        S3BlobStore("b", client=s3).set_public_readable("k")
        s3.put_object_acl.assert_called_once_with(Bucket="b", Key="k", ACL="public-read")

    def test_client_error_is_store_unavailable(self):
        s3 = MagicMock()
        s3.put_object_acl.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObjectAcl"
        )
        with pytest.raises(StoreUnavailable) as exc_info:
            S3BlobStore("b", client=s3).set_public_readable("k")
        assert exc_info.value.store == "blob"


class TestCloudinaryBlobStore:

    def test_requires_credentials(self):
        from around.stores.cloudinary_store import CloudinaryBlobStore

        with pytest.raises(ValueError):
            CloudinaryBlobStore(cloud_name="demo", api_key="", api_secret="")

    def test_upload_is_private_until_made_public(self):
        from around.stores.cloudinary_store import CloudinaryBlobStore

        store = CloudinaryBlobStore(cloud_name="demo", api_key="key", api_secret="secret", folder="around")
        with patch("cloudinary.uploader.upload") as upload, patch("cloudinary.api.update") as update:
            upload.return_value = {"secure_url": "https://res.cloudinary.com/demo/around/p1"}

            url = store.put("p1", b"img", "image/png")
            store.set_public_readable("p1")

        assert url == "https://res.cloudinary.com/demo/around/p1"
        assert upload.call_args.kwargs["public_id"] == "around/p1"
        assert upload.call_args.kwargs["access_mode"] == "authenticated"
        update.assert_called_once_with(
            "around/p1", resource_type="image", access_mode="public", timeout=5.0
        )

    def test_access_mode_failure_aborts_post(self):
        from cloudinary.exceptions import Error as CloudinaryError

        from around.stores.cloudinary_store import CloudinaryBlobStore

        index = InMemoryDocumentIndex()
        columns = InMemoryWideColumnStore()
        pipeline = IngestionPipeline(
            CloudinaryBlobStore(cloud_name="demo", api_key="key", api_secret="secret"), index, columns
        )
        with patch("cloudinary.uploader.upload") as upload, patch("cloudinary.api.update") as update:
            upload.return_value = {"secure_url": "https://res.cloudinary.com/demo/around/p1"}
            update.side_effect = CloudinaryError("Resource not found")

            with pytest.raises(BlobStoreFailed):
                pipeline.submit("alice", parse_submission("m", "1", "1", media=io.BytesIO(b"img")))

        assert index.documents == {}
        assert columns.rows == {}


class TestInMemoryStores:

    def test_set_public_readable_unknown_key(self):
        with pytest.raises(StoreUnavailable):
            InMemoryBlobStore().set_public_readable("missing")

    def test_wide_column_keeps_versions(self):
        store = InMemoryWideColumnStore()
        t1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
        t2 = datetime(2024, 1, 2, tzinfo=timezone.utc)
        store.append_row("p1", {"post": {"message": b"new"}}, t2)
        store.append_row("p1", {"post": {"message": b"old"}}, t1)

        assert len(store.rows["p1"]["post"]["message"]) == 2
        assert store.latest("p1") == {"post": {"message": b"new"}}


class TestCassandraWideColumnStore:

    @pytest.fixture
    def cassandra_store(self):
        cassandra = pytest.importorskip("cassandra")
        try:
            from around.stores import cassandra_store
        except cassandra.DependencyException as e:  # no usable event loop on this interpreter
            pytest.skip(f"cassandra driver unavailable: {e}")
        return cassandra_store

    def test_append_row_batches_every_cell_with_timestamp(self, cassandra_store):
        session = MagicMock()
        store = cassandra_store.CassandraWideColumnStore(["localhost"], session=session)
        timestamp = datetime(2024, 1, 1, tzinfo=timezone.utc)

        with patch.object(cassandra_store, "BatchStatement") as batch_cls:
            store.append_row(
                "p1",
                {"post": {"user": b"alice", "message": b"hi"}, "location": {"lat": b"1.0"}},
                timestamp,
            )

        batch = batch_cls.return_value
        insert = session.prepare.return_value
        micros = int(timestamp.timestamp() * 1_000_000)
        assert [c.args for c in batch.add.call_args_list] == [
            (insert, ("p1", "post", "user", b"alice", micros)),
            (insert, ("p1", "post", "message", b"hi", micros)),
            (insert, ("p1", "location", "lat", b"1.0", micros)),
        ]
        session.execute.assert_called_once_with(batch, timeout=5.0)

    def test_driver_error_is_store_unavailable(self, cassandra_store):
        from cassandra import DriverException

        session = MagicMock()
        session.prepare.side_effect = DriverException("no connection")
        store = cassandra_store.CassandraWideColumnStore(["localhost"], session=session)
        with pytest.raises(StoreUnavailable):
            store.append_row("p1", {"post": {"user": b"a"}}, datetime.now(timezone.utc))
