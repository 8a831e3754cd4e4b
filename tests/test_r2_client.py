import pytest
from botocore.exceptions import ClientError

from estore.errors import StorageUnavailable
from estore.services.r2_client import R2Storage


class FakeS3:
    def __init__(self, fail=False):
        self.fail = fail
        self.deleted = []

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, operation)
        return f"https://r2.example/{Params['Bucket']}/{Params['Key']}?expires={ExpiresIn}"

    def delete_object(self, Bucket, Key):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")
        self.deleted.append((Bucket, Key))


def test_get_reference_presigns_bucket_keys():
    storage = R2Storage(FakeS3(), "products", expires=900)

    assert storage.get_reference("files/kit.zip") == "https://r2.example/products/files/kit.zip?expires=900"


def test_absolute_urls_pass_through():
    s3 = FakeS3()
    storage = R2Storage(s3, "products")
    url = "https://drive.google.com/uc?export=download&id=abc"

    assert storage.get_reference(url) == url
    storage.delete(url)
    assert s3.deleted == []


def test_presign_failure_is_storage_unavailable():
    storage = R2Storage(FakeS3(fail=True), "products")

    with pytest.raises(StorageUnavailable):
        storage.get_reference("files/kit.zip")


def test_delete_is_best_effort():
    ok = FakeS3()
    R2Storage(ok, "products").delete("files/kit.zip")
    assert ok.deleted == [("products", "files/kit.zip")]

    # failures are logged, not raised
    R2Storage(FakeS3(fail=True), "products").delete("files/kit.zip")
