from typing import BinaryIO
from minio import Minio
from transit.src.constants import MINIO_HOST, MINIO_PASSWORD, MINIO_PORT, MINIO_USERNAME

# MinIO client instance
client: Minio = Minio(
    endpoint=f"{MINIO_HOST}:{MINIO_PORT}",
    access_key=MINIO_USERNAME,
    secret_key=MINIO_PASSWORD,
    secure=False,
)


def createBucket(bucketName: str) -> None:
    """
    Create a bucket unless it already exists.

    Raises:
        S3Error: If the bucket cannot be created.
    """
    if not client.bucket_exists(bucketName):
        client.make_bucket(bucketName)


def deleteBucket(bucketName: str) -> None:
    """
    Delete a bucket and every object inside it. A missing bucket is ignored.

    Raises:
        S3Error: If the bucket or objects cannot be deleted.
    """
    if not client.bucket_exists(bucketName):
        return
    for object in client.list_objects(bucketName, recursive=True):
        client.remove_object(bucketName, object.object_name)
    client.remove_bucket(bucketName)


def downloadFile(bucketName: str, objectID: str) -> bytes:
    """
    Read a stored object.

    Raises:
        S3Error: If the object cannot be retrieved.
    """
    response = client.get_object(bucketName, objectID)
    try:
        return response.read()
    finally:
        response.close()
        response.release_conn()


def deleteFile(bucketName: str, objectID: str) -> None:
    """
    Raises:
        S3Error: If the object cannot be deleted.
    """
    client.remove_object(bucketName, objectID)


def uploadFile(
    bucketName: str, objectID: str, size: int, fileObject: BinaryIO, contentType: str
) -> None:
    """
    Store an object, replacing any previous object with the same key.

    Args:
        bucketName (str): Target bucket.
        objectID (str): Object key, e.g. "agency/3.jpeg".
        size (int): Size of the data in bytes.
        fileObject (BinaryIO): Readable stream with the data.
        contentType (str): MIME type served back on download.

    Raises:
        S3Error: If the object cannot be stored.
    """
    client.put_object(bucketName, objectID, fileObject, size, content_type=contentType)
