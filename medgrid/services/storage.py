# MEDGRID REGISTRY GRID

# COMPONENT: STORAGE SERVICE
# REQUIREMENTS SATISFIED: table-state snapshots, export files, local fallback
"""
medgrid/services/storage.py

Storage for grid artifacts: saved table-state snapshots and exported
files.

Two modes, selected at runtime via environment variables:
    - AWS S3 (default): objects written to S3_BUCKET, downloads served
      through presigned URLs
    - local (LOCAL_STORAGE=1): files written under LOCAL_DIR
      (default /tmp/medgrid-artifacts)

The bucket is resolved at first use rather than at import time so the
grid core can be imported and tested without AWS configuration.
"""
import os
import boto3
from botocore.client import Config


def _local_mode() -> bool:
    return os.getenv("LOCAL_STORAGE", "0") == "1"


def _local_dir() -> str:
    return os.getenv("LOCAL_DIR", "/tmp/medgrid-artifacts")


def _bucket() -> str:
    b = os.getenv("S3_BUCKET")
    if not b:
        raise RuntimeError("S3_BUCKET not set")
    return b


# S3 client
_s3 = None
def _client():
    global _s3
    if _s3 is None:
        region = os.getenv("AWS_REGION")
        _s3 = boto3.client(
            "s3",
            region_name=region,
            config=Config(signature_version="s3v4"),
        )
    return _s3


# -------- LOCAL STORAGE FALLBACK --------
def _local_path(key: str) -> str:
    return os.path.join(_local_dir(), key)


def _local_write(key: str, data: bytes):
    path = _local_path(key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def _local_read(key: str) -> bytes:
    with open(_local_path(key), "rb") as f:
        return f.read()


# -------- PUBLIC API --------
class Storage:
    def put_bytes(self, key: str, data: bytes):
        """
        Store arbitrary bytes under ``key``.
        """
        if _local_mode():
            return _local_write(key, data)

        return _client().put_object(Bucket=_bucket(), Key=key, Body=data)

    def get_bytes(self, key: str) -> bytes:
        """
        Read bytes back. Raises FileNotFoundError (local) or a botocore
        ClientError (S3) when the key does not exist.
        """
        if _local_mode():
            return _local_read(key)

        obj = _client().get_object(Bucket=_bucket(), Key=key)
        return obj["Body"].read()

    def presign(self, key: str, expires: int = 3600) -> str:
        """
        Generate a presigned S3 URL or local placeholder.
        """
        if _local_mode():
            return f"local://download/{key}"

        return _client().generate_presigned_url(
            "get_object",
            Params={"Bucket": _bucket(), "Key": key},
            ExpiresIn=expires,
        )


_storage_instance = Storage()

def get_storage():
    return _storage_instance
