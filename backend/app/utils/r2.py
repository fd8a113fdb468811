"""Object storage for generated documents.

Contract PDFs go to Cloudflare R2 (S3-compatible) when the ``R2_*`` settings
are present. Otherwise they are written under ``app/static`` and served by the
``/static`` mount.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import settings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


class R2Config:
    def __init__(self) -> None:
        self.account_id = (settings.R2_ACCOUNT_ID or "").strip() or None
        self.access_key_id = (settings.R2_ACCESS_KEY_ID or "").strip() or None
        self.secret_access_key = (settings.R2_SECRET_ACCESS_KEY or "").strip() or None
        self.bucket = (settings.R2_BUCKET or "").strip() or None
        # Example: https://<account>.r2.cloudflarestorage.com
        self.endpoint_url = (settings.R2_S3_ENDPOINT or "").strip() or (
            f"https://{self.account_id}.r2.cloudflarestorage.com" if self.account_id else None
        )
        # Public custom domain used to reference objects. Falls back to the
        # path-style base of the S3 endpoint plus the bucket.
        public = (settings.R2_PUBLIC_BASE_URL or "").strip().rstrip("/")
        if not public and self.endpoint_url and self.bucket:
            public = f"{self.endpoint_url.rstrip('/')}/{self.bucket}"
        self.public_base_url = public

    def is_configured(self) -> bool:
        return bool(self.bucket and self.endpoint_url and self.access_key_id and self.secret_access_key)


def _client(cfg: R2Config):
    """Create an S3 client configured for Cloudflare R2.

    - signature_version s3v4
    - region "auto" (R2 requirement)
    - path-style addressing
    """
    return boto3.client(
        "s3",
        aws_access_key_id=cfg.access_key_id,
        aws_secret_access_key=cfg.secret_access_key,
        endpoint_url=cfg.endpoint_url,
        region_name="auto",
        config=Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        ),
    )


def _put_local(key: str, data: bytes) -> str:
    path = STATIC_DIR / key
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return f"/static/{key}"


def put_bytes(key: str, data: bytes, content_type: Optional[str] = None, cfg: Optional[R2Config] = None) -> str:
    """Store ``data`` under ``key`` and return a URL the frontend can open.

    An R2 upload failure is logged and the file is kept locally instead.
    """
    key = key.lstrip("/")
    cfg = cfg or R2Config()
    if cfg.is_configured():
        params = {"Bucket": cfg.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            _client(cfg).put_object(**params)
            logger.info("Uploaded %s to R2 bucket %s", key, cfg.bucket)
            return f"{cfg.public_base_url}/{key}"
        except (BotoCoreError, ClientError) as exc:
            logger.error("R2 upload failed for %s, storing locally: %s", key, exc)
    return _put_local(key, data)
