"""
Remote identity resolution: upload the sample, then ask the matcher who it is
"""
import logging
import uuid

import httpx

from config import settings
from core.errors import MatchError, NoMatch, UploadError

logger = logging.getLogger(__name__)

SUCCESS_MARKER = "Success"


class RemoteIdentityResolver:
    """Two sequential calls, no retries. Each failure mode has its own exception."""

    def __init__(self, client: httpx.AsyncClient,
                 store_url=settings.OBJECT_STORE_URL,
                 bucket=settings.OBJECT_STORE_BUCKET,
                 match_url=settings.MATCH_URL,
                 id_factory=uuid.uuid4):
        self.client = client
        self.store_url = store_url.rstrip('/')
        self.bucket = bucket.strip('/')
        self.match_url = match_url.rstrip('/')
        self.id_factory = id_factory

    async def resolve(self, sample):
        """Returns the FaceId of the matched identity"""
        object_key = f"{self.id_factory()}.jpg"
        await self.upload(sample, object_key)
        return await self.match(object_key)

    async def upload(self, sample, object_key):
        try:
            body = sample.encode_jpeg()
        except Exception as e:
            raise UploadError(f"cannot encode sample: {e}") from e

        url = f"{self.store_url}/{self.bucket}/{object_key}"
        try:
            resp = await self.client.put(url, content=body, headers={"Content-Type": "image/jpeg"})
        except httpx.HTTPError as e:
            logger.warning("Upload to %s failed: %s", url, e)
            raise UploadError(f"upload transport error: {e}") from e

        if not resp.is_success:
            logger.warning("Upload to %s failed %s: %s", url, resp.status_code, resp.text)
            raise UploadError(f"upload rejected with status {resp.status_code}")

    async def match(self, object_key):
        url = f"{self.match_url}/employee"
        try:
            resp = await self.client.get(
                url,
                params={"objectKey": object_key},
                headers={"Accept": "application/json", "Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning("Match request for %s failed: %s", object_key, e)
            raise MatchError(f"match transport error: {e}") from e

        if not resp.is_success:
            logger.warning("Match request for %s failed %s: %s", object_key, resp.status_code, resp.text)
            raise MatchError(f"match rejected with status {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise MatchError("match response is not JSON") from e
        if not isinstance(payload, dict):
            raise MatchError("match response is not an object")

        if payload.get("Message") != SUCCESS_MARKER:
            raise NoMatch(f"matcher answered {payload.get('Message')!r}")

        face_id = payload.get("FaceId")
        if not face_id:
            raise MatchError("success marker without FaceId")
        return str(face_id)
