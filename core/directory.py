"""
Employee directory client
"""
import logging

import httpx
from pydantic import ValidationError

from config import settings
from core.errors import DirectoryNotFound, DirectoryServiceError
from core.models import EmployeeProfile

logger = logging.getLogger(__name__)


class DirectoryLookup:
    def __init__(self, client: httpx.AsyncClient, base_url=settings.DIRECTORY_URL):
        self.client = client
        self.base_url = base_url.rstrip('/')

    async def fetch(self, face_id):
        """Fresh profile for an identity token. Unknown employees raise DirectoryNotFound."""
        url = f"{self.base_url}/employee/{face_id}"
        try:
            resp = await self.client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.warning("Directory lookup %s failed: %s", url, e)
            raise DirectoryServiceError(f"directory transport error: {e}") from e

        if resp.status_code == 404:
            raise DirectoryNotFound(face_id)
        if not resp.is_success:
            logger.warning("Directory lookup %s failed %s: %s", url, resp.status_code, resp.text)
            raise DirectoryServiceError(f"directory answered {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise DirectoryServiceError("directory response is not JSON") from e
        if not isinstance(payload, dict):
            raise DirectoryServiceError("directory response is not an object")

        if not payload.get("status"):
            raise DirectoryNotFound(face_id)

        try:
            return EmployeeProfile.model_validate(payload.get("data"))
        except ValidationError as e:
            raise DirectoryServiceError(f"malformed employee record: {e}") from e
