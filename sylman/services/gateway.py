"""REST client for the syllabus document store and user session endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError

from sylman.core.config import get_settings
from sylman.schemas.syllabus import SyllabusData, SyllabusRecord

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A failed store call; ``status_code`` is None for transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


@dataclass
class LoginResult:
    user_id: str
    role: str = ""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase or f"HTTP {response.status_code}"


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class SyllabusGateway:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url if base_url is not None else settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise GatewayError(f"Request failed: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning("%s %s -> %s %s", method, path, response.status_code, message)
            raise GatewayError(message, status_code=response.status_code)
        return _parse_body(response)

    # -- syllabus documents ---------------------------------------------

    async def create(self, user_id: str, document: Union[SyllabusData, Dict[str, Any]], autosave: bool = False) -> str:
        """POST /syllabus with ``formData``; returns the new syllabus id."""
        form_data = document.to_wire() if isinstance(document, SyllabusData) else dict(document)
        body = await self._request(
            "POST", "/syllabus", json={"userId": user_id, "formData": form_data, "autosave": autosave},
        )
        return self._syllabus_id(body)

    async def submit(self, user_id: str, document: SyllabusData, syllabus_id: Optional[str] = None) -> str:
        """Persist with the ``syllabusData`` body shape (create, or update when an id is given)."""
        if syllabus_id:
            await self._request(
                "PUT", f"/syllabus/update/{syllabus_id}",
                json={"syllabusData": document.to_wire(), "autosave": False, "lastEdited": document.last_edited},
            )
            return syllabus_id
        body = await self._request("POST", "/syllabus", json={"userId": user_id, "syllabusData": document.to_wire()})
        return self._syllabus_id(body)

    async def fetch(self, syllabus_id: str) -> SyllabusData:
        body = await self._request("GET", f"/syllabus/view/{syllabus_id}", params={"format": "json"})
        data = body.get("syllabusData") if isinstance(body, dict) else None
        try:
            return SyllabusData.model_validate(data or {})
        except ValidationError as exc:
            raise GatewayError(f"Stored syllabus {syllabus_id} could not be read: {exc.error_count()} invalid field(s)") from exc

    async def list_for_user(self, user_id: str) -> List[SyllabusRecord]:
        return self._records(await self._request("GET", f"/syllabus/{user_id}"))

    async def list_all(self) -> List[SyllabusRecord]:
        return self._records(await self._request("GET", "/syllabus/"))

    async def update(
        self,
        syllabus_id: str,
        document: Union[SyllabusData, Dict[str, Any]],
        autosave: bool = False,
        last_edited: Optional[str] = None,
    ) -> Any:
        """PUT /syllabus/update/:id with a full document or a narrow partial dict."""
        if isinstance(document, SyllabusData):
            payload: Dict[str, Any] = {"formData": document.to_wire(), "autosave": autosave}
            if last_edited:
                payload["lastEdited"] = last_edited
        else:
            payload = dict(document)
        return await self._request("PUT", f"/syllabus/update/{syllabus_id}", json=payload)

    async def update_program(self, syllabus_id: str, program: str) -> Any:
        return await self.update(syllabus_id, {"programSelect": program})

    async def delete(self, syllabus_id: str) -> None:
        await self._request("DELETE", f"/syllabus/{syllabus_id}")

    async def copy(self, syllabus_id: str) -> str:
        body = await self._request("POST", "/syllabus/copy", json={"syllabusId": syllabus_id})
        new_id = body.get("newId") if isinstance(body, dict) else None
        if not new_id:
            raise GatewayError("Server response did not include a newId")
        return str(new_id)

    # -- user session ----------------------------------------------------

    async def signup(self, username: str, email: str, password: str) -> Any:
        return await self._request("POST", "/signup", json={"username": username, "email": email, "password": password})

    async def login(self, username: str, password: str) -> LoginResult:
        body = await self._request("POST", "/login", json={"username": username, "password": password})
        if not isinstance(body, dict) or not body.get("userId"):
            raise GatewayError("Login response did not include a userId")
        return LoginResult(user_id=str(body["userId"]), role=str(body.get("role") or ""))

    async def find_user(self, email: str) -> Any:
        return await self._request("POST", "/user/finduser", json={"email": email})

    async def reset_password(self, new_password: str, reset_token: str) -> Any:
        return await self._request(
            "POST", "/user/resetpwd", json={"newPassword": new_password, "resetToken": reset_token},
        )

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _syllabus_id(body: Any) -> str:
        syllabus_id = body.get("syllabusId") if isinstance(body, dict) else None
        if not syllabus_id:
            raise GatewayError("Server response did not include a syllabusId")
        return str(syllabus_id)

    @staticmethod
    def _records(body: Any) -> List[SyllabusRecord]:
        if not isinstance(body, list):
            raise GatewayError("Expected a list of syllabi from the server")
        try:
            return [SyllabusRecord.model_validate(item) for item in body if isinstance(item, dict)]
        except ValidationError as exc:
            raise GatewayError(f"Syllabus list could not be read: {exc.error_count()} invalid field(s)") from exc
