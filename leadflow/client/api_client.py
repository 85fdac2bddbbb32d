from typing import Any, Dict, List, Optional

import httpx

from leadflow.schemas.auth import SessionOut
from leadflow.schemas.lead import LeadOut, LeadUpdate


class ApiError(Exception):
    """Non-2xx response from the LeadFlow API."""

    def __init__(self, status_code: int, detail: str, error_type: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        self.error_type = error_type
        super().__init__(f"{status_code} {error_type or 'error'}: {detail}")


class LeadFlowClient:
    """Async client for the ``/api/v1`` endpoints a front end needs.

    Transport problems surface as ``httpx.TransportError``; HTTP error
    responses as :class:`ApiError`.
    """

    def __init__(
        self,
        base_url: str,
        session_token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._http = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._session_token = session_token

    @property
    def session_token(self) -> Optional[str]:
        return self._session_token

    def _headers(self) -> Dict[str, str]:
        if not self._session_token:
            return {}
        return {"Authorization": f"Bearer {self._session_token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.request(
            method, f"/api/v1{path}", headers=self._headers(), **kwargs
        )
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise ApiError(
                response.status_code,
                body.get("detail") if isinstance(body.get("detail"), str) else response.reason_phrase,
                body.get("type"),
            )
        return response

    async def login(self, access_token: str) -> SessionOut:
        response = await self._request(
            "POST", "/auth/login", json={"access_token": access_token}
        )
        session = SessionOut.model_validate(response.json())
        self._session_token = session.session_token
        return session

    async def logout(self) -> None:
        if not self._session_token:
            return
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self._session_token = None

    async def list_leads(self, **filters: Any) -> List[LeadOut]:
        params = {key: value for key, value in filters.items() if value is not None}
        response = await self._request("GET", "/leads", params=params)
        return [LeadOut.model_validate(item) for item in response.json()]

    async def update_lead(self, lead_id: int, changes: Dict[str, Any]) -> LeadOut:
        payload = LeadUpdate(**changes).model_dump(mode="json", exclude_unset=True)
        response = await self._request("PATCH", f"/leads/{lead_id}", json=payload)
        return LeadOut.model_validate(response.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "LeadFlowClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
