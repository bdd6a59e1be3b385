"""HTTP client for the exam API."""
from __future__ import annotations

import logging
from typing import Any

import requests

from exam_runner.errors import ApiError

logger = logging.getLogger(__name__)


class ExamApiClient:
    """Thin blocking wrapper around the REST endpoints the runner needs."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, str(exc)) from exc

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
            raise ApiError(response.status_code, str(detail))

        if not response.content:
            return None
        return response.json()

    def login(self, username: str, password: str) -> str:
        payload = self._request(
            "POST",
            "/api/auth/login",
            json={"username": username, "password": password},
        )
        token = payload["access_token"]
        self.set_token(token)
        return token

    def get_sections(self, test_id: str) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/tests/{test_id}/sections") or []

    def get_questions(self, section_id: str) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/sections/{section_id}/questions") or []

    def create_submission(self, purchase_id: str, test_id: str) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/submissions",
            json={"purchase_id": purchase_id, "test_id": test_id},
        )

    def upload_audio(
        self, data: bytes, filename: str, content_type: str = "audio/wav"
    ) -> str:
        payload = self._request(
            "POST",
            "/api/upload-audio",
            files={"file": (filename, data, content_type)},
        )
        return payload["url"]

    def add_answer(
        self, submission_id: str, question_id: str, audio_url: str
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/api/submissions/{submission_id}/answer",
            json={"question_id": question_id, "audio_url": audio_url},
        )

    def complete_submission(self, submission_id: str) -> dict[str, Any]:
        return self._request("POST", f"/api/submissions/{submission_id}/complete")

    def close(self) -> None:
        self.session.close()
