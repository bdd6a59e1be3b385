import asyncio

import pytest
import requests

from exam_runner.backend import RemoteExamBackend
from exam_runner.client import ExamApiClient
from exam_runner.errors import ApiError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b"" if payload is None and not text else b"x"

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.headers = {}
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        pass


def test_login_sets_bearer_token() -> None:
    session = FakeSession([FakeResponse(200, {"access_token": "abc", "token_type": "bearer"})])
    client = ExamApiClient("http://server/", session=session)

    assert client.login("student", "pw") == "abc"
    assert session.headers["Authorization"] == "Bearer abc"
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://server/api/auth/login")
    assert kwargs["json"] == {"username": "student", "password": "pw"}


def test_error_response_raises_api_error() -> None:
    session = FakeSession([FakeResponse(403, {"detail": "Purchase is not approved"})])
    client = ExamApiClient("http://server", token="t", session=session)

    with pytest.raises(ApiError) as exc_info:
        client.create_submission("p1", "t1")

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "Purchase is not approved"


def test_validation_error_list_falls_back_to_text() -> None:
    session = FakeSession([FakeResponse(422, [{"loc": ["body"]}], text="invalid body")])
    client = ExamApiClient("http://server", session=session)

    with pytest.raises(ApiError, match="invalid body"):
        client.get_sections("t1")


def test_connection_error_is_status_zero() -> None:
    session = FakeSession([requests.ConnectionError("refused")])
    client = ExamApiClient("http://server", session=session)

    with pytest.raises(ApiError) as exc_info:
        client.get_questions("s1")
    assert exc_info.value.status_code == 0


def test_remote_backend_parses_payloads() -> None:
    session = FakeSession([
        FakeResponse(200, [{
            "id": "s1",
            "test_id": "t1",
            "section_number": 1,
            "title": "Intro",
            "preparation_time": 5,
            "speaking_time": 10,
            "parent_section_id": None,
        }]),
        FakeResponse(201, {"id": "sub-9", "status": "in_progress"}),
        FakeResponse(200, {"url": "/api/audio/a.wav", "size": 4}),
    ])
    backend = RemoteExamBackend(ExamApiClient("http://server", session=session))

    async def scenario():
        sections = await backend.fetch_sections("t1")
        submission_id = await backend.create_submission("p1", "t1")
        ref = await backend.upload_audio(b"RIFF", "answer-q1.wav", "audio/wav")
        return sections, submission_id, ref

    sections, submission_id, ref = asyncio.run(scenario())

    assert sections[0].id == "s1" and sections[0].speaking_time == 10
    assert submission_id == "sub-9"
    assert ref == "/api/audio/a.wav"
    _, url, kwargs = session.calls[2]
    assert url == "http://server/api/upload-audio"
    assert kwargs["files"]["file"][0] == "answer-q1.wav"
