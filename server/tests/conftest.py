"""
Shared test configuration and fixtures for the SignDesk test suite.
"""

import os
from typing import Any, Dict, List, Optional, Union
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

os.environ.setdefault("ASSINAFY_API_KEY", "test_api_key")
os.environ.setdefault("ASSINAFY_WORKSPACE_ID", "ws_test")

from signdesk.core.config import clear_settings_cache  # noqa: E402
from signdesk.integrations.esignature import (  # noqa: E402
    AssinafyAdapter,
    SignerRequest,
    SignerRole,
    TransportError,
)


class FakeAssinafyApi:
    """In-memory stand-in for AssinafyTransport.request.

    Routes calls by method and path, records every call and serves document
    states from a queue; the last state repeats once the queue is drained.
    """

    def __init__(self, workspace_id: str = "ws_test"):
        self.workspace_id = workspace_id
        self.calls: List[Dict[str, Any]] = []
        self.upload_response: Any = {"data": {"id": "doc1"}}
        self.document_states: List[Dict[str, Any]] = [{"id": "doc1", "status": "ready"}]
        self.signers: List[Dict[str, Any]] = []
        self.lookup_errors: List[TransportError] = []
        self.create_errors: List[TransportError] = []
        self.register_created = True
        self.assignment_error: Optional[TransportError] = None
        self.delete_error: Optional[TransportError] = None
        self._next_signer = 1

    def calls_for(self, operation: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["operation"] == operation]

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        is_binary: bool = False,
        operation: Optional[str] = None,
    ) -> Any:
        self.calls.append(
            {"path": path, "method": method, "body": body, "is_binary": is_binary, "operation": operation}
        )
        signers_path = f"/accounts/{self.workspace_id}/signers"

        if method == "POST" and path == f"/accounts/{self.workspace_id}/documents":
            return self.upload_response

        if method == "GET" and path.startswith(f"{signers_path}?email="):
            if self.lookup_errors:
                raise self.lookup_errors.pop(0)
            # The server-side filter is loose: every known signer comes back
            return {"data": list(self.signers)}

        if method == "GET" and path == signers_path:
            return {"data": list(self.signers)}

        if method == "POST" and path == signers_path:
            if self.create_errors:
                raise self.create_errors.pop(0)
            signer_id = f"signer_new_{self._next_signer}"
            self._next_signer += 1
            if self.register_created:
                self.signers.append({"id": signer_id, "email": body["email"], "full_name": body["full_name"]})
            return {"data": {"id": signer_id}}

        if method == "POST" and path.endswith("/assignments"):
            if self.assignment_error is not None:
                raise self.assignment_error
            return {"data": {"id": "assignment1"}}

        if method == "GET" and path.startswith("/documents/"):
            state = self.document_states.pop(0) if len(self.document_states) > 1 else self.document_states[0]
            return {"data": state}

        if method == "DELETE" and path.startswith("/documents/"):
            if self.delete_error is not None:
                raise self.delete_error
            return None

        raise AssertionError(f"Unexpected request {method} {path}")


@pytest.fixture(autouse=True)
def reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def assinafy_config():
    return {
        "api_key": "test_api_key",
        "workspace_id": "ws_test",
        "base_url": "https://api.assinafy.test/v1",
        "poll_interval_seconds": 3.0,
        "max_poll_attempts": 20,
    }


@pytest.fixture
def fake_sleep():
    return AsyncMock()


@pytest.fixture
def fake_api():
    return FakeAssinafyApi()


@pytest.fixture
def adapter(assinafy_config, fake_sleep, fake_api):
    assinafy_adapter = AssinafyAdapter(**assinafy_config, sleep=fake_sleep)
    assinafy_adapter.transport.request = AsyncMock(side_effect=fake_api.request)
    return assinafy_adapter


@pytest.fixture
def signer_requests():
    return [
        SignerRequest(name="Acme Ltda", email="legal@acme.com", role=SignerRole.COMPANY),
        SignerRequest(name="Maria Souza", email="maria@creator.io", role=SignerRole.CREATOR),
    ]


def make_response(status: int = 200, text: Union[str, bytes] = "") -> Mock:
    response = Mock()
    response.status = status
    response.read = AsyncMock(return_value=text.encode("utf-8") if isinstance(text, str) else text)
    return response


def make_session(response: Optional[Mock] = None) -> MagicMock:
    session = MagicMock()
    session.closed = False
    session.request.return_value.__aenter__.return_value = response or make_response()
    return session


def transport_error(status: int, body: str) -> TransportError:
    return TransportError(
        message=f"Assinafy API error: {status} - {body}",
        http_status=status,
        raw_body=body,
        provider="assinafy",
    )
