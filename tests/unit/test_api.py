"""Tests for the HTTP layer."""

import json
from unittest.mock import ANY, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from codegenius_gateway.api import create_app
from codegenius_gateway.config.schema import LimitsConfig
from codegenius_gateway.core.assistant import CodeAssistant
from codegenius_gateway.utils.async_helpers import LLMRequestError


@pytest.fixture
def client(assistant: CodeAssistant) -> TestClient:
    """Create a test client around the mock-backed assistant."""
    return TestClient(create_app(assistant, LimitsConfig()))


class TestHealth:
    """Test the health route."""

    def test_health(self, client: TestClient) -> None:
        """Test health reports the model in use."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "model": "test-model"}


class TestDebugRoute:
    """Test POST /api/debug."""

    def test_success(
        self, client: TestClient, mock_provider: MagicMock, sample_debug_payload: dict
    ) -> None:
        """Test a successful debug request returns the camelCase result."""
        mock_provider.generate.return_value = json.dumps(sample_debug_payload)

        response = client.post(
            "/api/debug", json={"code": "function f(x) return x+1", "language": "javascript"}
        )

        assert response.status_code == 200
        assert response.json() == sample_debug_payload

    def test_missing_code(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test a missing field is a 400."""
        response = client.post("/api/debug", json={"language": "python"})

        assert response.status_code == 400
        assert "code" in response.json()["message"]
        mock_provider.generate.assert_not_called()

    def test_empty_code(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test blank code is a 400."""
        response = client.post("/api/debug", json={"code": "  ", "language": "python"})

        assert response.status_code == 400
        assert response.json() == {"message": "Code is required"}

    def test_unsupported_language(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test languages outside the allow-list are a 400."""
        response = client.post("/api/debug", json={"code": "x", "language": "cobol"})

        assert response.status_code == 400
        assert response.json() == {"message": "Unsupported language: cobol"}
        mock_provider.generate.assert_not_called()

    def test_code_too_long(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test code above the configured limit is a 400."""
        response = client.post("/api/debug", json={"code": "x" * 50_001, "language": "python"})

        assert response.status_code == 400
        assert "maximum length" in response.json()["message"]
        mock_provider.generate.assert_not_called()

    def test_upstream_failure(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test exhausted provider failures are a 500."""
        mock_provider.generate.side_effect = LLMRequestError("provider down")

        response = client.post("/api/debug", json={"code": "x = 1", "language": "python"})

        assert response.status_code == 500
        assert "provider down" in response.json()["message"]

    def test_degraded_result_is_ok(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test degraded results are still returned with 200."""
        mock_provider.generate.return_value = "no json here"

        response = client.post("/api/debug", json={"code": "x = 1", "language": "python"})

        assert response.status_code == 200
        assert response.json()["correctedCode"] == "x = 1"


class TestTranslateRoute:
    """Test POST /api/translate."""

    def test_success(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test camelCase request fields are accepted."""
        mock_provider.generate.return_value = json.dumps(
            {"translatedCode": "console.log(1)", "explanation": "print -> console.log"}
        )

        response = client.post(
            "/api/translate",
            json={"code": "print(1)", "fromLanguage": "python", "toLanguage": "javascript"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "translatedCode": "console.log(1)",
            "explanation": "print -> console.log",
        }

    def test_identity(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test same-language translation skips the model."""
        response = client.post(
            "/api/translate",
            json={"code": "print(1)", "fromLanguage": "python", "toLanguage": "Python"},
        )

        assert response.status_code == 200
        assert response.json()["translatedCode"] == "print(1)"
        mock_provider.generate.assert_not_called()

    def test_missing_target(self, client: TestClient) -> None:
        """Test a missing target language is a 400."""
        response = client.post("/api/translate", json={"code": "x", "fromLanguage": "python"})

        assert response.status_code == 400


class TestExplainRoute:
    """Test POST /api/explain."""

    def test_success(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test a successful explanation."""
        mock_provider.generate.return_value = json.dumps(
            {"overview": "o", "detailedExplanation": "d", "keyComponents": ["k"]}
        )

        response = client.post("/api/explain", json={"code": "x = 1", "language": "python"})

        assert response.status_code == 200
        assert response.json() == {
            "overview": "o",
            "detailedExplanation": "d",
            "keyComponents": ["k"],
        }


class TestChatRoute:
    """Test POST /api/chat."""

    def test_success(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test a chat turn returns an assistant message."""
        mock_provider.chat.return_value = "Hello there!"

        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Hi"}], "systemPrompt": "Be nice."},
        )

        assert response.status_code == 200
        assert response.json() == {"role": "assistant", "content": "Hello there!"}
        assert mock_provider.chat.call_args.args[1] == "Be nice."

    def test_empty_messages(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test an empty transcript is a 400."""
        response = client.post("/api/chat", json={"messages": []})

        assert response.status_code == 400
        mock_provider.chat.assert_not_called()

    def test_unknown_role(self, client: TestClient) -> None:
        """Test roles other than user and assistant are a 400."""
        response = client.post(
            "/api/chat", json={"messages": [{"role": "system", "content": "x"}]}
        )

        assert response.status_code == 400

    def test_upstream_failure(self, client: TestClient, mock_provider: MagicMock) -> None:
        """Test exhausted chat failures are a 500."""
        mock_provider.chat.side_effect = LLMRequestError("boom")

        response = client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]}
        )

        assert response.status_code == 500


class TestErrorResponses:
    """Test error payloads and request logging on failures."""

    @pytest.mark.parametrize("path", ["/api/debug", "/api/translate", "/api/explain", "/api/chat"])
    def test_error_schema_documented(self, client: TestClient, path: str) -> None:
        """Test 400 and 500 responses reference ErrorBody in the OpenAPI schema."""
        responses = client.get("/openapi.json").json()["paths"][path]["post"]["responses"]

        for status in ("400", "500"):
            schema = responses[status]["content"]["application/json"]["schema"]
            assert schema["$ref"].endswith("/ErrorBody")

    def test_unhandled_error_still_logged(
        self, assistant: CodeAssistant, mock_provider: MagicMock
    ) -> None:
        """Test a request whose handler raises gets a request log line with status 500."""
        mock_provider.generate.side_effect = KeyError("bug")
        client = TestClient(create_app(assistant, LimitsConfig()), raise_server_exceptions=False)

        with patch("codegenius_gateway.api.app.log") as log:
            response = client.post("/api/debug", json={"code": "x = 1", "language": "python"})

        assert response.status_code == 500
        log.error.assert_any_call(
            "http_request",
            method="POST",
            path="/api/debug",
            status=500,
            duration_ms=ANY,
            error_type="KeyError",
        )
