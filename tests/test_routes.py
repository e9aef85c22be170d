"""
Tests for the HTTP surface: JSON API, authorize form and service endpoints
"""
import threading
import time

import requests

from conftest import make_response


CREDENTIALS = {"email": "user@example.com", "password": "pa*ss", "oauthToken": "tok123"}


class TestJsonAuthorize:

    def test_success(self, client, provider_session):
        response = client.post("/api/oauth1/authorize", json=CREDENTIALS)

        assert response.status_code == 200
        data = response.json()
        assert data["statusCode"] == 302
        assert data["verifier"] == "ABC123"
        assert data["redirectLocation"].endswith("oauth_verifier=ABC123&oauth_token=T1")
        assert data["requestId"]
        assert provider_session.get.call_count == 1

    def test_missing_fields(self, client, provider_session):
        response = client.post("/api/oauth1/authorize", json={"email": "user@example.com"})

        assert response.status_code == 400
        data = response.json()
        assert data["errorKind"] == "InvalidInput"
        assert data["missing"] == ["password", "oauthToken"]
        assert provider_session.get.call_count == 0

    def test_invalid_json_body(self, client, provider_session):
        response = client.post(
            "/api/oauth1/authorize",
            content=b"email=user@example.com",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request body"
        assert provider_session.get.call_count == 0

    def test_non_object_body(self, client):
        response = client.post("/api/oauth1/authorize", json=["user@example.com"])
        assert response.status_code == 400
        assert response.json()["errorKind"] == "InvalidInput"

    def test_invalid_email(self, client, provider_session):
        response = client.post("/api/oauth1/authorize", json={**CREDENTIALS, "email": "nope"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid email format"
        assert provider_session.get.call_count == 0

    def test_provider_rejection_passes_diagnostics_through(self, client, provider_session):
        provider_session.get.return_value = make_response(
            401, body="error=invalid_credentials", reason="Unauthorized"
        )

        response = client.post("/api/oauth1/authorize", json=CREDENTIALS)

        assert response.status_code == 401
        data = response.json()
        assert data["errorKind"] == "ProviderRejected"
        assert data["providerStatus"] == 401
        assert data["providerStatusText"] == "Unauthorized"
        assert data["providerBody"] == "error=invalid_credentials"

    def test_ambiguous_response(self, client, provider_session):
        provider_session.get.return_value = make_response(200, body="<html>login</html>")

        response = client.post("/api/oauth1/authorize", json=CREDENTIALS)

        assert response.status_code == 401
        assert response.json()["errorKind"] == "AmbiguousResponse"

    def test_transport_failure(self, client, provider_session):
        provider_session.get.side_effect = requests.ConnectionError("Connection refused")

        response = client.post("/api/oauth1/authorize", json=CREDENTIALS)

        assert response.status_code == 502
        data = response.json()
        assert data["errorKind"] == "TransportFailure"
        assert "refused" not in data["message"]

    def test_unencodable_password(self, client, provider_session):
        response = client.post(
            "/api/oauth1/authorize",
            content=b'{"email": "user@example.com", "password": "\\ud800", "oauthToken": "tok123"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["errorKind"] == "InvalidInput"
        assert data["requestId"]
        assert provider_session.get.call_count == 0


class TestBridgeDependency:

    def test_concurrent_first_use_builds_one_bridge(self, monkeypatch):
        from oauthbridge import routes

        monkeypatch.setattr(routes, "_BRIDGE", None)
        built = []
        original = routes.AuthorizationBridge

        def slow_bridge(**kwargs):
            time.sleep(0.05)
            bridge = original(**kwargs)
            built.append(bridge)
            return bridge

        monkeypatch.setattr(routes, "AuthorizationBridge", slow_bridge)

        results = []
        threads = [threading.Thread(target=lambda: results.append(routes.get_bridge())) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(built) == 1
        assert all(result is built[0] for result in results)


class TestQueryAuthorize:

    def test_success_includes_provider_headers(self, client):
        response = client.get(
            "/api/oauth",
            params={"oauth_token": "tok123", "email": "user@example.com", "password": "pw"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["verifier"] == "ABC123"
        assert data["headers"]["Location"].startswith("https://api.inexogy.com/cb")

    def test_missing_token(self, client, provider_session):
        response = client.get("/api/oauth", params={"email": "user@example.com", "password": "pw"})

        assert response.status_code == 400
        assert response.json()["missing"] == ["oauth_token"]
        assert provider_session.get.call_count == 0


class TestAuthorizeForm:

    def test_form_requires_token(self, client):
        response = client.get("/authorize")

        assert response.status_code == 400
        assert "requires an oauth_token parameter" in response.text

    def test_form_rendered_with_hidden_fields(self, client):
        response = client.get("/authorize", params={"oauth_token": "tok123", "oauth_callback": "https://app.example/cb"})

        assert response.status_code == 200
        assert 'name="oauth_token" value="tok123"' in response.text
        assert 'name="oauth_callback" value="https://app.example/cb"' in response.text

    def test_form_values_escaped(self, client):
        response = client.get("/authorize", params={"oauth_token": '"><script>x</script>'})
        assert "<script>x</script>" not in response.text

    def test_out_of_band_submit_shows_verifier(self, client):
        response = client.post(
            "/authorize",
            data={"oauth_token": "tok123", "email": "user@example.com", "password": "pw"},
        )

        assert response.status_code == 200
        assert "ABC123" in response.text

    def test_submit_redirects_to_callback(self, client):
        response = client.post(
            "/authorize",
            data={
                "oauth_token": "tok123",
                "oauth_callback": "https://app.example/cb?state=xyz&oauth_token=stale",
                "email": "user@example.com",
                "password": "pw",
            },
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == (
            "https://app.example/cb?state=xyz&oauth_verifier=ABC123&oauth_token=tok123"
        )

    def test_bad_callback_rejected_before_provider_call(self, client, provider_session):
        response = client.post(
            "/authorize",
            data={
                "oauth_token": "tok123",
                "oauth_callback": "javascript:alert(1)",
                "email": "user@example.com",
                "password": "pw",
            },
        )

        assert response.status_code == 400
        assert "Invalid oauth_callback URL" in response.text
        assert provider_session.get.call_count == 0

    def test_failure_rerenders_form_with_error(self, client, provider_session):
        provider_session.get.return_value = make_response(403, body="denied", reason="Forbidden")

        response = client.post(
            "/authorize",
            data={"oauth_token": "tok123", "email": "user@example.com", "password": "pw"},
        )

        assert response.status_code == 403
        assert "Authorization failed" in response.text
        assert 'value="user@example.com"' in response.text


class TestServiceEndpoints:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["provider_authorize_url"] == "https://api.inexogy.com/public/v1/oauth1/authorize"
        assert set(data["enabled_flows"]) == {"api", "form"}

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"
