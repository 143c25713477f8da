import pytest


def test_health_check(test_client):
    """Test health check endpoint"""
    response = test_client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert data["clientInitialized"] is False


def test_health_reports_initialized_client(test_client, ado_stub):
    response = test_client.get("/health")
    assert response.json()["clientInitialized"] is True


def test_readiness_check(test_client):
    """Test readiness check endpoint"""
    response = test_client.get("/health/readiness")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "not_ready"
    assert data["checks"]["azure_devops"] == "not_initialized"
    assert "timestamp" in data


def test_endpoint_directory(test_client):
    response = test_client.get("/")
    assert response.status_code == 200

    endpoints = response.json()["endpoints"]
    assert "POST /api/testcases/batch" in endpoints
    assert "POST /:resourceId/createIssue/:testCaseId" in endpoints


@pytest.mark.parametrize("method,path", [
    ("get", "/api/testplans"),
    ("get", "/api/testplans/1"),
    ("delete", "/api/testplans/1"),
    ("get", "/api/testcases/1"),
    ("get", "/api/builds/1/testresults"),
    ("get", "/api/testplans/1/suites/2/testcases"),
    ("get", "/r1/ado_plans"),
])
def test_readiness_gate_rejects_until_initialized(test_client, method, path):
    response = getattr(test_client, method)(path)
    assert response.status_code == 500

    data = response.json()
    assert data["error"] == "Azure DevOps client not initialized"
    assert data["message"] == "Server is starting up, please try again in a moment"


def test_readiness_gate_runs_before_body_validation(test_client):
    response = test_client.post("/api/testcases/batch", json={"ids": []})
    assert response.status_code == 500


def test_unknown_route_returns_not_found_envelope(test_client):
    response = test_client.get("/api/testplans/1/unknown/path")
    assert response.status_code == 404
    assert response.json() == {
        "error": "Not Found",
        "message": "Route /api/testplans/1/unknown/path not found",
        "availableEndpoints": "/",
    }


def test_downstream_error_goes_through_formatter(lenient_client, ado_stub):
    ado_stub.fail_with = RuntimeError("TF400898: vendor exploded")

    response = lenient_client.get("/api/testplans")
    assert response.status_code == 500

    data = response.json()
    assert data["error"] == "API Error"
    assert data["message"] == "TF400898: vendor exploded"
    assert data["path"] == "/api/testplans"
    assert "timestamp" in data


def test_downstream_status_code_is_forwarded(lenient_client, ado_stub):
    class VendorError(Exception):
        status_code = 401

    ado_stub.fail_with = VendorError("Unauthorized")

    response = lenient_client.get("/api/testplans/101")
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


def test_malformed_json_body_is_bad_request(test_client, ado_stub):
    response = test_client.post(
        "/api/testplans",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert ado_stub.calls == []


@pytest.mark.asyncio
async def test_async_client_hits_readiness_gate(client):
    response = await client.get("/api/testplans")
    assert response.status_code == 500
    assert response.json()["path"] == "/api/testplans"


@pytest.mark.parametrize("method,path", [
    ("post", "/foo"),
    ("post", "/api/testplans/5"),
    ("delete", "/api/testcases/5"),
    ("patch", "/api/testplans"),
])
def test_wrong_method_returns_not_found_envelope(test_client, method, path):
    response = getattr(test_client, method)(path)
    assert response.status_code == 404
    assert response.json() == {
        "error": "Not Found",
        "message": f"Route {path} not found",
        "availableEndpoints": "/",
    }


def test_simulated_issue_is_logged(test_client, caplog):
    test_client.post("/res-1/saveConnection", json={
        "github_url": "https://github.com/acme/shop",
        "prd": "Checkout PRD",
        "ado_url": "https://dev.azure.com/acme/shop",
        "website_url": "https://shop.example.com",
    })
    response = test_client.post("/res-1/createIssue/7", json={"title": "Bug", "body": "Broken"})
    assert response.status_code == 200

    assert "Mock GitHub issue created" in caplog.text
    assert "https://github.com/acme/shop" in caplog.text
