"""End-to-end through FastAPI: routes, guards, sanitizer and error format"""

import pytest
from fastapi.testclient import TestClient

from core.exceptions import DatabaseConnectionException
from main import create_app

from conftest import FakeClientFactory

ME_QUERY = "{ me { id email name role bio } }"
USERS_QUERY = "{ users(page: 1, limit: 10) { totalDocs items { email role } } }"
ACTIVITY_QUERY = "{ activityLogs { totalDocs items { collection action documentId } } }"
LOGIN_MUTATION = """
mutation Login($input: LoginInput!) {
  login(input: $input) { accessToken user { email } }
}
"""
UPDATE_PROFILE_MUTATION = """
mutation Update($input: UpdateProfileInput!) {
  updateProfile(input: $input) { name bio }
}
"""


# ===== plain HTTP routes =====


def test_root_greeting(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == "Hello World!"


def test_health_reports_connection(client):
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["mongodb"] == {"state": "connected", "database": "dbname"}


def test_browsers_get_the_landing_page(client, settings):
    response = client.get(settings.graphql_path, headers={"Accept": "text/html"})

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "GraphQL API" in response.text
    assert "graphiql" not in response.text.lower()


def test_metrics_route(client, graphql):
    graphql(ME_QUERY)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "graphql_operations_total" in response.text
    assert "guard_rejections_total" in response.text


def test_startup_fails_when_mongodb_is_unreachable(settings):
    app = create_app(settings, client_factory=FakeClientFactory(unreachable=True))

    with pytest.raises(DatabaseConnectionException):
        with TestClient(app):
            pass


# ===== auth guard =====


def test_anonymous_caller_is_rejected_before_the_resolver(graphql):
    body = graphql(ME_QUERY)

    assert body["data"] is None
    assert body["errors"] == [
        {
            "path": ["me"],
            "error": "Unauthorized",
            "message": "Unauthorized",
            "status": "UNAUTHENTICATED",
            "statusCode": 401,
        }
    ]


def test_rejected_mutation_has_no_side_effects(graphql, client_factory):
    body = graphql(UPDATE_PROFILE_MUTATION, {"input": {"name": "Mallory"}})

    assert body["errors"][0]["status"] == "UNAUTHENTICATED"
    assert client_factory.database["users"].documents == []
    assert client_factory.database["activity_logs"].documents == []


def test_register_and_query_me(graphql, register):
    registered = register()

    body = graphql(ME_QUERY, token=registered["accessToken"])

    assert body.get("errors") is None
    assert body["data"]["me"]["email"] == "bob@example.com"
    assert body["data"]["me"]["role"] == "USER"


def test_garbage_token_is_unauthenticated(graphql):
    body = graphql(ME_QUERY, token="not.a.jwt")

    assert body["errors"][0]["status"] == "UNAUTHENTICATED"


def test_login_sets_the_access_token_cookie(client, graphql, register):
    register()

    body = graphql(LOGIN_MUTATION, {"input": {"email": "bob@example.com", "password": "secret-password"}})

    assert body["data"]["login"]["user"]["email"] == "bob@example.com"
    assert client.cookies.get("access_token") == body["data"]["login"]["accessToken"]
    # no Authorization header: the cookie alone authenticates
    assert graphql(ME_QUERY)["data"]["me"]["email"] == "bob@example.com"


def test_wrong_password(graphql, register):
    register()

    body = graphql(LOGIN_MUTATION, {"input": {"email": "bob@example.com", "password": "wrong-password"}})

    assert body["errors"][0]["message"] == "Invalid credentials"
    assert body["errors"][0]["statusCode"] == 401


# ===== roles guard =====


def test_user_cannot_list_users(graphql, register):
    token = register()["accessToken"]

    body = graphql(USERS_QUERY, token=token)

    assert body["errors"][0]["status"] == "FORBIDDEN"
    assert body["errors"][0]["statusCode"] == 403
    assert body["errors"][0]["message"] == "Forbidden resource"


def test_admin_lists_users_and_activity(graphql, register, admin_token):
    register()

    users = graphql(USERS_QUERY, token=admin_token)["data"]["users"]
    assert users["totalDocs"] == 2
    assert {item["email"] for item in users["items"]} == {"admin@example.com", "bob@example.com"}

    logs = graphql(ACTIVITY_QUERY, token=admin_token)["data"]["activityLogs"]
    assert logs["totalDocs"] == 1
    assert logs["items"][0]["collection"] == "users"
    assert logs["items"][0]["action"] == "insert"


# ===== sanitizer & validation =====


def test_string_arguments_are_trimmed(graphql, register):
    registered = register(email="  bob@example.com ", name="  Bob  ")
    assert registered["user"]["name"] == "Bob"
    assert registered["user"]["email"] == "bob@example.com"

    body = graphql(UPDATE_PROFILE_MUTATION, {"input": {"bio": "  likes dinosaurs \n"}}, token=registered["accessToken"])
    assert body["data"]["updateProfile"] == {"name": "Bob", "bio": "likes dinosaurs"}


def test_duplicate_email_reports_unique_message(graphql, register):
    register()

    body = graphql(
        "mutation { register(input: {email: \"bob@example.com\", password: \"another-password\", name: \"B\"}) { accessToken } }"
    )

    assert body["errors"][0]["message"] == "Error, expected email to be unique."
    assert body["errors"][0]["status"] == "BAD_USER_INPUT"
    assert body["errors"][0]["statusCode"] == 400


def test_invalid_input_is_a_client_error(graphql):
    body = graphql(
        "mutation { register(input: {email: \"bob@example.com\", password: \"short\", name: \"Bob\"}) { accessToken } }"
    )

    assert body["errors"][0]["status"] == "BAD_USER_INPUT"
    assert "password" in body["errors"][0]["message"]


def test_unknown_field_is_a_validation_failure(graphql):
    body = graphql("{ doesNotExist }")

    assert body["errors"][0]["path"] is None
    assert body["errors"][0]["status"] == "GRAPHQL_VALIDATION_FAILED"
    assert body["errors"][0]["statusCode"] == 400


def test_syntax_error_is_a_parse_failure(graphql):
    body = graphql("{ me { id ")

    assert body["errors"][0]["path"] is None
    assert body["errors"][0]["status"] == "GRAPHQL_PARSE_FAILED"
    assert body["errors"][0]["statusCode"] == 400


# ===== throttle guard =====


def test_thirty_first_operation_in_a_minute_is_throttled(graphql):
    for _ in range(30):
        assert graphql(ME_QUERY)["errors"][0]["status"] == "UNAUTHENTICATED"

    body = graphql(ME_QUERY)

    assert body["errors"][0]["status"] == "THROTTLED"
    assert body["errors"][0]["statusCode"] == 429
    assert body["errors"][0]["message"] == "ThrottlerException: Too Many Requests"


def test_rotating_forwarded_for_does_not_escape_the_limit(graphql):
    for octet in range(30):
        graphql(ME_QUERY, headers={"X-Forwarded-For": f"10.0.0.{octet}"})

    body = graphql(ME_QUERY, headers={"X-Forwarded-For": "10.0.0.99"})

    assert body["errors"][0]["status"] == "THROTTLED"


def test_throttle_counts_per_forwarded_client_behind_trusted_proxy(settings):
    proxied_settings = settings.model_copy(update={"trust_proxy": True})
    app = create_app(proxied_settings, client_factory=FakeClientFactory())

    with TestClient(app) as client:

        def me(forwarded_for):
            response = client.post(
                settings.graphql_path,
                json={"query": ME_QUERY},
                headers={"X-Forwarded-For": forwarded_for},
            )
            return response.json()["errors"][0]["status"]

        for _ in range(30):
            me("198.51.100.1")

        assert me("198.51.100.1") == "THROTTLED"
        assert me("203.0.113.7") == "UNAUTHENTICATED"


# ===== activity log =====


def test_register_succeeds_when_the_activity_log_is_down(graphql, register, client_factory, monkeypatch):
    async def log_store_down(document):
        raise RuntimeError("log store down")

    monkeypatch.setattr(client_factory.database["activity_logs"], "insert_one", log_store_down)

    registered = register()

    assert registered["user"]["email"] == "bob@example.com"
    assert len(client_factory.database["users"].documents) == 1
