"""cors module tests: evaluate, respond_preflight, respond_actual, create_cors_config."""
import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from cors import (
    CORSConfig,
    PolicyDecision,
    create_cors_config,
    evaluate,
    respond_actual,
    respond_preflight,
)
from originguard.allowlist import AllowList

APP = "https://bleutech-app.netlify.app"
LOCAL = "http://localhost:3000"


@pytest.fixture
def allow_list():
    return AllowList([APP, LOCAL])


# ---------------------------------------------------------------------------
# CORSConfig / PolicyDecision
# ---------------------------------------------------------------------------

class TestCORSConfigDefaults:
    """CORSConfig dataclass default values."""

    def test_default_allowed_methods(self):
        """Default allowed_methods is GET, POST, PUT, DELETE, OPTIONS."""
        assert CORSConfig().allowed_methods == "GET, POST, PUT, DELETE, OPTIONS"

    def test_default_allowed_headers(self):
        """Default allowed_headers is Content-Type, Authorization."""
        assert CORSConfig().allowed_headers == "Content-Type, Authorization"

    def test_default_credentials_on(self):
        assert CORSConfig().credentials is True

    def test_frozen(self):
        """CORSConfig is immutable (frozen dataclass)."""
        cfg = CORSConfig()
        with pytest.raises(Exception):  # FrozenInstanceError
            cfg.max_age = 0


class TestPolicyDecision:

    def test_allow_without_origin_is_not_cors(self):
        decision = PolicyDecision.allow()
        assert decision.allowed is True
        assert decision.origin is None
        assert decision.is_cors is False

    def test_deny_carries_no_origin(self):
        decision = PolicyDecision.deny()
        assert decision.allowed is False
        assert decision.origin is None


# ---------------------------------------------------------------------------
# evaluate
# ---------------------------------------------------------------------------

class TestEvaluate:
    """evaluate function tests."""

    @pytest.mark.parametrize("credential_mode", [True, False])
    def test_every_listed_origin_is_allowed(self, allow_list, credential_mode):
        """Each configured origin is allowed and echoed exactly."""
        for origin in allow_list:
            assert evaluate(origin, allow_list, credential_mode) == PolicyDecision.allow(origin)

    @pytest.mark.parametrize("origin", [
        "https://evil.example.com",
        "https://bleutech-app.netlify.app/",       # trailing slash
        "HTTPS://BLEUTECH-APP.NETLIFY.APP",        # case differs
        "https://sub.bleutech-app.netlify.app",    # subdomain
        "http://bleutech-app.netlify.app",         # scheme differs
        "//bleutech-app.netlify.app",              # protocol-relative
        "http://localhost:3001",
        "null",
        "",
        "not a url at all \r\n",
    ])
    def test_unlisted_origins_are_denied(self, allow_list, origin):
        """Anything that is not an exact member is denied, never raised."""
        assert evaluate(origin, allow_list, True) == PolicyDecision.deny()

    def test_missing_origin_is_allowed_without_echo(self, allow_list):
        """No Origin header: non-CORS request proceeds."""
        assert evaluate(None, allow_list, True) == PolicyDecision.allow(None)

    def test_missing_origin_allowed_with_empty_list(self):
        assert evaluate(None, AllowList(), False).allowed is True

    def test_empty_list_denies_everything(self):
        assert evaluate(LOCAL, AllowList(), False).allowed is False

    def test_wildcard_origin_denied_under_credentials(self):
        """A literal '*' is never echoed when credentials are on."""
        allow_list = AllowList(["*"])
        assert evaluate("*", allow_list, True) == PolicyDecision.deny()

    def test_deterministic(self, allow_list):
        """Repeated evaluation of the same input yields identical results."""
        results = {evaluate(APP, allow_list, True) for _ in range(5)}
        assert len(results) == 1

    def test_accepts_plain_collections(self):
        assert evaluate(APP, [APP], False).origin == APP


# ---------------------------------------------------------------------------
# respond_preflight / respond_actual
# ---------------------------------------------------------------------------

class TestRespondPreflight:
    """respond_preflight function tests."""

    def test_allowed_origin_full_header_set(self, allow_list):
        """Allowed preflight gets origin, methods, headers, credentials."""
        decision = evaluate(APP, allow_list, True)
        headers = respond_preflight(decision, True)
        assert headers["Access-Control-Allow-Origin"] == APP
        assert headers["Access-Control-Allow-Credentials"] == "true"
        assert headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"
        assert headers["Access-Control-Max-Age"] == "86400"
        assert headers["Vary"] == "Origin"

    def test_no_credentials_header_when_mode_off(self, allow_list):
        headers = respond_preflight(evaluate(APP, allow_list, False), False)
        assert "Access-Control-Allow-Credentials" not in headers
        assert headers["Access-Control-Allow-Origin"] == APP

    def test_denied_emits_nothing(self, allow_list):
        """Denied preflight emits no CORS headers at all."""
        decision = evaluate("https://evil.example.com", allow_list, True)
        assert respond_preflight(decision, True) == {}

    def test_no_origin_emits_nothing(self, allow_list):
        assert respond_preflight(evaluate(None, allow_list, True), True) == {}

    def test_custom_config(self, allow_list):
        cfg = CORSConfig(allowed_methods="GET", allowed_headers="X-Token", max_age=60)
        headers = respond_preflight(evaluate(APP, allow_list, True), True, cfg)
        assert headers["Access-Control-Allow-Methods"] == "GET"
        assert headers["Access-Control-Allow-Headers"] == "X-Token"
        assert headers["Access-Control-Max-Age"] == "60"


class TestRespondActual:
    """respond_actual function tests."""

    def test_allowed_origin_headers(self, allow_list):
        headers = respond_actual(evaluate(APP, allow_list, True), True)
        assert headers == {
            "Access-Control-Allow-Origin": APP,
            "Vary": "Origin",
            "Access-Control-Allow-Credentials": "true",
        }

    def test_no_preflight_enumeration(self, allow_list):
        headers = respond_actual(evaluate(APP, allow_list, True), True)
        assert "Access-Control-Allow-Methods" not in headers
        assert "Access-Control-Allow-Headers" not in headers
        assert "Access-Control-Max-Age" not in headers

    def test_expose_headers_when_configured(self, allow_list):
        cfg = CORSConfig(expose_headers="X-Request-ID")
        headers = respond_actual(evaluate(APP, allow_list, False), False, cfg)
        assert headers["Access-Control-Expose-Headers"] == "X-Request-ID"

    def test_denied_emits_nothing(self, allow_list):
        assert respond_actual(evaluate("https://evil.example.com", allow_list, True), True) == {}


class TestNoWildcardWithCredentials:
    """With credentials on, no emitted header set contains Allow-Origin '*'."""

    @pytest.mark.parametrize("origin", [None, "*", APP, LOCAL, "https://evil.example.com", ""])
    def test_never_wildcard(self, origin):
        allow_list = AllowList([APP, LOCAL, "*"])
        decision = evaluate(origin, allow_list, True)
        for respond in (respond_preflight, respond_actual):
            assert respond(decision, True).get("Access-Control-Allow-Origin") != "*"

    @pytest.mark.parametrize("respond", [respond_preflight, respond_actual])
    def test_wildcard_decision_emits_nothing(self, respond):
        """A '*' decision built outside evaluate() is still refused."""
        assert respond(PolicyDecision.allow("*"), True) == {}

    @pytest.mark.parametrize("respond", [respond_preflight, respond_actual])
    def test_mismatched_credential_modes(self, respond):
        """Evaluated without credentials, emitted with credentials."""
        decision = evaluate("*", AllowList(["*"]), False)
        assert decision.origin == "*"
        assert respond(decision, True) == {}

    def test_wildcard_echo_without_credentials(self):
        headers = respond_actual(PolicyDecision.allow("*"), False)
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert "Access-Control-Allow-Credentials" not in headers


# ---------------------------------------------------------------------------
# create_cors_config
# ---------------------------------------------------------------------------

class TestCreateCorsConfig:
    """create_cors_config factory function tests."""

    def test_normalizes_lists(self):
        """Whitespace around list items is trimmed and methods upper-cased."""
        cfg = create_cors_config(" get ,post,,  options ", "Content-Type ,X-Token")
        assert cfg.allowed_methods == "GET, POST, OPTIONS"
        assert cfg.allowed_headers == "Content-Type, X-Token"

    def test_blank_lists_fall_back_to_defaults(self):
        cfg = create_cors_config("  ,  ", "")
        assert cfg.allowed_methods == "GET, POST, PUT, DELETE, OPTIONS"
        assert cfg.allowed_headers == "Content-Type, Authorization"

    def test_passes_through_scalars(self):
        cfg = create_cors_config(max_age=300, credentials=False, expose_headers_str="X-A, X-B")
        assert cfg.max_age == 300
        assert cfg.credentials is False
        assert cfg.expose_headers == "X-A, X-B"
