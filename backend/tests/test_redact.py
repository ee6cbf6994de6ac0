from odysea.main import redact_api_keys


def test_redact_key_query_param():
    event = {"url": "https://generativelanguage.googleapis.com/v1beta/models?key=AIzaSECRET&alt=json"}
    out = redact_api_keys(None, None, event.copy())
    assert out["url"] == "https://generativelanguage.googleapis.com/v1beta/models?key=REDACTED&alt=json"


def test_redact_google_key_token():
    key = "AIza" + "x" * 35
    out = redact_api_keys(None, None, {"error": f"bad key {key}"})
    assert key not in out["error"]
    assert "REDACTED" in out["error"]


def test_redact_unsplash_client_id():
    out = redact_api_keys(None, None, {"headers": {"Authorization": "Client-ID abc123secret"}})
    assert out["headers"]["Authorization"] == "Client-ID REDACTED"


def test_redact_nested():
    event = {"a": {"b": ["foo", "https://...&key=AIzaSECRET"]}}
    out = redact_api_keys(None, None, event.copy())
    assert out["a"]["b"][0] == "foo"
    assert all("AIzaSECRET" not in x for x in out["a"]["b"])


def test_non_strings_pass_through():
    out = redact_api_keys(None, None, {"status_code": 200, "duration_ms": 1.5})
    assert out == {"status_code": 200, "duration_ms": 1.5}
