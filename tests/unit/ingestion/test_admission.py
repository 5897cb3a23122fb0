"""
Unit tests for URL admission control.
"""

from unittest.mock import patch

import pytest

from upskills_core.config import AdmissionConfig
from upskills_core.exceptions import AdmissionError
from upskills_core.ingestion.admission import AdmittedURL, validate_source_url

GOOD_URL = "https://raw.githubusercontent.com/acme/skills/main/demo/SKILL.md"


@pytest.fixture
def admission_config() -> AdmissionConfig:
    return AdmissionConfig(allowed_hosts=("raw.githubusercontent.com",))


class TestAdmittedUrls:
    """Locators that pass admission."""

    def test_admits_allowlisted_skill_md(self, admission_config):
        admitted = validate_source_url(GOOD_URL, admission_config)

        assert isinstance(admitted, AdmittedURL)
        assert admitted.url == GOOD_URL
        assert str(admitted) == GOOD_URL
        assert admitted.hostname == "raw.githubusercontent.com"
        assert admitted.path == "/acme/skills/main/demo/SKILL.md"

    def test_host_match_is_case_insensitive(self, admission_config):
        url = "https://RAW.githubusercontent.com/acme/skills/main/demo/SKILL.md"

        assert validate_source_url(url, admission_config).url == url

    def test_custom_allowlist(self):
        config = AdmissionConfig(allowed_hosts=("skills.example.org",))

        validate_source_url("https://skills.example.org/x/SKILL.md", config)
        with pytest.raises(AdmissionError) as exc_info:
            validate_source_url(GOOD_URL, config)
        assert exc_info.value.kind == "host_not_allowed"


class TestRejectedUrls:
    """Every rejection carries a stable kind and a 422 status."""

    @pytest.mark.parametrize(
        "locator,kind",
        [
            (None, "invalid_url"),
            (42, "invalid_url"),
            ("", "invalid_url"),
            ("not a url", "invalid_url"),
            ("raw.githubusercontent.com/acme/SKILL.md", "invalid_url"),
            ("https://raw.githubusercontent.com:99999/a/SKILL.md", "invalid_url"),
            ("http://raw.githubusercontent.com/acme/skills/main/demo/SKILL.md", "invalid_protocol"),
            ("ftp://raw.githubusercontent.com/acme/SKILL.md", "invalid_protocol"),
            ("https://evil.example/acme/skills/main/demo/SKILL.md", "host_not_allowed"),
            ("https://raw.githubusercontent.com@evil.example/SKILL.md", "host_not_allowed"),
            ("https://evil.example\\@raw.githubusercontent.com/a/b/main/x/SKILL.md", "invalid_url"),
            ("https://evil.example\\.raw.githubusercontent.com/a/b/main/x/SKILL.md", "invalid_url"),
            ("https://raw.githubusercontent.com/acme\\skills/main/x/SKILL.md", "invalid_url"),
            (GOOD_URL + "?x=1", "no_query_or_fragment"),
            (GOOD_URL + "#top", "no_query_or_fragment"),
            (GOOD_URL + "?", "no_query_or_fragment"),
            (GOOD_URL + "#", "no_query_or_fragment"),
            ("https://raw.githubusercontent.com/acme/skills/main/demo/README.md", "not_skill_md"),
            ("https://raw.githubusercontent.com/acme/skills/main/demo/SKILL.md/", "not_skill_md"),
            ("https://raw.githubusercontent.com/acme/skills/main/demo/skill.md", "not_skill_md"),
            ("https://raw.githubusercontent.com/SKILL.mdx", "not_skill_md"),
        ],
    )
    def test_rejection_kinds(self, admission_config, locator, kind):
        with pytest.raises(AdmissionError) as exc_info:
            validate_source_url(locator, admission_config)

        assert exc_info.value.kind == kind
        assert exc_info.value.status_code == 422

    def test_host_is_checked_as_requests_would_connect(self, admission_config):
        locator = "https://evil.example\\@raw.githubusercontent.com/a/b/main/x/SKILL.md"

        with patch(
            "upskills_core.ingestion.admission._has_unsafe_characters", return_value=False
        ):
            with pytest.raises(AdmissionError) as exc_info:
                validate_source_url(locator, admission_config)

        assert exc_info.value.kind == "host_not_allowed"
        assert exc_info.value.message == "host not allowed: evil.example"

    def test_length_ceiling(self):
        config = AdmissionConfig(allowed_hosts=("raw.githubusercontent.com",), max_url_length=64)
        long_url = "https://raw.githubusercontent.com/" + "a" * 64 + "/SKILL.md"

        with pytest.raises(AdmissionError) as exc_info:
            validate_source_url(long_url, config)

        assert exc_info.value.kind == "url_too_long"
        assert "64" in exc_info.value.message

    def test_length_is_checked_before_syntax(self):
        config = AdmissionConfig(allowed_hosts=("raw.githubusercontent.com",), max_url_length=10)

        with pytest.raises(AdmissionError) as exc_info:
            validate_source_url("not a url at all", config)

        assert exc_info.value.kind == "url_too_long"

    def test_error_dict_uses_kind_as_code(self, admission_config):
        with pytest.raises(AdmissionError) as exc_info:
            validate_source_url("https://evil.example/SKILL.md", admission_config)

        body = exc_info.value.to_dict()["error"]
        assert body["code"] == "host_not_allowed"
        assert body["message"] == "host not allowed: evil.example"
