"""Tests for credential search, hostname extraction and favicon URLs."""

import pytest

from trails_vault.vault.lookup import favicon_url, search_credentials, website_from_url
from trails_vault.vault.models import Credential, CredentialCategory


def _cred(website, username):
    return Credential(id=website + username, website=website, username=username,
                      password="p", category=CredentialCategory.LOGIN,
                      created_at=1, updated_at=1)


@pytest.fixture
def creds():
    return [
        _cred("github.com", "alice"),
        _cred("gitlab.com", "bob"),
        _cred("mail.example.org", "Alice.Smith"),
    ]


class TestSearch:
    def test_empty_query_returns_all(self, creds):
        assert search_credentials(creds, "") == creds

    def test_matches_website(self, creds):
        assert [c.website for c in search_credentials(creds, "GIT")] == ["github.com", "gitlab.com"]

    def test_matches_username_case_insensitive(self, creds):
        assert [c.username for c in search_credentials(creds, "alice")] == ["alice", "Alice.Smith"]

    def test_no_match(self, creds):
        assert search_credentials(creds, "nothing-here") == []


class TestWebsiteFromUrl:
    @pytest.mark.parametrize("url,host", [
        ("https://github.com/login", "github.com"),
        ("https://Accounts.Google.com:443/signin?x=1", "accounts.google.com"),
        ("http://user:pw@intranet.local/", "intranet.local"),
    ])
    def test_hostname(self, url, host):
        assert website_from_url(url) == host

    @pytest.mark.parametrize("url", ["", "not a url", "about:blank", "http://[::1"])
    def test_no_hostname(self, url):
        assert website_from_url(url) is None


class TestFaviconUrl:
    def test_default_size(self):
        assert favicon_url("github.com") == "https://www.google.com/s2/favicons?domain=github.com&sz=32"

    def test_custom_size(self):
        assert favicon_url("github.com", size=64).endswith("&sz=64")

    def test_domain_is_quoted(self):
        assert "a%26b" in favicon_url("a&b")
