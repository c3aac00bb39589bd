"""Shared fixtures."""

import pytest
import requests

from copilot_admin.client import GitHubClient

API = "https://api.github.test"


@pytest.fixture
def client():
    return GitHubClient(session=requests.Session(), token="ghs_test", api_url=API, timeout=5)
