"""
Shared fixtures.

CI runners export GITHUB_REPOSITORY, ENVIRONMENT and AWS_REGION, and a
developer shell may hold AWS credentials. Every test starts from a clean
environment so settings come from defaults or from the test itself.
"""

import pytest

from eksblueprint.config.settings import BlueprintSettings

AMBIENT_VARS = (
    'DEBUG',
    'AWS_DEFAULT_REGION',
    'AWS_ACCESS_KEY_ID',
    'AWS_SECRET_ACCESS_KEY',
    'AWS_SESSION_TOKEN',
    'AWS_PROFILE',
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for env_var in list(BlueprintSettings.ENV_FIELDS) + list(AMBIENT_VARS):
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def settings():
    return BlueprintSettings(github_repository="acme/shop", project_name="shop", environment="test")
