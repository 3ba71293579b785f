import pytest


@pytest.fixture
def full_env():
    """Environment with every credential the resolver knows about."""
    return {
        "GEMINI_API_KEY": "AIza-test-gemini",
        "GOOGLE_API_KEY": "AIza-test-google",
        "GOOGLE_CLOUD_PROJECT": "test-project",
        "GOOGLE_CLOUD_LOCATION": "us-central1",
        "OPENAI_API_KEY": "sk-test-openai",
    }


@pytest.fixture
def token_provider():
    """Access-token source standing in for the Login with Google flow."""
    async def _provider():
        return "ya29.test-token"
    return _provider
