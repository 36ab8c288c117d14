import pytest

from localmux.config import Settings

ENV_VARS = (
    "LM_STUDIO_PROXY_ADDRESS",
    "LM_STUDIO_HOST",
    "OLLAMA_PROXY_ADDRESS",
    "OLLAMA_HOST",
    "LOCALMUX_REQUEST_TIMEOUT",
    "LOCALMUX_VISION_EMBEDDING_MODEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove host variables and keep a stray .env file from leaking in."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("localmux.config.dotenv.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture
def mock_env(clean_env, monkeypatch):
    """Both backends configured through their proxy variables."""
    monkeypatch.setenv("LM_STUDIO_PROXY_ADDRESS", "http://lmstudio-proxy:1234")
    monkeypatch.setenv("LM_STUDIO_HOST", "http://localhost:1234")
    monkeypatch.setenv("OLLAMA_PROXY_ADDRESS", "http://ollama-proxy:11434")
    monkeypatch.setenv("OLLAMA_HOST", "http://localhost:11434")


@pytest.fixture
def settings():
    return Settings(
        lmstudio_host="http://lmstudio.test:1234",
        ollama_host="http://ollama.test:11434",
        request_timeout=5.0,
        vision_text_embedding_model="nomic-embed-text",
    )


@pytest.fixture
def chat_response():
    """An OpenAI-style chat completion body as LM Studio returns it."""
    return {
        "id": "chatcmpl-1",
        "model": "qwen2.5-7b-instruct",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": "<think>user wants weather</think>\n Checking now.",
                    "tool_calls": [
                        {
                            "id": "call_1",
                            "type": "function",
                            "function": {
                                "name": "get_weather",
                                "arguments": "{\"city\": \"Paris\"}",
                            },
                        }
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ],
    }
