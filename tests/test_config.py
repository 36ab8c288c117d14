from localmux.config import (
    DEFAULT_OLLAMA_HOST, DEFAULT_REQUEST_TIMEOUT, DEFAULT_VISION_EMBEDDING_MODEL, load_settings
)


class TestLoadSettings:

    def test_proxy_address_wins_over_host(self, mock_env):
        settings = load_settings()
        assert settings.lmstudio_host == "http://lmstudio-proxy:1234"
        assert settings.ollama_host == "http://ollama-proxy:11434"

    def test_falls_back_to_host(self, clean_env, monkeypatch):
        monkeypatch.setenv("LM_STUDIO_HOST", "http://localhost:1234")
        monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")

        settings = load_settings()
        assert settings.lmstudio_host == "http://localhost:1234"
        assert settings.ollama_host == "http://gpu-box:11434"

    def test_empty_proxy_is_ignored(self, clean_env, monkeypatch):
        monkeypatch.setenv("LM_STUDIO_PROXY_ADDRESS", "")
        monkeypatch.setenv("LM_STUDIO_HOST", "http://localhost:1234")

        assert load_settings().lmstudio_host == "http://localhost:1234"

    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings.lmstudio_host is None
        assert settings.ollama_host == DEFAULT_OLLAMA_HOST
        assert settings.request_timeout == DEFAULT_REQUEST_TIMEOUT
        assert settings.vision_text_embedding_model == DEFAULT_VISION_EMBEDDING_MODEL

    def test_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("LOCALMUX_REQUEST_TIMEOUT", "12.5")
        monkeypatch.setenv("LOCALMUX_VISION_EMBEDDING_MODEL", "mxbai-embed-large")

        settings = load_settings()
        assert settings.request_timeout == 12.5
        assert settings.vision_text_embedding_model == "mxbai-embed-large"
