import os
from dataclasses import dataclass
from typing import Optional

import dotenv

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_VISION_EMBEDDING_MODEL = "nomic-embed-text"


def _first_env(*names: str) -> Optional[str]:
    # Empty values are treated as unset so a blank proxy entry in .env
    # does not shadow the plain host variable.
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class Settings:
    lmstudio_host: Optional[str] = None
    ollama_host: str = DEFAULT_OLLAMA_HOST
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    vision_text_embedding_model: str = DEFAULT_VISION_EMBEDDING_MODEL


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Resolve settings from the environment (and `.env`, if present).

    The proxy address variables win over the plain host variables for both
    providers. LM Studio has no default host; Ollama falls back to the
    local daemon address.
    """
    dotenv.load_dotenv(env_file)

    timeout_raw = _first_env("LOCALMUX_REQUEST_TIMEOUT")
    return Settings(
        lmstudio_host=_first_env("LM_STUDIO_PROXY_ADDRESS", "LM_STUDIO_HOST"),
        ollama_host=_first_env("OLLAMA_PROXY_ADDRESS", "OLLAMA_HOST") or DEFAULT_OLLAMA_HOST,
        request_timeout=float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT,
        vision_text_embedding_model=(
            _first_env("LOCALMUX_VISION_EMBEDDING_MODEL") or DEFAULT_VISION_EMBEDDING_MODEL
        ),
    )
