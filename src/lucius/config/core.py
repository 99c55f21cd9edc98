import logging
import os

from lucius.errors import ConfigurationMissing

logger = logging.getLogger(__name__)


def _as_bool(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("lucius", {})
        openai_cfg = cfg.get("openai", {})
        limits_cfg = cfg.get("limits", {})
        server_cfg = cfg.get("server", {})

        key_env = str(openai_cfg.get("api_key_env", "OPENAI_API_KEY"))
        self.OPENAI_API_KEY: str | None = os.getenv(key_env) or os.getenv("OPENAI_KEY")
        self.OPENAI_MODEL: str = str(openai_cfg.get("model") or os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
        self.OPENAI_API_BASE: str = str(
            openai_cfg.get("api_base") or os.getenv("OPENAI_API_BASE", "https://api.openai.com")
        )
        self.OPENAI_API_STYLE: str = str(openai_cfg.get("api_style") or os.getenv("OPENAI_API_STYLE", "responses"))
        self.OPENAI_REASONING_EFFORT: str = str(
            openai_cfg.get("reasoning_effort", os.getenv("OPENAI_REASONING_EFFORT", ""))
        )
        self.OPENAI_TEMPERATURE: float = float(openai_cfg.get("temperature", os.getenv("OPENAI_TEMPERATURE", "0.2")))
        self.OPENAI_TIMEOUT_S: float = float(openai_cfg.get("timeout_s", os.getenv("OPENAI_TIMEOUT_S", "60")))

        self.MESSAGE_MAX_CHARS: int = int(limits_cfg.get("message_max_chars", os.getenv("MESSAGE_MAX_CHARS", "2000")))
        self.SESSION_ID_MAX_CHARS: int = int(
            limits_cfg.get("session_id_max_chars", os.getenv("SESSION_ID_MAX_CHARS", "120"))
        )
        self.PAGE_MAX_CHARS: int = int(limits_cfg.get("page_max_chars", os.getenv("PAGE_MAX_CHARS", "300")))

        self.HOST: str = str(server_cfg.get("host") or os.getenv("LUCIUS_HOST", "0.0.0.0"))
        self.PORT: int = int(server_cfg.get("port", os.getenv("LUCIUS_PORT", "7071")))
        self.ALLOWED_ORIGIN: str = str(server_cfg.get("allowed_origin") or os.getenv("LUCIUS_ALLOWED_ORIGIN", "*"))
        self.STATUS_ENABLED: bool = _as_bool(server_cfg.get("status_enabled", os.getenv("LUCIUS_STATUS_ENABLED", "1")))

        if self.OPENAI_API_STYLE not in {"responses", "chat"}:
            logger.warning("Unknown OpenAI api_style %r; using 'responses'.", self.OPENAI_API_STYLE)
            self.OPENAI_API_STYLE = "responses"

    def validate(self) -> None:
        """Raise :class:`ConfigurationMissing` when a required setting is absent."""

        required = [
            ("OPENAI_API_KEY", self.OPENAI_API_KEY),
            ("OPENAI_MODEL", self.OPENAI_MODEL),
            ("OPENAI_API_BASE", self.OPENAI_API_BASE),
        ]
        missing = [name for name, val in required if not val]
        if missing:
            raise ConfigurationMissing(f"Missing environment variables: {', '.join(missing)}")
