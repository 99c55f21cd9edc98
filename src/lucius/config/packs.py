import os
from pathlib import Path
from typing import Any, Dict, List

_DEFAULT_LOCAL_DIR = Path("docs") / "lucius"

_DEFAULT_CORE_TEXT = (
    "You are Lucius, the technically credible explainer for this website. "
    "Be professional, informative and concise. "
    "If something is unknown or out of scope, say so plainly and suggest the right next step."
)

_DEFAULT_LAYERS: List[Dict[str, Any]] = [
    {
        "name": "core",
        "priority": 0,
        "title": "Assistant rules",
        "file": "core.md",
        "env": "LUCIUS_SYSTEM_PROMPT",
        "default": _DEFAULT_CORE_TEXT,
    },
    {
        "name": "product",
        "priority": 1,
        "title": "Knowledge pack",
        "file": "product.md",
        "env": "LUCIUS_KB",
    },
    {
        "name": "overlay",
        "priority": 2,
        "title": "Deployment overlay",
        "file": "overlay.md",
        "env": "LUCIUS_OVERLAY",
    },
]


class Packs:
    def __init__(self, config: dict | None = None) -> None:
        packs_cfg = (config or {}).get("lucius", {}).get("packs", {})

        self.REMOTE_BASE_URL: str = str(packs_cfg.get("remote_base_url") or os.getenv("PACKS_REMOTE_BASE_URL", ""))
        self.LOCAL_DIR: str = str(packs_cfg.get("local_dir") or os.getenv("PACKS_LOCAL_DIR", str(_DEFAULT_LOCAL_DIR)))
        self.TTL_MS: int = int(packs_cfg.get("ttl_ms", os.getenv("PACKS_TTL_MS", "600000")))
        self.REMOTE_TIMEOUT_MS: int = int(packs_cfg.get("remote_timeout_ms", os.getenv("PACKS_REMOTE_TIMEOUT_MS", "5000")))

        token_env = str(packs_cfg.get("auth_token_env", "PACKS_AUTH_TOKEN"))
        self.AUTH_TOKEN: str | None = os.getenv(token_env) or None

        layers_cfg = packs_cfg.get("layers")
        self.LAYERS: List[Dict[str, Any]] = [dict(item) for item in (layers_cfg or _DEFAULT_LAYERS)]
