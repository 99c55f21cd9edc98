import os


class Transcript:
    def __init__(self, config: dict | None = None) -> None:
        transcript_cfg = (config or {}).get("lucius", {}).get("transcript", {})
        self.PATH: str = str(transcript_cfg.get("path") or os.getenv("TRANSCRIPT_PATH", ""))
        self.USER_MAX_CHARS: int = int(transcript_cfg.get("user_max_chars", os.getenv("TRANSCRIPT_USER_MAX_CHARS", "2000")))
        self.REPLY_MAX_CHARS: int = int(
            transcript_cfg.get("reply_max_chars", os.getenv("TRANSCRIPT_REPLY_MAX_CHARS", "4000"))
        )
