import os
from pathlib import Path


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Word dataset (category -> words)
    WORDS_PATH = os.environ.get(
        "WORDS_PATH",
        str(Path(__file__).resolve().parent / "game" / "data" / "words.json"),
    )

    # Game
    DISCONNECT_GRACE_SEC = int(os.environ.get("DISCONNECT_GRACE_SEC", "60"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "3"))
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "4"))
