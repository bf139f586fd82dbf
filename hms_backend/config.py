from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Radice del progetto (accanto a streamlit_app.py)
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DB_NAME = os.getenv("DB_NAME", "hms")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{PROJECT_ROOT / f'{DB_NAME}.sqlite'}")

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))

# Usati dal mirror lato client
API_BASE = os.getenv("API_BASE", f"http://127.0.0.1:{PORT}")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
