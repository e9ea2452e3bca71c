import logging
import os
import time
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from .database import SessionLocal
from .routes import include_modular_routers
from .survey_loader import validate_locales

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Twinber API")
include_modular_routers(app)

# credentials: "include" needs explicit origins, no wildcard
ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def run_migrations() -> None:
    env_dir = os.getenv("MIGRATIONS_DIR", "").strip()
    docker_dir = Path("/app/migrations")
    local_dir = Path(__file__).resolve().parents[1] / "migrations"

    if env_dir:
        migrations_dir = Path(env_dir)
    elif docker_dir.exists():
        migrations_dir = docker_dir
    else:
        migrations_dir = local_dir

    if not migrations_dir.is_dir():
        raise FileNotFoundError(
            "Migrations directory not found. Checked: "
            f"MIGRATIONS_DIR={env_dir or '<unset>'}, {docker_dir}, {local_dir}"
        )

    files = sorted(f.name for f in migrations_dir.iterdir() if f.is_file() and f.suffix == ".sql")
    with SessionLocal() as db:
        for fname in files:
            db.execute(text((migrations_dir / fname).read_text(encoding="utf-8")))
        db.commit()
    logger.info(f"[startup] applied {len(files)} migration file(s) from {migrations_dir}")


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            logger.info("[startup] database not ready, retrying")
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


@app.on_event("startup")
def on_startup() -> None:
    validate_locales()
    wait_for_db()
    run_migrations()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
