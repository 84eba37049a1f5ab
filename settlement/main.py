import logging
import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi import FastAPI

from settlement.routes import get_settings, router
from settlement.database import Base, engine

# Force-load .env (Windows-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

get_settings()

app = FastAPI(title="Paystack Order Settlement")

app.include_router(router)

Base.metadata.create_all(bind=engine)
