# backend/app/main.py
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
import os, logging

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

from app.db.session import engine  # noqa: E402
from app.api.dashboard import router as dashboard_router  # noqa: E402

app = FastAPI(title="Storefront Analytics API", version="0.1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check
@app.get("/api/health")
def health():
    return {"status": "ok"}

@app.get("/api/health/db")
def health_db():
    # Fail honestly: 500 if the store is not reachable
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        return {"db": "ok"}
    except Exception:
        # driver errors may carry host / credentials; keep them in the log
        logging.exception("DB health check failed")
        raise HTTPException(status_code=500, detail={"db": "error"})

app.include_router(dashboard_router)
logging.info("Mounted router: app.api.dashboard")
