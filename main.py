import os

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

import content
import database
import mailer
import reviews
import siteinfo
import uploads
from errors import register_error_handlers
from logs import configure_logging
from security import ADMIN_EMAIL, authenticate_admin, create_access_token, get_current_admin

configure_logging()
logger = structlog.get_logger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


# ==================
# FastAPI app config
# ==================
app = FastAPI(title="Portfolio CMS API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(content.router, tags=["content"])
app.include_router(reviews.router, tags=["reviews"])
app.include_router(siteinfo.router, tags=["site"])
app.include_router(uploads.router, tags=["uploads"])
app.include_router(mailer.router, tags=["mail"])


# ======
# Routes
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "portfolio-api"}


@app.get("/test")
def test_database():
    response = {
        "backend": "running",
        "database": "not-available",
        "database_url": "set" if os.getenv("DATABASE_URL") else "not-set",
        "collections": [],
    }
    try:
        db = database.connect()
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "connected"
    except Exception as e:
        logger.warning("database_check_failed", error=str(e)[:120])
        response["database"] = f"error: {str(e)[:80]}"
    return response


# Auth
@app.post("/api/auth/login", response_model=Token)
def login(data: LoginRequest):
    if not authenticate_admin(data.email, data.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token({"sub": ADMIN_EMAIL, "role": "admin"})
    return Token(access_token=token)


@app.get("/api/auth/me")
def me(admin: dict = Depends(get_current_admin)):
    return {"success": True, "data": admin}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
