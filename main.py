import logging
import sys
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from pymongo.database import Database

from config import ConfigError, load_settings
from database import (
    CAMPAIGNS,
    USERS,
    DatabaseUnavailable,
    connect,
    create_document,
    delete_document,
    get_document,
    list_documents,
    ping,
    serialize,
    update_document,
)
from schemas import build_campaign, build_user, campaign_update_fields

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

HEALTH_MESSAGE = "Server is running. Go to /api/campaigns for the campaign data."

CAMPAIGNS_PATH = "/api/campaigns"

logger = logging.getLogger(__name__)


def validation_message(exc) -> str:
    """Flatten pydantic errors into 'field: reason; field: reason'"""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def get_db(request: Request) -> Database:
    return request.app.state.db


def create_app(db: Database) -> FastAPI:
    """Build the API around an already connected database handle"""
    app = FastAPI(title="Crowdfunding API", version="1.0.0")
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        # Only a bad campaign create payload is a client error; any other body failure is a 500
        message = validation_message(exc)
        if request.method == "POST" and request.url.path == CAMPAIGNS_PATH:
            logger.warning("Rejected campaign payload: %s", message)
            return JSONResponse(status_code=400, content={"detail": f"Failed to save campaign: {message}"})
        logger.error("Unreadable body on %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=500, content={"detail": message})

    # ----------------------
    # Health/Test
    # ----------------------
    @app.get("/", response_class=PlainTextResponse)
    def read_root():
        return HEALTH_MESSAGE

    @app.get("/test")
    def test_database(db: Database = Depends(get_db)):
        """Check the database handle is usable"""
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_name": None,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            ping(db)
            response["database"] = "✅ Connected"
            response["database_name"] = db.name
            response["connection_status"] = "Connected"
            response["collections"] = db.list_collection_names()[:10]
        except Exception as e:
            logger.warning("Database check failed: %s", e)
            response["database"] = f"⚠️ {str(e)[:60]}"
        return response

    # ----------------------
    # Campaigns
    # ----------------------
    @app.get(CAMPAIGNS_PATH)
    def list_campaigns(db: Database = Depends(get_db)):
        try:
            campaigns = list_documents(db, CAMPAIGNS, "createdAt")
        except Exception as e:
            logger.exception("Error listing campaigns")
            raise HTTPException(status_code=500, detail=str(e))
        return [serialize(c) for c in campaigns]

    @app.get("/api/campaigns/{campaign_id}")
    def get_campaign(campaign_id: str, db: Database = Depends(get_db)):
        try:
            campaign = get_document(db, CAMPAIGNS, campaign_id)
        except Exception as e:
            logger.exception("Error fetching campaign %s", campaign_id)
            raise HTTPException(status_code=500, detail=str(e))
        if campaign is None:
            raise HTTPException(status_code=404, detail="Campaign not found")
        return serialize(campaign)

    @app.post(CAMPAIGNS_PATH, status_code=201)
    def create_campaign(payload: Dict[str, Any], db: Database = Depends(get_db)):
        try:
            campaign = build_campaign(payload)
        except ValidationError as e:
            logger.warning("Invalid campaign payload: %s", validation_message(e))
            raise HTTPException(status_code=400, detail=f"Failed to save campaign: {validation_message(e)}")

        try:
            saved = create_document(db, CAMPAIGNS, campaign)
        except Exception as e:
            logger.exception("Error saving campaign")
            raise HTTPException(status_code=500, detail=f"Failed to save campaign: {e}")
        logger.info("Created campaign %s", saved["_id"])
        return serialize(saved)

    @app.put("/api/campaigns/{campaign_id}")
    def update_campaign(campaign_id: str, payload: Dict[str, Any], db: Database = Depends(get_db)):
        # No match answers 200 with null, like the delete no-op
        try:
            fields = campaign_update_fields(payload)
            updated = update_document(db, CAMPAIGNS, campaign_id, fields)
        except Exception as e:
            logger.exception("Error updating campaign %s", campaign_id)
            raise HTTPException(status_code=500, detail=f"Failed to update campaign: {e}")
        return serialize(updated)

    @app.delete("/api/campaigns/{campaign_id}")
    def delete_campaign(campaign_id: str, db: Database = Depends(get_db)):
        try:
            deleted = delete_document(db, CAMPAIGNS, campaign_id)
        except Exception as e:
            logger.exception("Error deleting campaign %s", campaign_id)
            raise HTTPException(status_code=500, detail=f"Failed to delete campaign: {e}")
        if deleted:
            logger.info("Deleted campaign %s", campaign_id)
        return {"message": "Campaign deleted"}

    # ----------------------
    # Users
    # ----------------------
    @app.get("/api/users")
    def list_users(db: Database = Depends(get_db)):
        try:
            users = list_documents(db, USERS, "date")
        except Exception as e:
            logger.exception("Error listing users")
            raise HTTPException(status_code=500, detail=f"Failed to fetch users: {e}")
        return [serialize(u) for u in users]

    @app.post("/api/users")
    def create_user(payload: Optional[Dict[str, Any]] = Body(None), db: Database = Depends(get_db)):
        try:
            saved = create_document(db, USERS, build_user(payload or {}))
        except Exception as e:
            logger.exception("Error saving user")
            raise HTTPException(status_code=500, detail=f"Failed to add user: {e}")
        return serialize(saved)

    @app.delete("/api/users/{user_id}")
    def delete_user(user_id: str, db: Database = Depends(get_db)):
        try:
            delete_document(db, USERS, user_id)
        except Exception as e:
            logger.exception("Error deleting user %s", user_id)
            raise HTTPException(status_code=500, detail=f"Failed to delete user: {e}")
        return {"message": "User deleted"}

    return app


def main():
    """Validate config, connect, then serve. Returns the process exit code."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, handlers=[logging.StreamHandler()])

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1
    logging.getLogger().setLevel(settings.log_level)

    try:
        db = connect(settings.mongo_uri, settings.database_name)
    except DatabaseUnavailable as e:
        logger.error("%s", e)
        return 1

    import uvicorn
    logger.info("Server listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(create_app(db), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
