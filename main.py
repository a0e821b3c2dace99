# main.py
import logging
import sys
import asyncio

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from config.settings import settings
from core.errors import register_exception_handlers
from core.log import RequestLogMiddleware, configure_logging
from database.connection import create_all_tables, get_db

logger = logging.getLogger("javelin")

# ----- Windows event loop policy -----
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# ----- App instance -----
app = FastAPI(title="Javelin API", version="1.0.0")

# ----- Middlewares -----
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# ----- Routers -----
from modules.audit import routes as audit_routes
from modules.incidents import routes as incident_routes
from modules.locations import routes as location_routes
from modules.maintenance import routes as maintenance_routes
from modules.messaging import routes as messaging_routes
from modules.payroll import routes as payroll_routes
from modules.staff import routes as staff_routes
from modules.users import routes as user_routes

app.include_router(user_routes.auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(user_routes.api_router, prefix="/api/users", tags=["Users"])
app.include_router(audit_routes.api_router, prefix="/api/audit", tags=["Audit"])
app.include_router(staff_routes.api_router, prefix="/api/staff", tags=["Staff"])
app.include_router(location_routes.locations_router, prefix="/api/locations", tags=["Locations"])
app.include_router(location_routes.beats_router, prefix="/api/beats", tags=["Beats"])
app.include_router(location_routes.assignments_router, prefix="/api/assignments", tags=["Assignments"])
app.include_router(payroll_routes.api_router, prefix="/api/salaries", tags=["Payroll"])
app.include_router(incident_routes.incidents_router, prefix="/api/incidents", tags=["Incidents"])
app.include_router(incident_routes.alerts_router, prefix="/api/alerts", tags=["Emergency Alerts"])
app.include_router(messaging_routes.api_router, prefix="/api/messaging", tags=["Messaging"])
app.include_router(maintenance_routes.api_router, prefix="/api/maintenance", tags=["Maintenance"])


# ----- Startup -----
@app.on_event("startup")
def on_startup():
    configure_logging(settings.LOG_LEVEL)
    logger.info("Creating database tables (%s)", settings.APP_ENV)
    create_all_tables()


@app.get("/health", tags=["Health"])
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "success", "message": "OK", "environment": settings.APP_ENV}


# ----- Entrypoint -----
if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=not settings.is_production)
