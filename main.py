"""
Mind Map Builder FastAPI Application

Main entry point for the Mind Map Builder application, serving the REST API
used by the browser-based mind map editor.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before modules that read them at import
load_dotenv()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from database import init_db  # noqa: E402
from server.auth import router as auth_router  # noqa: E402
from server.export import router as export_router  # noqa: E402
from server.mindmaps import router as mindmaps_router  # noqa: E402
from server.nodes import router as nodes_router  # noqa: E402
from server.routes import router as routes_router  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialised")
    yield


app = FastAPI(title="Mind Map Builder API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all routers
app.include_router(routes_router)
app.include_router(auth_router)
app.include_router(mindmaps_router)
app.include_router(nodes_router)
app.include_router(export_router)


# ============================================================
# Error Handling
# ============================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as a 400 list of field errors.

    Args:
        request: FastAPI request object.
        exc: Validation error raised while parsing the request.

    Returns:
        JSONResponse with ``{"errors": [{"msg", "param", "location"}]}``.
    """
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        location = loc[0] if loc else "body"
        msg = str(error.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.append({
            "msg": msg,
            "param": ".".join(loc[1:]) or location,
            "location": location,
        })
    return JSONResponse(status_code=400, content={"errors": errors})
