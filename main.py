import argparse
import logging
import uvicorn
from fastapi import FastAPI, Request, Depends
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.responses import HTMLResponse
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_db
from config import load_config
from logger_config import setup_logging
from routes import scripts, review  # Import routers
from utils.ledger import list_scripts

logger = logging.getLogger(__name__)

# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init DB and config
    load_config()  # Ensures config exists
    setup_logging()
    init_db()
    yield

templates = Jinja2Templates(directory=str(base_dir / "templates"))
app = FastAPI(title="LineCoach", description="Local-first script line memorization", lifespan=lifespan)

app.mount("/static", StaticFiles(directory=str(base_dir / "static")), name="static")

# Include routers
app.include_router(scripts.router, prefix="/scripts", tags=["scripts"])
app.include_router(review.router, prefix="/review", tags=["review"])

# Home page - list scripts
@app.get("/", response_class=HTMLResponse)
async def home(request: Request, conn = Depends(get_db)):
    return templates.TemplateResponse("index.html", {"request": request, "scripts": list_scripts(conn)})

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LineCoach App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    args = parser.parse_args()
    config = load_config()
    setup_logging()
    if args.init:
        init_db()
        logger.info("DB initialized and config copied to ~/.linecoach/")
        sys.exit(0)
    server_cfg = config["server"]
    uvicorn.run(
        "main:app",
        host=server_cfg["host"],
        port=args.port or server_cfg["port"],
        reload=args.dev,
        log_level=config["logging"]["level"].lower(),
    )
