"""
Discord Interactions Web Application

FastAPI app for:
- The signed Discord interactions endpoint
- A run trigger and health check
- Static pages (terms, privacy, linked roles) from public/
"""

import logging
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from core.interactions import Interaction, build_response, verify_signature

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


# Configuration
STATIC_DIR = os.getenv('STATIC_DIR', 'public')


app = FastAPI(
    title="Discord Interactions Endpoint",
    description="Verifies and answers Discord interaction webhooks",
    version="1.0.0",
)


# ============== Interactions ==============

@app.post("/interactions")
async def interactions(request: Request):
    """Verify and answer a Discord interaction"""
    # Read per request so a rotated key takes effect without a restart
    public_key = os.getenv('PUBLIC_KEY')
    if not public_key:
        logger.error("PUBLIC_KEY is not set")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Missing PUBLIC_KEY in environment."},
        )

    signature = request.headers.get('X-Signature-Ed25519')
    timestamp = request.headers.get('X-Signature-Timestamp')
    body = await request.body()

    if not signature or not timestamp:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Bad request signature headers.")

    if not verify_signature(public_key, signature, timestamp, body):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid request signature.")

    try:
        interaction = Interaction.model_validate_json(body)
    except ValidationError:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Invalid JSON.")

    return build_response(interaction)


# ============== Utility ==============

@app.get("/run", response_class=PlainTextResponse)
async def run_action():
    """Manual trigger used by the landing page button"""
    logger.info("Run button clicked!")
    return "✅ Run action triggered!"


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# Mount static files last so the routes above win
try:
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
except RuntimeError:
    pass  # Static directory may not exist yet


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 3000)))
