"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import get_settings
from src.api.endpoints.mpesa import mpesa_api
from src.error_handler import ErrorHandler, RelayError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()
error_handler = ErrorHandler()

# Initialize FastAPI app
app = FastAPI(
    title="M-Pesa Payment Relay",
    description="Starts Daraja STK pushes, stores their callbacks in Firestore and answers payment status polls",
    version="1.0.0",
)

# CORS middleware: answers pre-flight requests before any route runs
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(mpesa_api)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    status_code, body = error_handler.handle_exception(exc, context={"path": request.url.path})
    return JSONResponse(status_code=status_code, content=body)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
