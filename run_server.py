#!/usr/bin/env python3
"""
Development server launcher for the vistag API.

For production, run the app under a proper ASGI server deployment.
"""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3001"))

    print("Starting vistag API development server")
    print(f"Upload page: http://localhost:{port}/")
    print(f"API endpoint: http://localhost:{port}/api/analyze-image")
    print(f"API documentation: http://localhost:{port}/docs")
    print(f"Gemini API key: {'loaded from env' if os.getenv('GEMINI_API_KEY') else 'NOT SET'}")

    uvicorn.run(
        "vistag.api.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "").lower() in {"1", "true", "yes"},
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
