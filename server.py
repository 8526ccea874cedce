"""
Streamify relationship and engagement API server entry point.
"""

import os

import uvicorn

from app.main import app


if __name__ == "__main__":
    print("Streamify API starting...")
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )
