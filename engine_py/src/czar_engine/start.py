#!/usr/bin/env python3
"""Startup script for the Czar card game backend"""

import os
import uvicorn


def main():
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")

    print(f"Starting Czar card game backend on {host}:{port}")
    print(f"Health check available at: http://{host}:{port}/health")
    print(f"WebSocket endpoint: ws://{host}:{port}/ws")
    if os.getenv("CZAR_DECKS_DIR"):
        print(f"Custom decks read from: {os.getenv('CZAR_DECKS_DIR')}")

    uvicorn.run(
        "czar_engine.ws.server:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )

if __name__ == "__main__":
    main()
