#!/usr/bin/env python3
import uvicorn
from shelfmark.app import app
from shelfmark.configs import HOST, PORT, LOG_LEVEL

if __name__ == "__main__":
    print(f"Starting Shelfmark on {HOST}:{PORT}...")
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL)
