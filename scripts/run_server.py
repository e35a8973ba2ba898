#!/usr/bin/env python3
"""Development server runner for dummysource."""

import uvicorn
from dummysource.api import app

if __name__ == "__main__":
    uvicorn.run(
        "dummysource.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
