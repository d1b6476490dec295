"""Main script for running the claim checker API."""

import os

import uvicorn


def main():
    """Serve the API with uvicorn."""
    uvicorn.run(
        "claim_checker.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "").lower() in ("1", "true", "yes"),
    )


if __name__ == "__main__":
    main()
