import uvicorn
import os

if __name__ == "__main__":
    if not os.environ.get("NSE_STORY_PATH"):
        raise SystemExit("Set NSE_STORY_PATH to a Twine story HTML file")

    print("Starting Narrative State Engine API...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "narrative_engine.api.server:app",
        host="0.0.0.0",
        port=int(os.environ.get("NSE_PORT", "8000")),
        reload=True
    )
