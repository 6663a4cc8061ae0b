from fastapi import FastAPI
from fastapi.responses import JSONResponse
import json
import os

app = FastAPI(title="Mock Text Generation Server", version="1.0.0")
# MOCK_LLM_MODE=down answers 503, MOCK_LLM_MODE=garbage answers unparseable text
MODE = os.environ.get("MOCK_LLM_MODE", "ok")

@app.get("/health")
def health(): return {"status": "ok", "mode": MODE}

@app.post("/api/generate")
def generate(payload: dict):
    if MODE == "down":
        return JSONResponse(status_code=503, content={"error": "model unavailable"})
    if MODE == "garbage":
        return {"model": payload.get("model"), "response": "", "done": True}

    prompt = payload.get("prompt", "")
    if "Campaign:" in prompt:
        text = json.dumps({
            "tags": ["community", "relief", "donations"],
            "summary": "Recurring donations that fund community relief work.",
        })
    else:
        outcome = prompt.split(". Risk score")[0]
        text = f"{outcome} after automated fraud screening. Further details follow"
    return {"model": payload.get("model"), "response": text, "done": True}
