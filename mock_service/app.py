from typing import Dict, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from canarykit.models import Phase

app = FastAPI(title="Mock Webhook Receiver")


class Payload(BaseModel):
    name: str
    namespace: str
    phase: Phase
    metadata: Optional[Dict[str, str]] = None


# gate name -> open/closed, keyed by "<namespace>/<name>"
_gates: Dict[str, Dict[str, bool]] = {"confirm": {}, "rollback": {}}
_received: List[dict] = []


def _record(path: str, payload: Payload) -> str:
    _received.append({"path": path, **payload.model_dump(mode="json")})
    return f"{payload.namespace}/{payload.name}"


def _status(ok: bool) -> JSONResponse:
    if ok:
        return JSONResponse({"status": "approved"}, status_code=200)
    return JSONResponse({"status": "denied"}, status_code=403)


@app.post("/approve")
async def approve(payload: Payload):
    _record("/approve", payload)
    return _status(True)


@app.post("/reject")
async def reject(payload: Payload):
    _record("/reject", payload)
    return _status(False)


@app.post("/gate/check")
async def gate_check(payload: Payload):
    key = _record("/gate/check", payload)
    return _status(_gates["confirm"].get(key, False))


@app.post("/gate/open")
async def gate_open(payload: Payload):
    _gates["confirm"][_record("/gate/open", payload)] = True
    return _status(True)


@app.post("/gate/close")
async def gate_close(payload: Payload):
    _gates["confirm"][_record("/gate/close", payload)] = False
    return _status(True)


@app.post("/rollback/check")
async def rollback_check(payload: Payload):
    key = _record("/rollback/check", payload)
    return _status(_gates["rollback"].get(key, False))


@app.post("/rollback/open")
async def rollback_open(payload: Payload):
    _gates["rollback"][_record("/rollback/open", payload)] = True
    return _status(True)


@app.post("/rollback/close")
async def rollback_close(payload: Payload):
    _gates["rollback"][_record("/rollback/close", payload)] = False
    return _status(True)


@app.get("/payloads")
async def payloads():
    return _received


@app.delete("/payloads")
async def reset():
    _received.clear()
    for gate in _gates.values():
        gate.clear()
    return {"status": "reset"}


# Run with: uvicorn mock_service.app:app --port 8001 --reload
