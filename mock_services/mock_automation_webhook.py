"""
mock_automation_webhook.py — Mock Workflow-Automation Webhook Receiver

Simulates the automation scenario (e.g. a Make.com custom webhook) that
receives a copy of every outcome of the phone order service.

Simulation Scenarios:
    • Normal delivery → recorded and acknowledged
    • FAIL_NEXT set   → next delivery answered with HTTP 500 (not recorded)

Endpoints:
    POST /webhook — Records the event payload.
    GET  /events  — Lists recorded events.

Port:
    Default: 8003 (HTTP)
"""

import logging

from fastapi import Body, FastAPI, HTTPException

app = FastAPI(title="Mock Automation Webhook")
logging.basicConfig(level=logging.INFO)

RECEIVED = []
FAIL_NEXT = {"enabled": False}


def reset():
    RECEIVED.clear()
    FAIL_NEXT["enabled"] = False


@app.post("/webhook")
def receive_event(payload: dict = Body(...)):
    event_type = payload.get("type", "UNKNOWN")
    if FAIL_NEXT["enabled"]:
        FAIL_NEXT["enabled"] = False
        logging.warning(f"[HOOK] Simulating failure for event '{event_type}'.")
        raise HTTPException(status_code=500, detail="Scenario failed")

    RECEIVED.append(payload)
    logging.info(f"[HOOK] Event '{event_type}' received (call: {payload.get('call_id')}).")
    return {"accepted": True}


@app.get("/events")
def list_events():
    return {"events": RECEIVED}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8003)
