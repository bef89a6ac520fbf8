#!/usr/bin/env python3
# This project was developed with assistance from AI tools.
"""Live test suite for the Investor Onboarding API.

Walks an application from submission to an active investment, then checks
error bodies, the dashboard and the OpenAPI document against a running
server instance.

Prerequisites:
  - API server running on localhost:8000 with AUTH_DISABLED=true
    (the dev user is an admin, so every route is reachable)
  - Database migrated (alembic upgrade head)

Usage:
  ./scripts/live-tests.py                       # full suite
  ./scripts/live-tests.py --section lifecycle   # only the onboarding walk
  ./scripts/live-tests.py --base-url http://api:8000
"""

import argparse
import asyncio
import sys
import uuid

import httpx

BASE = "http://localhost:8000"
HEADERS = {"Origin": "http://localhost:5173"}

# ---------------------------------------------------------------------------
# Test runner
# ---------------------------------------------------------------------------

PASS = 0
FAIL = 0
ERRORS: list[str] = []
SECTION = ""


def section(name: str):
    global SECTION
    SECTION = name
    print(f"\n{'=' * 60}")
    print(f"  {name}")
    print(f"{'=' * 60}\n")


def ok(name: str, passed: bool, detail: str = ""):
    global PASS, FAIL
    if passed:
        PASS += 1
        print(f"  PASS  {name}")
    else:
        FAIL += 1
        msg = f"[{SECTION}] {name}: {detail}" if detail else f"[{SECTION}] {name}"
        ERRORS.append(msg)
        print(f"  FAIL  {name} -- {detail}")


def has_keys(d: dict, *keys: str) -> bool:
    return all(k in d for k in keys)


# ---------------------------------------------------------------------------
# 1. Health
# ---------------------------------------------------------------------------

async def test_health(c: httpx.AsyncClient):
    section("Health")

    r = await c.get("/health/")
    ok("GET /health/ returns 200", r.status_code == 200)
    data = r.json()
    ok("response is a list", isinstance(data, list))
    ok("API status is healthy",
       any(s.get("name") == "API" and s.get("status") == "healthy" for s in data))
    ok("Database status is healthy",
       any(s.get("name") == "Database" and s.get("status") == "healthy" for s in data))

    r = await c.get("/")
    ok("GET / root returns 200", r.status_code == 200)
    ok("root has welcome message", "message" in r.json())


# ---------------------------------------------------------------------------
# 2. Applications
# ---------------------------------------------------------------------------

async def test_applications(c: httpx.AsyncClient) -> str | None:
    section("Applications")

    r = await c.post("/api/applications/", json={
        "investment_amount": "50000.00",
        "annual_percentage": "12.00",
        "payment_frequency": "monthly",
        "term_months": 12,
    })
    ok("POST /api/applications/ returns 201", r.status_code == 201, f"status={r.status_code}")
    if r.status_code != 201:
        return None
    app = r.json()
    ok("starts at promissory_note_pending", app.get("status") == "promissory_note_pending")

    r = await c.get(f"/api/applications/{app['id']}")
    ok("GET application by id returns 200", r.status_code == 200)

    r = await c.get("/api/applications/", params={"limit": 5})
    ok("list returns 200", r.status_code == 200)
    body = r.json()
    ok("list has data and pagination", has_keys(body, "data", "pagination"))
    ok("limit respected", len(body.get("data", [])) <= 5)

    r = await c.get("/api/applications/", params={"filter_status": "promissory_note_pending"})
    ok("status filter returns 200", r.status_code == 200)
    ok("filter applied",
       all(a["status"] == "promissory_note_pending" for a in r.json().get("data", [])))
    return app["id"]


# ---------------------------------------------------------------------------
# 3. Onboarding lifecycle
# ---------------------------------------------------------------------------

async def test_lifecycle(c: httpx.AsyncClient, app_id: str):
    section("Onboarding Lifecycle")

    sign = {"document_type": "subscription_agreement", "status": "investor_signed"}
    r = await c.post(f"/api/applications/{app_id}/signatures", json=sign)
    ok("subscription agreement signed", r.status_code == 200, f"status={r.status_code}")
    ok("application moved to documents_signed",
       r.json().get("application_status") == "documents_signed")

    r = await c.post(f"/api/applications/{app_id}/signatures", json=sign)
    ok("repeat signature is a noop", r.json().get("outcome") == "noop")

    r = await c.post(f"/api/applications/{app_id}/approve")
    ok("approve returns 200", r.status_code == 200, f"status={r.status_code}")
    investment = r.json()
    inv_id = investment.get("id")
    ok("investment starts pending", investment.get("status") == "pending")
    ok("expected return is 6000.00", investment.get("total_expected_return") == "6000.00",
       f"got={investment.get('total_expected_return')}")

    r = await c.post(f"/api/applications/{app_id}/approve")
    ok("second approve returns the same investment", r.json().get("id") == inv_id)

    r = await c.post(f"/api/investments/{inv_id}/promissory-note")
    ok("promissory note sent", r.json().get("status") == "promissory_note_sent")

    r = await c.post(f"/api/applications/{app_id}/signatures", json={
        "document_type": "promissory_note", "status": "investor_signed",
    })
    ok("promissory note signed", r.json().get("application_status") == "bank_details_pending")

    for target in ("funds_pending", "plaid_pending", "investor_onboarding_complete",
                   "pending_activation"):
        r = await c.post(f"/api/investments/{inv_id}/transitions",
                         json={"target_status": target})
        ok(f"transition to {target}", r.status_code == 200 and r.json().get("status") == target,
           f"status={r.status_code}")

    r = await c.post(f"/api/investments/{inv_id}/transitions",
                     json={"target_status": "funds_pending"})
    ok("backward transition rejected (409)", r.status_code == 409, f"status={r.status_code}")

    r = await c.post(f"/api/investments/{inv_id}/activate")
    ok("activation returns 200", r.status_code == 200)
    ok("application is active", r.json().get("application_status") == "active")

    r = await c.get(f"/api/investments/{inv_id}")
    ok("active investment has a start date", r.json().get("start_date") is not None)

    r = await c.get(f"/api/applications/{app_id}/status")
    body = r.json()
    ok("status endpoint returns 200", r.status_code == 200)
    ok("progress is 100", body.get("progress_percent") == 100)


# ---------------------------------------------------------------------------
# 4. Error handling
# ---------------------------------------------------------------------------

async def test_error_handling(c: httpx.AsyncClient):
    section("Error Handling (RFC 7807)")

    r = await c.get(f"/api/applications/{uuid.uuid4()}", headers={"x-request-id": "live-404"})
    ok("404 status code", r.status_code == 404)
    body = r.json()
    ok("404 has problem fields", has_keys(body, "type", "title", "status", "detail"))
    ok("404 echoes request id", body.get("request_id") == "live-404")

    r = await c.post("/api/applications/", json={"investment_amount": "-100"})
    ok("422 status code", r.status_code == 422)
    ok("422 has status=422", r.json().get("status") == 422)

    r = await c.post(f"/api/investments/{uuid.uuid4()}/transitions",
                     json={"target_status": "wired"})
    ok("unknown target status returns 422", r.status_code == 422, f"status={r.status_code}")

    r = await c.get("/api/applications/not-a-uuid")
    ok("malformed id returns 422", r.status_code == 422)


# ---------------------------------------------------------------------------
# 5. Dashboard
# ---------------------------------------------------------------------------

async def test_dashboard(c: httpx.AsyncClient):
    section("Dashboard")

    r = await c.get("/api/dashboard/overview")
    ok("GET overview returns 200", r.status_code == 200)
    body = r.json()
    ok("overview has state", "state" in body)
    ok("overview has sample flag", "is_sample_data" in body)


# ---------------------------------------------------------------------------
# 6. OpenAPI spec
# ---------------------------------------------------------------------------

async def test_openapi(c: httpx.AsyncClient):
    section("OpenAPI Specification")

    r = await c.get("/openapi.json")
    ok("GET /openapi.json returns 200", r.status_code == 200)
    doc = r.json()
    ok("title is Investor Onboarding",
       "investor onboarding" in doc.get("info", {}).get("title", "").lower())
    ok("document has paths", len(doc.get("paths", {})) >= 10,
       f"path_count={len(doc.get('paths', {}))}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

async def main():
    parser = argparse.ArgumentParser(description="Live test suite for the Investor Onboarding API")
    parser.add_argument("--base-url", default=BASE, help="Server base URL")
    parser.add_argument("--section", choices=["lifecycle", "all"], default="all",
                        help="Which sections to run")
    args = parser.parse_args()

    print("=" * 60)
    print("  LIVE TEST SUITE -- Investor Onboarding API")
    print("=" * 60)

    async with httpx.AsyncClient(base_url=args.base_url, headers=HEADERS, timeout=15) as c:

        # Pre-flight: make sure server is up
        try:
            r = await c.get("/health/")
            if r.status_code != 200:
                print(f"\n  Server returned {r.status_code} on /health/ -- is it running?")
                sys.exit(2)
        except httpx.ConnectError:
            print(f"\n  Cannot connect to server at {args.base_url} -- is it running?")
            sys.exit(2)

        if args.section == "all":
            await test_health(c)
        app_id = await test_applications(c)
        if app_id:
            await test_lifecycle(c, app_id)
        if args.section == "all":
            await test_error_handling(c)
            await test_dashboard(c)
            await test_openapi(c)

    # Summary
    print(f"\n{'=' * 60}")
    print(f"  RESULTS: {PASS} passed, {FAIL} failed")
    print(f"{'=' * 60}")

    if ERRORS:
        print("\nFailures:")
        for e in ERRORS:
            print(f"  - {e}")

    sys.exit(0 if FAIL == 0 else 1)


if __name__ == "__main__":
    asyncio.run(main())
