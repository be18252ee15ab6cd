#!/usr/bin/env python3
"""
Smoke test for the theme API against a running server.

Exercises read, write, stylesheet, validation and reset for the user theme
and the public site theme reads.
"""
import asyncio
import os
import sys
from pathlib import Path

import httpx

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from theme_service.services.auth_service import AuthService
from theme_service.services.theme_defaults import DEFAULT_THEME_COLORS

API_BASE = os.environ.get("API_BASE", "http://localhost:8000/api/v1")
TIMEOUT = 30.0


def check(label, condition):
    status = "PASS" if condition else "FAIL"
    print(f"[{status}] {label}")
    return condition


async def main():
    token, _ = AuthService.create_access_token(4242)
    headers = {"Authorization": f"Bearer {token}"}
    results = []

    async with httpx.AsyncClient(base_url=API_BASE, timeout=TIMEOUT) as client:
        resp = await client.get("/theme")
        results.append(check("unauthenticated read is rejected", resp.status_code == 401))

        resp = await client.get("/theme", headers=headers)
        results.append(check("read creates default theme", resp.status_code == 200))

        colors = {**DEFAULT_THEME_COLORS, "primary": "#3b82f6"}
        resp = await client.post("/theme", headers=headers, json={"colors": colors, "radius": 0.8})
        results.append(check("write is accepted", resp.status_code == 200 and resp.json()["radius"] == 0.8))

        incomplete = {k: v for k, v in colors.items() if k != "ring"}
        resp = await client.post("/theme", headers=headers, json={"colors": incomplete})
        results.append(check("missing color role is rejected", resp.status_code == 400))

        resp = await client.get("/theme/css", headers=headers)
        results.append(check("stylesheet is served", resp.headers.get("content-type", "").startswith("text/css")))
        results.append(check("stylesheet reflects write", "--radius: 0.8rem;" in resp.text))

        resp = await client.delete("/theme", headers=headers)
        results.append(check("reset restores defaults", resp.json()["theme"]["radius"] == 0.5))

        resp = await client.get("/site-theme/css")
        results.append(check("site stylesheet is public", resp.status_code == 200))

    passed = sum(results)
    print(f"\n{passed}/{len(results)} checks passed")
    return passed == len(results)


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
