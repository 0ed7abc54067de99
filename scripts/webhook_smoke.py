#!/usr/bin/env python3
from __future__ import annotations

import argparse
import base64
import hashlib
import hmac
import json
import os
import sys
import uuid
from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class Scenario:
  name: str
  body: bytes
  signature: str | None
  expected_status: int


def sign(body: bytes, secret: str) -> str:
  digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
  return base64.b64encode(digest).decode("ascii")


def text_event(text: str, user_id: str) -> dict[str, Any]:
  message_id = uuid.uuid4().hex[:12]
  return {
    "type": "message",
    "replyToken": f"smoke-{message_id}",
    "source": {"type": "user", "userId": user_id},
    "message": {"id": message_id, "type": "text", "text": text},
  }


def build_scenarios(secret: str, user_id: str) -> list[Scenario]:
  booking = json.dumps({"events": [text_event("I'd like to book an appointment", user_id)]}).encode("utf-8")
  weight = json.dumps({"events": [text_event("weight 71.5kg this morning", user_id)]}).encode("utf-8")
  empty = json.dumps({"destination": "smoke", "events": []}).encode("utf-8")
  return [
    Scenario("Empty verification batch", empty, sign(empty, secret), 200),
    Scenario("Booking routing override", booking, sign(booking, secret), 200),
    Scenario("Redelivered booking event", booking, sign(booking, secret), 200),
    Scenario("Weight report", weight, sign(weight, secret), 200),
    Scenario("Tampered signature", weight, sign(weight, secret + "x"), 403),
    Scenario("Missing signature", weight, None, 403),
  ]


def run() -> int:
  parser = argparse.ArgumentParser(description="Post signed LINE webhook payloads to a running bot.")
  parser.add_argument("--base-url", default=os.getenv("CLINICBOT_SMOKE_URL", "http://127.0.0.1:8000"))
  parser.add_argument("--user-id", default="U-smoke-test")
  args = parser.parse_args()

  secret = os.getenv("LINE_CHANNEL_SECRET", "").strip()
  if not secret:
    print("LINE_CHANNEL_SECRET must be set to sign smoke payloads.", file=sys.stderr)
    return 2

  results: list[dict[str, Any]] = []
  with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=30.0) as client:
    health = client.get("/")
    results.append({"name": "Health check", "status": health.status_code, "pass": health.status_code == 200})

    for scenario in build_scenarios(secret, args.user_id):
      headers = {"Content-Type": "application/json"}
      if scenario.signature is not None:
        headers["X-Line-Signature"] = scenario.signature
      response = client.post("/webhook", content=scenario.body, headers=headers)
      results.append(
        {
          "name": scenario.name,
          "status": response.status_code,
          "body": response.text[:120],
          "pass": response.status_code == scenario.expected_status,
        }
      )

  passed = sum(1 for item in results if item["pass"])
  for item in results:
    status = "PASS" if item["pass"] else "FAIL"
    print(f"{status} - {item['name']} ({item['status']})")
  print(f"Passed {passed}/{len(results)} checks.")
  return 0 if passed == len(results) else 1


if __name__ == "__main__":
  raise SystemExit(run())
