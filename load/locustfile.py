"""
Locust load script for the talent booking API.

Simulates the read-heavy traffic of signed-in agency users:
- Login via /auth/login (OAuth2 form)
- Page through /api/v1/bookings and open a booking's details
- Check the talent request queue (/api/v1/booking-requests)
- Poll /api/v1/notifications/unread-count for badge counts
- Browse the public talent directory

Configure with env vars or Locust UI:
- HOST: pass via `--host http://localhost:8000`
- TALENT_BOOKING_TEST_USERS: CSV of `email:password` pairs

Run:
  locust -f load/locustfile.py --host http://localhost:8000
"""

from __future__ import annotations

import logging
import os
import random
import time
from typing import Dict, List, Optional, Tuple

from locust import HttpUser, between, events, task


DEFAULT_USERS = [
    ("admin@example.com", "change-me-now"),
    ("client@example.com", "change-me-now"),
    ("talent@example.com", "change-me-now"),
]


def _load_users() -> List[Tuple[str, str]]:
    raw = os.getenv("TALENT_BOOKING_TEST_USERS", "").strip()
    out: List[Tuple[str, str]] = []
    for piece in raw.split(","):
        email, _, pwd = piece.strip().partition(":")
        if email and pwd:
            out.append((email.strip(), pwd.strip()))
    return out or DEFAULT_USERS


TEST_USERS = _load_users()


def _auth_header(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


class BookingUser(HttpUser):
    wait_time = between(1, 3)

    token: Optional[str] = None
    booking_ids: List[int] = []
    auth_failures: int = 0
    login_cooldown_until: float = 0.0

    def on_start(self):
        email, password = random.choice(TEST_USERS)
        self._login(email, password)

    def _login(self, email: str, password: str) -> None:
        # OAuth2PasswordRequestForm expects form-encoded username/password
        r = self.client.post("/auth/login", data={"username": email, "password": password}, name="/auth/login")
        if r.status_code != 200:
            self.token = None
            self.auth_failures += 1
            self.login_cooldown_until = time.time() + min(120.0, 2 ** min(self.auth_failures, 5))
            return
        self.token = r.json().get("access_token")
        self.auth_failures = 0
        self.booking_ids = []

    def _ensure_auth(self) -> bool:
        if self.token:
            return True
        if time.time() < self.login_cooldown_until:
            return False
        self._login(*random.choice(TEST_USERS))
        return bool(self.token)

    def _get(self, path: str, name: str, **params):
        r = self.client.get(path, headers=_auth_header(self.token), params=params or None, name=name)
        if r.status_code == 401:
            self.token = None
        return r

    @task(6)
    def list_bookings(self):
        if not self._ensure_auth():
            return
        r = self._get("/api/v1/bookings", "/bookings", limit=20)
        if r.status_code == 200:
            self.booking_ids = [item["id"] for item in r.json().get("items", [])]

    @task(4)
    def open_booking(self):
        if not self._ensure_auth() or not self.booking_ids:
            return
        booking_id = random.choice(self.booking_ids)
        self._get(f"/api/v1/bookings/{booking_id}", "/bookings/[id]")

    @task(3)
    def booking_requests(self):
        if not self._ensure_auth():
            return
        self._get("/api/v1/booking-requests", "/booking-requests", limit=20)

    @task(3)
    def unread_count(self):
        if not self._ensure_auth():
            return
        self._get("/api/v1/notifications/unread-count", "/notifications/unread-count")

    @task(2)
    def talent_directory(self):
        self.client.get("/api/v1/talents", params={"limit": 20}, name="/talents")


class LoginOnlyUser(HttpUser):
    """Performs a single login to isolate /auth/login latency, then idles."""

    wait_time = between(1, 1)

    def on_start(self):
        email, password = random.choice(TEST_USERS)
        self.client.post("/auth/login", data={"username": email, "password": password}, name="/auth/login")

    @task
    def idle(self):
        return


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    users = ", ".join(u for u, _ in TEST_USERS)
    logging.getLogger("locust").info("Starting test with users: %s", users)
