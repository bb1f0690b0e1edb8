"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test dashboard cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import uuid
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, events, tag, task

ACTIVITIES = ["Coffee", "Dining", "Movies", "Walking", "Shopping", "Art Gallery"]

# Shared state
BOOKING_IDS = []
CONTESTED_COMPANION_ID = "companion-contested"
CONTESTED_DATE = (datetime.now(timezone.utc) + timedelta(days=30)).date().isoformat()


def random_actor(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def booking_payload(companion_id: str, booking_date: str, start_time: str = "18:00:00") -> dict:
    return {
        "companion_id": companion_id,
        "booking_date": booking_date,
        "start_time": start_time,
        "duration_hours": 2,
        "activity": random.choice(ACTIVITIES),
        "hourly_rate": "500",
    }


def future_date(max_days: int = 90) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=random.randint(1, max_days))).date().isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: contested companion {CONTESTED_COMPANION_ID} on {CONTESTED_DATE} 18:00")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users request the same companion slot,
    the companion accepts them all as fast as possible.

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings
      WHERE companion_id = 'companion-contested' AND status IN ('accepted', 'active');
    Should be exactly 1, with exactly one row in chats for it.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = {"X-Actor-Id": random_actor("user")}
        self.companion_headers = {"X-Actor-Id": CONTESTED_COMPANION_ID}
        self.booking_id = None

        with self.client.post(
            "/api/v1/bookings/",
            json=booking_payload(CONTESTED_COMPANION_ID, CONTESTED_DATE),
            headers=self.headers,
            name="/api/v1/bookings/ [contested]",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                self.booking_id = resp.json()["id"]
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: slot already taken
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task
    def accept_contested_booking(self):
        """Every pending request races for the one slot."""
        if not self.booking_id:
            return

        with self.client.post(
            f"/api/v1/bookings/{self.booking_id}/respond",
            json={"decision": "accept"},
            headers=self.companion_headers,
            name="/api/v1/bookings/{id}/respond [contested]",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: lost the race or already accepted
            else:
                resp.failure(f"Unexpected: {resp.status_code}")
        self.booking_id = None


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: set REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def dashboard_cached(self):
        """Hammer the cached endpoint."""
        self.client.get("/api/v1/analytics/dashboard", name="/api/v1/analytics/dashboard [cached]")

    @tag("throughput", "read")
    @task(3)
    def chat_access(self):
        """Poll chat reachability."""
        if BOOKING_IDS:
            booking_id, actor_id = random.choice(BOOKING_IDS)
            self.client.get(
                f"/api/v1/chats/{booking_id}",
                headers={"X-Actor-Id": actor_id},
                name="/api/v1/chats/{booking_id}",
            )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = {"X-Actor-Id": random_actor("user")}

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_booking(self):
        with self.client.post(
            "/api/v1/bookings/does-not-exist/respond",
            json={"decision": "accept"},
            headers=self.headers,
            name="/api/v1/bookings/{id}/respond [missing]",
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def zero_duration(self):
        payload = booking_payload(random_actor("companion"), future_date())
        payload["duration_hours"] = 0
        with self.client.post("/api/v1/bookings/", json=payload, headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def huge_duration(self):
        payload = booking_payload(random_actor("companion"), future_date())
        payload["duration_hours"] = 999
        with self.client.post("/api/v1/bookings/", json=payload, headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def past_slot(self):
        payload = booking_payload(random_actor("companion"), "2020-01-01")
        with self.client.post("/api/v1/bookings/", json=payload, headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/bookings/", data="not json at all", headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_actor(self):
        payload = booking_payload(random_actor("companion"), future_date())
        with self.client.post("/api/v1/bookings/", json=payload, catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Each user pairs with a private companion so requests mostly succeed:
      - Browsing own bookings and notifications
      - Requesting bookings and having them accepted
      - Running the payment flow
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.user_id = random_actor("user")
        self.companion_id = random_actor("companion")
        self.headers = {"X-Actor-Id": self.user_id}
        self.companion_headers = {"X-Actor-Id": self.companion_id}
        self.accepted = []

    @task(30)
    def list_bookings(self):
        self.client.get("/api/v1/bookings/", headers=self.headers)

    @task(10)
    def list_notifications(self):
        self.client.get("/api/v1/notifications/", headers=self.companion_headers)

    @task(10)
    def request_and_accept(self):
        start = f"{random.randint(0, 21):02d}:00:00"
        resp = self.client.post(
            "/api/v1/bookings/",
            json=booking_payload(self.companion_id, future_date(), start),
            headers=self.headers,
        )
        if resp.status_code != 201:
            return
        booking_id = resp.json()["id"]
        resp = self.client.post(
            f"/api/v1/bookings/{booking_id}/respond",
            json={"decision": "accept"},
            headers=self.companion_headers,
            name="/api/v1/bookings/{id}/respond",
        )
        if resp.status_code == 200:
            self.accepted.append(booking_id)
            BOOKING_IDS.append((booking_id, self.user_id))

    @task(3)
    def settle_payment(self):
        if not self.accepted:
            return
        booking_id = self.accepted.pop()
        self.client.post(
            f"/api/v1/bookings/{booking_id}/payment/request",
            headers=self.companion_headers,
            name="/api/v1/bookings/{id}/payment/request",
        )
        self.client.post(
            f"/api/v1/bookings/{booking_id}/payment/paid",
            headers=self.headers,
            name="/api/v1/bookings/{id}/payment/paid",
        )
        self.client.post(
            f"/api/v1/bookings/{booking_id}/payment/confirm",
            headers=self.companion_headers,
            name="/api/v1/bookings/{id}/payment/confirm",
        )
