"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags lookup   # Known slugs, mixed case/whitespace
  locust -f locustfile.py --tags edge     # Unknown and blank slugs
  locust -f locustfile.py                 # All tests

Set EVENT_SLUGS to a comma-separated list of slugs that exist in the target
database, e.g. EVENT_SLUGS=pycon-2026,rust-meetup
"""

import os
import random
import string

from locust import HttpUser, between, tag, task

EVENT_SLUGS = [s.strip() for s in os.getenv("EVENT_SLUGS", "my-event").split(",") if s.strip()]


def vary_slug(slug):
    """Same slug with random casing and padding; must still resolve."""
    varied = "".join(c.upper() if random.random() < 0.5 else c for c in slug)
    return f"{' ' * random.randint(0, 2)}{varied}{' ' * random.randint(0, 2)}"


def random_slug():
    return "missing-" + "".join(random.choices(string.ascii_lowercase, k=10))


class EventLookupUser(HttpUser):
    """
    Steady lookups of existing events.

    Run: locust -f locustfile.py --tags lookup -u 200 -r 50 --run-time 60s
    Expect: every response 200, one MongoDB connection per worker process.
    """
    wait_time = between(0, 0.1)

    @tag("lookup")
    @task(5)
    def get_event(self):
        slug = random.choice(EVENT_SLUGS)
        self.client.get(f"/api/events/{slug}", name="/api/events/[slug]")

    @tag("lookup")
    @task(2)
    def get_event_varied(self):
        slug = vary_slug(random.choice(EVENT_SLUGS))
        with self.client.get(
            f"/api/events/{slug}", name="/api/events/[slug] (varied)", catch_response=True
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Normalised lookup failed: {resp.status_code}")

    @tag("edge")
    @task(1)
    def get_unknown_event(self):
        with self.client.get(
            f"/api/events/{random_slug()}", name="/api/events/[unknown]", catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task(1)
    def get_blank_slug(self):
        with self.client.get("/api/events/%20%20", name="/api/events/[blank]", catch_response=True) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")

    @tag("edge")
    @task(1)
    def health(self):
        self.client.get("/health")
