"""Factories for test data generation.

Payloads use the camelCase wire names of the project catalog API, so they
can be fed to ``responses`` mocks and STOMP MESSAGE bodies as well as to
``Notification.model_validate``.
"""

import itertools
import json
import time

import jwt
from faker import Faker

from catalog_notifications.schemas import Notification

fake = Faker()

_ids = itertools.count(1000)

TEST_SIGNING_KEY = "catalog-notifications-test-signing-key"


def notification_payload(**overrides) -> dict:
    """Build a notification payload as the API sends it."""
    payload = {
        "id": next(_ids),
        "recipientUserId": 7,
        "message": fake.sentence(),
        "notificationType": "COMMENT",
        "projectId": fake.random_int(min=1, max=500),
        "commentId": None,
        "isRead": False,
        "createdAt": fake.date_time_this_year(tzinfo=None).isoformat(),
        "projectTitle": fake.catch_phrase(),
        "commentText": None,
    }
    payload.update(overrides)
    return payload


def make_notification(**overrides) -> Notification:
    """Build a validated Notification from a wire payload."""
    return Notification.model_validate(notification_payload(**overrides))


def notification_json(**overrides) -> str:
    """Build a notification payload serialized as a MESSAGE body."""
    return json.dumps(notification_payload(**overrides))


def make_token(expires_in: int = 3600, **claims) -> str:
    """Encode a signed JWT expiring ``expires_in`` seconds from now."""
    payload = {"sub": "7", "exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, TEST_SIGNING_KEY, algorithm="HS256")
