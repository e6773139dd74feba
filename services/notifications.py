import logging
from typing import Optional

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from models.User import User
from services.firebase import initialize_firebase_admin

logger = logging.getLogger(__name__)


def send_notification(
    fcm_token: Optional[str],
    title: str,
    body: str,
    data: Optional[dict] = None
) -> bool:
    """Send a push notification to one device. Never raises."""
    if not fcm_token or not initialize_firebase_admin():
        return False

    message = messaging.Message(
        notification=messaging.Notification(
            title=title,
            body=body,
        ),
        data=data or {},
        token=fcm_token,
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    badge=1,
                    sound="default",
                ),
            ),
        ),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                sound="default",
                channel_id="high_importance_channel",
            ),
        ),
    )

    try:
        response = messaging.send(message)
    except (firebase_exceptions.FirebaseError, ValueError) as exc:
        logger.warning("Push notification failed: %s", exc)
        return False
    logger.info("Push notification sent: %s", response)
    return True


def notify_follow_request(requester: User, requested: User, request_id: int) -> bool:
    return send_notification(
        fcm_token=requested.fcm_token,
        title="New follow request",
        body=f"{requester.username} wants to follow you",
        data={
            "type": "follow_request",
            "request_id": str(request_id),
            "requester_id": str(requester.id),
        },
    )


def notify_follow_accepted(requester: User, requested: User) -> bool:
    return send_notification(
        fcm_token=requester.fcm_token,
        title="Follow request accepted",
        body=f"{requested.username} accepted your follow request",
        data={
            "type": "follow_accepted",
            "user_id": str(requested.id),
        },
    )
