import logging

import httpx

from coursepath import config

logger = logging.getLogger("coursepath.activity")


async def post_activity_log(user_id: int, action: str, related_object_type: str, related_object_id: int) -> bool:
    """Send an activity log entry to the activity service. Failures are logged, not raised."""
    if not config.ACTIVITY_SERVICE_URL:
        return False

    log_payload = {
        "user_id": user_id,
        "action": action,
        "related_object_type": related_object_type,
        "related_object_id": related_object_id,
    }
    async with httpx.AsyncClient(timeout=5.0) as client:
        try:
            res = await client.post(f"{config.ACTIVITY_SERVICE_URL}/activity/logs", json=log_payload)
            res.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to post activity log: {e}")
            return False
    logger.info(f"Activity log created for user {user_id}: {action}")
    return True
