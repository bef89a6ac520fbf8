# This project was developed with assistance from AI tools.
"""Notification event schema."""

import uuid

from investor_db.enums import NotificationAudience
from pydantic import BaseModel, ConfigDict


class NotificationEvent(BaseModel):
    """Advisory alert describing one applied transition. Never persisted here."""

    model_config = ConfigDict(frozen=True)

    notification_type: str
    message: str
    application_id: uuid.UUID
    audience: NotificationAudience

    def to_payload(self) -> dict[str, str]:
        """Body POSTed to the notification endpoint."""
        return {
            "applicationId": str(self.application_id),
            "notificationType": self.notification_type,
            "message": self.message,
        }
