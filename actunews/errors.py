"""
Exceptions raised by the entity lifecycle collaborators.

``HashingError`` is fatal to a create operation: it escapes the pre-create
phase before anything reaches the database.  ``DeliveryError`` only ever
surfaces inside the mail outbox worker, which logs it and moves on.
"""


class ActunewsError(Exception):
    """Base class for application-level errors."""


class HashingError(ActunewsError):
    """The credential hasher rejected its input."""


class DeliveryError(ActunewsError):
    """A notifier could not hand a message to the mail transport."""


class NotFoundError(ActunewsError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id
