"""
Entity lifecycle pipeline.

The persistence layer creates entities through ``EntityLifecycle.create``,
which runs registered handlers at two extension points:

``PRE_CREATE``
    Before the INSERT.  Handlers mutate the entity in place (derived
    aliases, hashed password).  Any exception aborts the create: the
    entity is never added to the session.
``POST_CREATE``
    After the COMMIT.  Handlers trigger side effects (welcome mail).  Each
    handler is isolated; a failure is logged and the committed row stays.

Handlers are registered per exact entity class in a dispatch table, so a
handler only ever receives the entity kind it was declared for and no
handler has to inspect types at runtime.  Updates do not go through the
pipeline.
"""
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

E = TypeVar("E")
Handler = Callable[[Any], Awaitable[None]]


class Phase(str, Enum):
    PRE_CREATE = "pre_create"
    POST_CREATE = "post_create"


class EntityLifecycle:
    def __init__(self) -> None:
        self._handlers: dict[Phase, dict[type, list[Handler]]] = {
            phase: defaultdict(list) for phase in Phase
        }

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, phase: Phase, entity_type: type[E], handler: Callable[[E], Awaitable[None]]) -> None:
        """Append *handler* to the ordered list run for *entity_type* at *phase*."""
        self._handlers[phase][entity_type].append(handler)

    def on(self, phase: Phase, entity_type: type):
        """Decorator form of ``register``."""
        def decorator(handler: Handler) -> Handler:
            self.register(phase, entity_type, handler)
            return handler
        return decorator

    def handlers_for(self, phase: Phase, entity_type: type) -> tuple[Handler, ...]:
        return tuple(self._handlers[phase].get(entity_type, ()))

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def run_pre_create(self, entity: Any) -> None:
        """Run every pre-create handler for *entity*; exceptions propagate."""
        for handler in self.handlers_for(Phase.PRE_CREATE, type(entity)):
            await handler(entity)

    async def run_post_create(self, entity: Any) -> None:
        """Run every post-create handler for *entity*, logging and swallowing failures."""
        for handler in self.handlers_for(Phase.POST_CREATE, type(entity)):
            try:
                await handler(entity)
            except Exception:
                logger.exception(
                    "Post-create handler %s failed for %s id=%s",
                    getattr(handler, "__name__", handler),
                    type(entity).__name__,
                    getattr(entity, "id", None),
                )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, db: AsyncSession, entity: E) -> E:
        """
        Persist *entity* as a new row and return it.

        The transaction is committed here so post-create handlers only see
        durable rows.  Database errors roll the session back and propagate
        (``IntegrityError`` for unique-constraint violations).
        """
        await self.run_pre_create(entity)

        db.add(entity)
        try:
            await db.flush()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.debug("Created %s id=%s", type(entity).__name__, getattr(entity, "id", None))

        await self.run_post_create(entity)
        return entity
