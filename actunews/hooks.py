"""
Lifecycle handlers for the Actunews entities and the wiring that registers
them.

Each handler is declared for exactly one entity class:

=============  ==========  ==========================================
Phase          Entity      Effect
=============  ==========  ==========================================
PRE_CREATE     User        ``password`` replaced by its bcrypt hash
PRE_CREATE     Post        ``alias = slugify(title)``
PRE_CREATE     Category    ``alias = slugify(name)``
POST_CREATE    User        welcome mail queued on the outbox
=============  ==========  ==========================================
"""
import asyncio

from actunews.config import Settings, settings
from actunews.lifecycle import EntityLifecycle, Phase
from actunews.mailer import MailMessage
from actunews.models import Category, Post, User
from actunews.outbox import MailOutbox, outbox
from actunews.security import BcryptHasher, CredentialHasher
from actunews.slug import slugify


def make_password_hook(hasher: CredentialHasher):
    async def hash_password(user: User) -> None:
        # bcrypt is CPU-bound; keep it off the event loop.
        user.password = await asyncio.to_thread(hasher.hash, user, user.password)

    return hash_password


async def derive_post_alias(post: Post) -> None:
    post.alias = slugify(post.title)


async def derive_category_alias(category: Category) -> None:
    category.alias = slugify(category.name)


def make_welcome_mail_hook(mail_outbox: MailOutbox, config: Settings = settings):
    async def send_welcome_mail(user: User) -> None:
        mail_outbox.enqueue(
            MailMessage(
                to=user.email,
                subject=config.WELCOME_SUBJECT,
                body_html=config.WELCOME_BODY_HTML,
            )
        )

    return send_welcome_mail


def build_lifecycle(
    hasher: CredentialHasher,
    mail_outbox: MailOutbox,
    config: Settings = settings,
) -> EntityLifecycle:
    """Return a pipeline with every Actunews handler registered."""
    lifecycle = EntityLifecycle()
    lifecycle.register(Phase.PRE_CREATE, User, make_password_hook(hasher))
    lifecycle.register(Phase.PRE_CREATE, Post, derive_post_alias)
    lifecycle.register(Phase.PRE_CREATE, Category, derive_category_alias)
    lifecycle.register(Phase.POST_CREATE, User, make_welcome_mail_hook(mail_outbox, config))
    return lifecycle


lifecycle = build_lifecycle(BcryptHasher(rounds=settings.BCRYPT_ROUNDS), outbox)
