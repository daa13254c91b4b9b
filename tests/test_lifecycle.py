"""
Entity lifecycle pipeline tests — handler registry, phase semantics and the
create operation, exercised against the real models and the test database.
"""
import logging

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.config import settings
from actunews.errors import HashingError
from actunews.hooks import build_lifecycle, derive_category_alias, derive_post_alias
from actunews.lifecycle import EntityLifecycle, Phase
from actunews.models import Category, Comment, Post, Tag, User
from actunews.outbox import MailOutbox
from actunews.security import BcryptHasher


class Widget:
    pass


class Gadget(Widget):
    pass


class RejectingHasher:
    def __init__(self) -> None:
        self.calls = 0

    def hash(self, identity, plaintext: str) -> str:
        self.calls += 1
        raise HashingError("rejected")

    def verify(self, plaintext: str, hashed: str) -> bool:
        return False


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def _user(email: str = "jeanne@actu.news", password: str = "p@ss") -> User:
    return User(email=email, firstname="Jeanne", lastname="Martin", password=password)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_handlers_run_in_registration_order():
    lifecycle = EntityLifecycle()
    calls = []

    async def first(widget):
        calls.append("first")

    async def second(widget):
        calls.append("second")

    lifecycle.register(Phase.PRE_CREATE, Widget, first)
    lifecycle.register(Phase.PRE_CREATE, Widget, second)

    await lifecycle.run_pre_create(Widget())
    assert calls == ["first", "second"]


@pytest.mark.asyncio
async def test_dispatch_is_keyed_by_exact_type():
    lifecycle = EntityLifecycle()
    seen = []

    @lifecycle.on(Phase.PRE_CREATE, Widget)
    async def on_widget(widget):
        seen.append(type(widget))

    await lifecycle.run_pre_create(Gadget())
    await lifecycle.run_pre_create(object())
    assert seen == []

    await lifecycle.run_pre_create(Widget())
    assert seen == [Widget]


def test_phases_are_independent():
    lifecycle = EntityLifecycle()

    async def handler(widget):
        pass

    lifecycle.register(Phase.POST_CREATE, Widget, handler)
    assert lifecycle.handlers_for(Phase.PRE_CREATE, Widget) == ()
    assert lifecycle.handlers_for(Phase.POST_CREATE, Widget) == (handler,)


def test_actunews_handler_table(lifecycle):
    assert len(lifecycle.handlers_for(Phase.PRE_CREATE, User)) == 1
    assert lifecycle.handlers_for(Phase.PRE_CREATE, Post) == (derive_post_alias,)
    assert lifecycle.handlers_for(Phase.PRE_CREATE, Category) == (derive_category_alias,)
    assert len(lifecycle.handlers_for(Phase.POST_CREATE, User)) == 1
    for model in (Tag, Comment):
        assert lifecycle.handlers_for(Phase.PRE_CREATE, model) == ()
        assert lifecycle.handlers_for(Phase.POST_CREATE, model) == ()
    for model in (Post, Category):
        assert lifecycle.handlers_for(Phase.POST_CREATE, model) == ()


# ---------------------------------------------------------------------------
# Pre-create handlers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_pre_create_derives_post_alias(lifecycle):
    post = Post(title="Breaking News: Big Event", content="c", image="i.jpg")
    await lifecycle.run_pre_create(post)
    assert post.alias == "breaking-news-big-event"


@pytest.mark.asyncio
async def test_pre_create_derives_category_alias(lifecycle):
    category = Category(name="Politique")
    await lifecycle.run_pre_create(category)
    assert category.alias == "politique"


@pytest.mark.asyncio
async def test_pre_create_overwrites_caller_supplied_alias(lifecycle):
    post = Post(title="Hello World", alias="custom-alias", content="c", image="i.jpg")
    await lifecycle.run_pre_create(post)
    assert post.alias == "hello-world"


@pytest.mark.asyncio
async def test_pre_create_hashes_user_password(lifecycle):
    user = _user(password="p@ss")
    await lifecycle.run_pre_create(user)
    assert user.password != "p@ss"
    assert BcryptHasher(rounds=4).verify("p@ss", user.password)


@pytest.mark.asyncio
async def test_pre_create_leaves_unrelated_entities_alone(lifecycle):
    tag = Tag(name="Élections 2026")
    await lifecycle.run_pre_create(tag)
    assert tag.name == "Élections 2026"


# ---------------------------------------------------------------------------
# create(): persistence and failure semantics
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_user_persists_hash_and_queues_welcome_mail(
    db_session: AsyncSession, lifecycle, mail_outbox, mail_notifier
):
    user = await lifecycle.create(db_session, _user())
    assert user.id is not None

    stored = (await db_session.execute(select(User.password).where(User.id == user.id))).scalar_one()
    assert stored != "p@ss"

    await mail_outbox.join()
    assert mail_notifier.sent == [
        ("jeanne@actu.news", settings.WELCOME_SUBJECT, settings.WELCOME_BODY_HTML)
    ]


@pytest.mark.asyncio
async def test_hashing_failure_aborts_create(db_session: AsyncSession, mail_outbox, mail_notifier):
    hasher = RejectingHasher()
    lifecycle = build_lifecycle(hasher, mail_outbox)

    with pytest.raises(HashingError):
        await lifecycle.create(db_session, _user())

    assert hasher.calls == 1
    assert await _count(db_session, User) == 0
    await mail_outbox.join()
    assert mail_notifier.sent == []


@pytest.mark.asyncio
async def test_pre_create_exception_prevents_insert(db_session: AsyncSession):
    lifecycle = EntityLifecycle()

    async def explode(tag):
        raise ValueError("nope")

    lifecycle.register(Phase.PRE_CREATE, Tag, explode)

    with pytest.raises(ValueError):
        await lifecycle.create(db_session, Tag(name="never"))
    assert await _count(db_session, Tag) == 0


@pytest.mark.asyncio
async def test_post_create_failure_keeps_row(db_session: AsyncSession, caplog):
    lifecycle = EntityLifecycle()

    async def explode(tag):
        raise RuntimeError("side effect failed")

    lifecycle.register(Phase.POST_CREATE, Tag, explode)

    with caplog.at_level(logging.ERROR, logger="actunews.lifecycle"):
        tag = await lifecycle.create(db_session, Tag(name="kept"))

    assert tag.id is not None
    assert await _count(db_session, Tag) == 1
    assert "Post-create handler explode failed for Tag" in caplog.text


@pytest.mark.asyncio
async def test_post_create_handlers_all_run_despite_failure(db_session: AsyncSession):
    lifecycle = EntityLifecycle()
    calls = []

    async def explode(tag):
        calls.append("explode")
        raise RuntimeError("boom")

    async def record(tag):
        calls.append("record")

    lifecycle.register(Phase.POST_CREATE, Tag, explode)
    lifecycle.register(Phase.POST_CREATE, Tag, record)

    await lifecycle.create(db_session, Tag(name="both"))
    assert calls == ["explode", "record"]


@pytest.mark.asyncio
async def test_user_created_when_outbox_is_down(db_session: AsyncSession, mail_notifier):
    stopped_outbox = MailOutbox(mail_notifier)
    lifecycle = build_lifecycle(BcryptHasher(rounds=4), stopped_outbox)

    user = await lifecycle.create(db_session, _user())

    assert user.id is not None
    assert await _count(db_session, User) == 1
    assert mail_notifier.sent == []


@pytest.mark.asyncio
async def test_create_category_then_rename_keeps_alias(db_session: AsyncSession, lifecycle):
    category = await lifecycle.create(db_session, Category(name="Politique"))
    assert category.alias == "politique"

    category.name = "Politique nationale"
    await db_session.flush()
    await db_session.refresh(category)
    assert category.alias == "politique"
