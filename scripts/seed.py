"""Populate a development database with Actunews categories, users, tags and posts.

Every entity is created through the lifecycle pipeline, so categories and
posts get their aliases and users get hashed passwords exactly as they
would through the API.  Welcome mails go to the console notifier unless
``--send-mail`` is given.
"""
import argparse
import asyncio
import random
import time

from actunews.config import settings
from actunews.database import Base, async_session, engine
from actunews.hooks import build_lifecycle
from actunews.mailer import ConsoleNotifier, build_notifier
from actunews.models import Category, Comment, Post, Tag, User
from actunews.outbox import MailOutbox
from actunews.security import BcryptHasher

CATEGORIES = ["Politique", "Économie", "Culture", "Sport", "Sciences & Tech", "International"]
TAGS = ["élections", "bourse", "cinéma", "football", "climat", "europe", "santé", "numérique"]
HEADLINES = [
    "Réforme des retraites : ce qui change en {year}",
    "Le CAC 40 termine la semaine en hausse",
    "Festival de Cannes : le palmarès complet",
    "Ligue 1 : résultats et classement",
    "Climat : un été record en Europe",
    "Intelligence artificielle : les nouvelles règles européennes",
]


async def seed(num_users: int, num_posts: int, send_mail: bool) -> None:
    notifier = build_notifier(settings) if send_mail else ConsoleNotifier(settings.MAIL_FROM)
    mail_outbox = MailOutbox(notifier)
    lifecycle = build_lifecycle(BcryptHasher(rounds=settings.BCRYPT_ROUNDS), mail_outbox)

    print(f"Seeding: {len(CATEGORIES)} categories, {num_users} users, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    await mail_outbox.start()
    try:
        async with async_session() as session:
            categories = [
                await lifecycle.create(session, Category(name=name)) for name in CATEGORIES
            ]
            for category in categories:
                print(f"  Category {category.name!r} -> {category.alias}")

            tags = [await lifecycle.create(session, Tag(name=name)) for name in TAGS]

            users = []
            for i in range(num_users):
                user = User(
                    email=f"redacteur{i:02d}@actu.news",
                    firstname=f"Rédacteur{i}",
                    lastname="Actunews",
                    password=f"motdepasse-{i:02d}",
                )
                users.append(await lifecycle.create(session, user))
            print(f"  Created {len(users)} users")

            for i in range(num_posts):
                headline = random.choice(HEADLINES).format(year=2026)
                post = Post(
                    title=f"{headline} ({i})",
                    content=f"Contenu de l'article {i}. " * 20,
                    image=f"https://picsum.photos/seed/{i}/800/450",
                    user_id=random.choice(users).id,
                    category_id=random.choice(categories).id,
                )
                post.tags.extend(random.sample(tags, k=random.randint(1, 3)))
                await lifecycle.create(session, post)

                for _ in range(random.randint(0, 3)):
                    await lifecycle.create(
                        session,
                        Comment(
                            content="Merci pour cet article !",
                            post_id=post.id,
                            user_id=random.choice(users).id,
                        ),
                    )
            print(f"  Created {num_posts} posts")
    finally:
        await mail_outbox.stop(drain=True)
        await engine.dispose()

    print(f"\nSeeding complete in {time.perf_counter() - start:.1f}s")
    print(f"  Mail: {mail_outbox.stats}")


def main():
    parser = argparse.ArgumentParser(description="Seed the Actunews database")
    parser.add_argument("--users", type=int, default=5, help="Number of users to create")
    parser.add_argument("--posts", type=int, default=50, help="Number of posts to create")
    parser.add_argument(
        "--send-mail",
        action="store_true",
        help="Deliver welcome mails with the configured MAIL_BACKEND instead of logging them",
    )
    args = parser.parse_args()
    asyncio.run(seed(args.users, args.posts, args.send_mail))


if __name__ == "__main__":
    main()
