from sqlalchemy import select
from sqlalchemy.orm import Session

from shelfbot.dialogs.results import Book, DialogResult, Movie, Quote
from shelfbot.logging import logger
from shelfbot.storage.models import BookEntry, MovieEntry, QuoteEntry


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def add_result(self, user_telegram_id: int, result: DialogResult) -> None:
        """Добавить итог диалога в коллекцию пользователя."""
        if isinstance(result, Book):
            entry = BookEntry(
                user_telegram_id=user_telegram_id,
                title=result.title,
                author=result.author,
                rating=result.rating,
            )
        elif isinstance(result, Movie):
            entry = MovieEntry(
                user_telegram_id=user_telegram_id,
                title=result.title,
                year=result.year,
                rating=result.rating,
            )
        elif isinstance(result, Quote):
            entry = QuoteEntry(
                user_telegram_id=user_telegram_id,
                text=result.text,
                title=result.title,
                author=result.author,
            )
        else:
            raise TypeError(f"Unsupported result: {result!r}")

        self.session.add(entry)
        self.session.commit()
        logger.info("%s stored: id=%d, user=%d", result.kind, entry.id, user_telegram_id)

    def list_books(self, user_telegram_id: int) -> list[Book]:
        stmt = select(BookEntry).where(BookEntry.user_telegram_id == user_telegram_id).order_by(BookEntry.id)
        return [
            Book(title=e.title, author=e.author, rating=e.rating)
            for e in self.session.execute(stmt).scalars()
        ]

    def list_movies(self, user_telegram_id: int) -> list[Movie]:
        stmt = select(MovieEntry).where(MovieEntry.user_telegram_id == user_telegram_id).order_by(MovieEntry.id)
        return [
            Movie(title=e.title, year=e.year, rating=e.rating)
            for e in self.session.execute(stmt).scalars()
        ]

    def list_quotes(self, user_telegram_id: int) -> list[Quote]:
        stmt = select(QuoteEntry).where(QuoteEntry.user_telegram_id == user_telegram_id).order_by(QuoteEntry.id)
        return [
            Quote(text=e.text, title=e.title, author=e.author)
            for e in self.session.execute(stmt).scalars()
        ]
