"""Тексты, которые видит пользователь."""

HELP = (
    "Use /add_book, /add_movie or /add_quote to add a new item. "
    "Use /books, /movies or /quotes to list your items."
)
UNKNOWN = "Unknown command. Send /help to see what I can do."

DIALOG_RESET = "Dialog reset"
NO_ACTIVE_DIALOG = "No active dialog"
ALREADY_IN_DIALOG = "You are already in a dialog. Send /reset to cancel it."

BOOKS_HEADER = "Your books:"
BOOK_LINE = "{title} by {author} (rating: {rating})"
NO_BOOKS = "You have no books"

MOVIES_HEADER = "Your movies:"
MOVIE_LINE = "{title} ({year}) (rating: {rating})"
NO_MOVIES = "You have no movies"

QUOTES_HEADER = "Your quotes:"
QUOTE_LINE = '"{text}" from {title} by {author}'
NO_QUOTES = "You have no quotes"
