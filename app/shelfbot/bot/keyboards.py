from telebot.types import InlineKeyboardMarkup, InlineKeyboardButton


def choices_keyboard(choices: tuple[str, ...]) -> InlineKeyboardMarkup | None:
    """Inline-кнопки быстрого ответа в один ряд; callback_data совпадает с подписью."""
    if not choices:
        return None
    markup = InlineKeyboardMarkup(row_width=len(choices))
    markup.add(*(InlineKeyboardButton(choice, callback_data=choice) for choice in choices))
    return markup
