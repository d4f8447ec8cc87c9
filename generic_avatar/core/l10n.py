"""
Переводы сообщений, которые видит клиент.

Ключом служит исходная английская строка; если перевода нет, возвращается сам ключ.
"""
from typing import Optional

CATALOGS: dict[str, dict[str, str]] = {
    "ru": {
        "No file provided": "Файл не передан",
        "Invalid file provided": "Передан недопустимый файл",
        "File is too big": "Файл слишком большой",
        "Crop is not square": "Обрезка не квадратная",
        "An error occurred. Please contact your admin.": "Произошла ошибка. Обратитесь к администратору.",
    },
    "de": {
        "No file provided": "Keine Datei bereitgestellt",
        "Invalid file provided": "Ungültige Datei bereitgestellt",
        "File is too big": "Datei ist zu groß",
        "Crop is not square": "Zuschnitt ist nicht quadratisch",
        "An error occurred. Please contact your admin.": "Es ist ein Fehler aufgetreten. Bitte kontaktiere Deine Administration.",
    },
}


class Translator:
    def __init__(self, language: str = "en", catalogs: Optional[dict[str, dict[str, str]]] = None):
        self.language = language
        self.catalogs = CATALOGS if catalogs is None else catalogs

    def t(self, key: str) -> str:
        return self.catalogs.get(self.language, {}).get(key, key)
