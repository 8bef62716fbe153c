"""Shared constants and assertions for the test suite"""
from datetime import datetime

BLOB_BASE = "https://blobs.test"
FIXED_NOW = datetime(2024, 3, 15, 10, 30, 0)


def value_after(texts, label):
    """Value drawn right after a field label"""
    index = texts.index(f"{label}:")
    return texts[index + 1]


def all_texts(document):
    return [t for page in document.pages for t in page.texts]
