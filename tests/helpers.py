# tests/helpers.py
from types import SimpleNamespace

DIM = 1536


def vec(*weights):
    """1536-d vector whose leading components are ``weights``."""
    v = [0.0] * DIM
    for i, w in enumerate(weights):
        v[i] = w
    return v


def embedding_response(vector):
    return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


# Structurally broken PDF: the page's /MediaBox is a number, not an array.
DAMAGED_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
    b"2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj\n"
    b"3 0 obj << /Type /Page /Parent 2 0 R /MediaBox 7 >> endobj\n"
    b"trailer << /Root 1 0 R >>\n"
    b"%%EOF\n"
)
