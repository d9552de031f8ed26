from pathlib import Path

import app


class Upload:
    def __init__(self, name, data):
        self.name = name
        self.data = data

    def getvalue(self):
        return self.data


def test_same_upload_is_saved_once():
    app._save_bytes.clear()
    logo = Upload("logo.png", b"\x89PNG fake logo")

    first = app._save_upload(logo, ".png")
    again = app._save_upload(Upload("logo.png", b"\x89PNG fake logo"), ".png")
    other = app._save_upload(Upload("logo.png", b"\x89PNG other logo"), ".png")
    try:
        assert first == again
        assert other != first
        assert Path(first).suffix == ".png"
        assert Path(first).read_bytes() == b"\x89PNG fake logo"
    finally:
        Path(first).unlink()
        Path(other).unlink()
        app._save_bytes.clear()


def test_slugify_name():
    assert app._slugify_name("  My Stock: AAPL ") == "My_Stock_AAPL"
    assert app._slugify_name("") == "video"
