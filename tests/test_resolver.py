# File: tests/test_resolver.py
from pathlib import Path

import pytest
from nrtk_sync.server.resolver import DENYLIST, Outcome, clean_path, resolve

SYNC = "/.nrtk-sync"


@pytest.fixture()
def root(tmp_path: Path) -> Path:
    """Served tree with stories, a 404 page and a nested file."""
    www = tmp_path / "www"
    (www / "assets").mkdir(parents=True)
    (www / "index.html").write_text("home", encoding="utf-8")
    (www / "news.html").write_text("news", encoding="utf-8")
    (www / "news").write_text("raw news", encoding="utf-8")
    (www / "404.html").write_text("missing", encoding="utf-8")
    (www / "assets" / "app.css").write_text("body{}", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")
    return www


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("/", ""),
        ("/a/b", "a/b"),
        ("/a/./b", "a/b"),
        ("/a/../b", "b"),
        ("/../../etc/passwd", "etc/passwd"),
        ("/..", ""),
        ("//a//b/", "a/b"),
    ],
)
def test_clean_path(raw, expected):
    assert clean_path(raw) == expected


@pytest.mark.parametrize("path", sorted(DENYLIST))
def test_denylist(root, path):
    res = resolve(path, root, ".html", SYNC)
    assert res.outcome is Outcome.DENIED
    assert res.status == 404
    assert res.path is None


def test_trigger(root):
    assert resolve(SYNC, root, ".html", SYNC).outcome is Outcome.TRIGGER
    assert resolve(SYNC + "/", root, ".html", SYNC).outcome is Outcome.NOT_FOUND


def test_root_is_index(root):
    res = resolve("/", root, ".html", SYNC)
    assert res.outcome is Outcome.FILE
    assert res.path == root / "index.html"


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/news", "news"),  # exact file wins over the suffixed one
        ("/news.html", "news.html"),
        ("/index", "index.html"),
        ("/assets/app.css", "assets/app.css"),
        ("/assets/../news.html", "news.html"),
    ],
)
def test_fallback_order(root, path, expected):
    res = resolve(path, root, ".html", SYNC)
    assert res.outcome is Outcome.FILE
    assert res.path == root / expected
    assert res.status == 200


@pytest.mark.parametrize("path", ["/missing", "/assets", "/assets/", "/index.htm"])
def test_not_found(root, path):
    res = resolve(path, root, ".html", SYNC)
    assert res.outcome is Outcome.NOT_FOUND
    assert res.path == root / "404.html"
    assert res.status == 404


def test_empty_suffix_skips_suffixed_fallback(root):
    res = resolve("/index", root, "", SYNC)
    assert res.outcome is Outcome.NOT_FOUND
    assert res.path == root / "404"


@pytest.mark.parametrize(
    "path",
    ["/../secret.txt", "/../../secret.txt", "/a/../../secret.txt", "/%2e%2e/secret.txt", "/..\x00"],
)
def test_never_escapes_root(root, path):
    res = resolve(path, root, ".html", SYNC)
    if res.path is not None:
        resolved = res.path.resolve()
        assert resolved == root.resolve() or root.resolve() in resolved.parents
    assert not (res.outcome is Outcome.FILE and res.path.name == "secret.txt")
