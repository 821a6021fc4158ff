import pytest

from blog_search.content import PostRepository
from blog_search.search.errors import ContentUnavailableError

from conftest import REACT_SLUG, RUST_SLUG, TS_SLUG, write_post


def test_list_document_ids_sorted(posts_dir):
    write_post(posts_dir, "aaa-first", "---\ntitle: A\n---\nbody")

    ids = PostRepository(posts_dir).list_document_ids()

    assert ids == ["aaa-first", REACT_SLUG, RUST_SLUG, TS_SLUG]


def test_only_mdx_files_are_posts(posts_dir):
    (posts_dir / "notes.md").write_text("not a post")
    (posts_dir / "drafts.mdx").mkdir()

    assert PostRepository(posts_dir).list_document_ids() == [REACT_SLUG, RUST_SLUG, TS_SLUG]


def test_read_document(posts_dir):
    source = PostRepository(posts_dir).read_document(RUST_SLUG)
    assert source.startswith("---")
    assert "Borrowing" in source


def test_read_missing_document(posts_dir):
    assert PostRepository(posts_dir).read_document("no-such-post") is None


@pytest.mark.parametrize("slug", ["", "..", "../secrets", "a/b", "a\\b"])
def test_read_rejects_path_like_slugs(posts_dir, slug):
    assert PostRepository(posts_dir).read_document(slug) is None


def test_missing_directory_raises(tmp_path):
    with pytest.raises(ContentUnavailableError):
        PostRepository(tmp_path / "missing").list_document_ids()
