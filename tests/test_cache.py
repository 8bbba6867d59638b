import pytest

from campaignkit.cache import CacheError, FileAssetCache, InMemoryAssetCache


def test_in_memory_cache_hit_and_miss():
    cache = InMemoryAssetCache({"campaignrules/assets/m.html": b"<p/>"})

    entry = cache.get("campaignrules/assets/m.html")
    assert entry is not None
    assert entry.data == b"<p/>"
    assert entry.key == "campaignrules/assets/m.html"
    assert cache.get("campaignrules/assets/other.html") is None
    assert "campaignrules/assets/m.html" in cache
    assert len(cache) == 1


def test_file_cache_maps_key_segments(tmp_path):
    cache = FileAssetCache(tmp_path)

    assert cache.path_for("campaignrules/assets/m.html") == tmp_path / "campaignrules" / "assets" / "m.html"
    assert cache.path_for("messages/m1/https://img/a.png") == (
        tmp_path / "messages" / "m1" / "https%3A" / "img" / "a.png"
    )


def test_file_cache_reads_bytes(tmp_path):
    target = tmp_path / "campaignrules" / "assets" / "m.html"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"<html>Hi</html>")
    cache = FileAssetCache(tmp_path)

    assert cache.get("campaignrules/assets/m.html").data == b"<html>Hi</html>"
    assert cache.get("campaignrules/assets/missing.html") is None
    # Directories are not entries.
    assert cache.get("campaignrules/assets") is None


def test_file_cache_rejects_escaping_keys(tmp_path):
    cache = FileAssetCache(tmp_path)

    with pytest.raises(CacheError):
        cache.get("campaignrules/../../etc/passwd")
    with pytest.raises(CacheError):
        cache.path_for("///")
