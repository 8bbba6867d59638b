import structlog
from structlog.testing import capture_logs

from campaignkit.cache import FileAssetCache, InMemoryAssetCache
from campaignkit.config import MessagingSettings
from campaignkit.messages.payload import AssetGroup
from campaignkit.messages.resolver import AssetPolicy, AssetResolver


def _resolver(entries=None, cache=None):
    settings = MessagingSettings()
    return AssetResolver(
        cache if cache is not None else InMemoryAssetCache(entries),
        settings,
        structlog.get_logger("test"),
    )


def test_policy_classifies_remote_and_local():
    policy = AssetPolicy(["png", "JPG"])

    assert policy.is_remote_asset("https://img/a.png")
    assert policy.is_remote_asset("http://img/photo.JPG?v=2")
    assert not policy.is_remote_asset("https://img/page.html")
    assert not policy.is_remote_asset("a.png")
    assert not policy.is_remote_asset("ftp://img/a.png")

    assert policy.is_local_asset("a.png")
    assert policy.is_local_asset("images/a.png")
    assert policy.is_local_asset("file:///bundle/a.png")
    assert not policy.is_local_asset("https://img/a.png")
    assert not policy.is_local_asset("readme")
    assert not policy.is_local_asset("http://[broken/a.png")


def test_remote_hit_wins_over_local():
    resolver = _resolver({"messages/m1/https://cdn/a.png": b"file:///cache/a.png"})
    group = AssetGroup(items=("https://img/a.png", "https://cdn/a.png", "a.png"))

    resolution = resolver.resolve(group, "m1")

    assert resolution is not None
    assert resolution.source == "remote"
    assert resolution.value == "file:///cache/a.png"
    assert resolution.token == "https://img/a.png"
    assert resolution.candidate == "https://cdn/a.png"


def test_token_itself_is_a_remote_candidate():
    resolver = _resolver(
        {
            "messages/m1/https://img/a.png": b"cached-token",
            "messages/m1/https://cdn/a.png": b"cached-candidate",
        }
    )
    group = AssetGroup(items=("https://img/a.png", "https://cdn/a.png"))

    assert resolver.resolve(group, "m1").value == "cached-token"


def test_remote_lookup_is_scoped_to_message():
    resolver = _resolver({"messages/other/https://img/a.png": b"elsewhere"})
    group = AssetGroup(items=("https://img/a.png",))

    assert resolver.resolve(group, "m1") is None


def test_local_fallback_used_verbatim():
    resolver = _resolver()
    group = AssetGroup(items=("https://img/a.png", "https://cdn/a.png", "bundled_a.png"))

    resolution = resolver.resolve(group, "m1")

    assert resolution is not None
    assert resolution.source == "local"
    assert resolution.value == "bundled_a.png"


def test_unresolvable_group_returns_none():
    resolver = _resolver()
    group = AssetGroup(items=("not a url", "::::", "https://img/page.html"))

    with capture_logs() as logs:
        assert resolver.resolve(group, "m1") is None

    assert any(entry["event"] == "asset.unresolved" for entry in logs)


def test_invalid_utf8_remote_blob_is_replaced():
    resolver = _resolver({"messages/m1/https://img/a.png": b"cache\xff"})
    group = AssetGroup(items=("https://img/a.png",))

    assert resolver.resolve(group, "m1").value == "cache\ufffd"


def test_resolves_against_file_cache(tmp_path):
    cache = FileAssetCache(tmp_path)
    path = cache.path_for("messages/m1/https://img/a.png")
    path.parent.mkdir(parents=True)
    path.write_bytes(b"file:///cache/a.png")

    resolution = _resolver(cache=cache).resolve(AssetGroup(items=("https://img/a.png",)), "m1")

    assert resolution.value == "file:///cache/a.png"
