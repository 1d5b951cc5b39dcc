from framebus.bus.matching import OriginAllowList


def test_default_allow_list_accepts_any_origin():
    allow_list = OriginAllowList()
    assert list(allow_list) == ["*"]
    assert allow_list.matches("https://anything.example")
    assert allow_list.matches("chrome-extension://abcdef")


def test_concrete_origin_replaces_wildcard():
    allow_list = OriginAllowList()
    allow_list.add("http://a.example")

    assert list(allow_list) == ["http://a.example"]
    assert allow_list.matches("http://a.example")
    assert not allow_list.matches("http://b.example")


def test_wildcard_collapses_concrete_origins():
    allow_list = OriginAllowList([])
    allow_list.add("http://a.example")
    allow_list.add("*")
    assert list(allow_list) == ["*"]

    allow_list.add("http://b.example")
    assert list(allow_list) == ["http://b.example"]


def test_any_origin_containing_star_is_treated_as_wildcard():
    allow_list = OriginAllowList(["a.example"])
    allow_list.add("https://*.example")
    assert list(allow_list) == ["*"]


def test_duplicate_origin_is_added_once():
    allow_list = OriginAllowList([])
    allow_list.add("a.example")
    allow_list.add("a.example")
    assert len(allow_list) == 1


def test_concrete_origins_accept_both_schemes_case_insensitively():
    allow_list = OriginAllowList(["http://Ads.Example", "cdn.example:8443"])

    assert allow_list.matches("https://ads.example")
    assert allow_list.matches("HTTP://ADS.EXAMPLE")
    assert allow_list.matches("https://cdn.example:8443")
    assert not allow_list.matches("https://cdn.example")
    assert not allow_list.matches("ftp://ads.example")


def test_dots_in_origins_are_literal():
    allow_list = OriginAllowList(["ads.example"])
    assert not allow_list.matches("https://adsXexample")
    assert not allow_list.matches("https://evil.ads.example")
    assert not allow_list.matches("https://ads.example.evil")


def test_non_http_scheme_entries_match_literally():
    allow_list = OriginAllowList(["app://Bundle"])
    assert allow_list.matches("app://bundle")
    assert not allow_list.matches("https://bundle")


def test_empty_allow_list_accepts_nothing():
    allow_list = OriginAllowList([])
    assert not allow_list.matches("https://a.example")
    assert not allow_list.matches("null")


def test_remove_origin_recompiles_and_ignores_absent():
    allow_list = OriginAllowList(["a.example", "b.example"])

    assert allow_list.remove("a.example") is True
    assert not allow_list.matches("https://a.example")
    assert allow_list.matches("https://b.example")

    assert allow_list.remove("a.example") is False
    assert list(allow_list) == ["b.example"]


def test_removing_wildcard_leaves_empty_list():
    allow_list = OriginAllowList()
    allow_list.remove("*")
    assert len(allow_list) == 0
    assert not allow_list.matches("https://a.example")


def test_non_string_origin_never_matches():
    assert not OriginAllowList().matches(None)


def test_trailing_newline_does_not_satisfy_concrete_origin():
    allow_list = OriginAllowList(["ads.example"])
    assert not allow_list.matches("https://ads.example\n")
    assert not allow_list.matches("https://ads.example\n\n")
