import pytest

from docparser.utils.text import (
    generate_node_id,
    hash_url,
    is_private_host,
    is_valid_url,
    normalize_host,
    sanitize_text,
    truncate_description,
)


class TestGenerateNodeId:
    def test_slugifies_label_with_type_prefix(self):
        assert generate_node_id("Getting Started!", "feature") == "feature-getting-started"

    def test_collapses_whitespace_and_dashes(self):
        assert generate_node_id("  API -- Reference  ", "product") == "product-api-reference"

    def test_is_deterministic(self):
        assert generate_node_id("Lambda", "product") == generate_node_id("Lambda", "product")

    @pytest.mark.parametrize("label, node_type", [("", "feature"), ("Label", "")])
    def test_rejects_empty_input(self, label, node_type):
        with pytest.raises(ValueError):
            generate_node_id(label, node_type)


class TestSanitizeText:
    def test_decodes_entities_and_collapses_whitespace(self):
        assert sanitize_text("Tom &amp; Jerry\n\t  &lt;3") == "Tom & Jerry <3"

    def test_strips_control_characters(self):
        assert sanitize_text("Hel\x00lo\x1f World") == "Hello World"

    def test_non_text_becomes_empty(self):
        assert sanitize_text(None) == ""
        assert sanitize_text("") == ""


class TestTruncateDescription:
    def test_short_text_is_untouched(self):
        assert truncate_description("Short text", 200) == "Short text"

    def test_breaks_at_word_boundary_near_the_limit(self):
        text = "word " * 60
        result = truncate_description(text, 200)

        assert result.endswith("word...")
        assert len(result) <= 203

    def test_hard_cut_when_no_late_word_boundary(self):
        result = truncate_description("a" * 250, 200)
        assert result == "a" * 200 + "..."

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            truncate_description("anything", 0)

    def test_empty_text(self):
        assert truncate_description("", 10) == ""


class TestIsValidUrl:
    @pytest.mark.parametrize("url", [
        "https://docs.example.com",
        "https://example.com/docs/getting-started",
        "https://172.32.0.1/docs",
    ])
    def test_accepts_public_https(self, url):
        assert is_valid_url(url)

    @pytest.mark.parametrize("url", [
        "",
        "not a url",
        "http://docs.example.com",
        "ftp://docs.example.com",
        "https://localhost/docs",
        "https://127.0.0.1",
        "https://0.0.0.0",
        "https://[::1]/",
        "https://10.0.0.1",
        "https://192.168.1.20",
        "https://172.16.0.1",
        "https://172.25.3.4",
        "https://172.31.255.255",
    ])
    def test_rejects_insecure_or_private(self, url):
        assert not is_valid_url(url)

    def test_172_2_prefix_also_blocks_public_hosts(self):
        # 172.2.x.x and 172.200.x.x are public but share the blocked prefix
        assert not is_valid_url("https://172.2.1.1")
        assert not is_valid_url("https://172.200.1.1")

    @pytest.mark.parametrize("url", [
        "https://127.1/docs",
        "https://2130706433/",
        "https://0x7f000001/",
        "https://0177.0.0.1/",
        "https://3232235777/",
        "https://0xa.1/",
        "https://127.0.0.1./",
        "https://[::ffff:127.0.0.1]/",
        "https://169.254.169.254/latest/meta-data",
        "https://999.1.1.1/",
    ])
    def test_rejects_numeric_spellings_of_private_hosts(self, url):
        assert not is_valid_url(url)


class TestNormalizeHost:
    @pytest.mark.parametrize("host, expected", [
        ("127.1", "127.0.0.1"),
        ("2130706433", "127.0.0.1"),
        ("0x7f000001", "127.0.0.1"),
        ("0177.0.0.1", "127.0.0.1"),
        ("3232235777", "192.168.1.1"),
        ("Docs.Example.COM", "docs.example.com"),
        ("[0:0:0:0:0:0:0:1]", "::1"),
    ])
    def test_canonical_forms(self, host, expected):
        assert normalize_host(host) == expected

    def test_names_ending_in_letters_are_not_numbers(self):
        assert normalize_host("cafe.deadbeef") == "cafe.deadbeef"

    def test_invalid_numeric_host(self):
        assert normalize_host("1.2.3.4.5") is None

    def test_private_host_checks(self):
        assert is_private_host("127.0.0.1")
        assert is_private_host("10.20.30.40")
        assert is_private_host("::1")
        assert not is_private_host("172.32.0.1")
        assert not is_private_host("docs.example.com")


class TestHashUrl:
    def test_known_value(self):
        # 5381 * 33 + ord("a")
        assert hash_url("a") == "2b606"

    def test_is_stable_hex(self):
        value = hash_url("https://docs.aws.amazon.com/lambda/")
        assert value == hash_url("https://docs.aws.amazon.com/lambda/")
        int(value, 16)

    def test_long_urls_stay_within_32_bits(self):
        value = hash_url("https://docs.example.com/" + "x" * 500)
        assert int(value, 16) <= 2 ** 31

    def test_different_urls_differ(self):
        assert hash_url("https://a.com/docs") != hash_url("https://b.com/docs")

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            hash_url("")
