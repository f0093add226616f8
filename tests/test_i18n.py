import json
import re
from pathlib import Path

import pytest

from bootimagetool import main
from bootimagetool.i18n import get_available_languages, get_string

BASE = Path(__file__).parent.parent
SRC = BASE / "bootimagetool"
LANG = SRC / "lang"


def get_src_keys():
    keys = set()
    pat = re.compile(r'get_string\s*\(\s*["\']([^"\']+)["\']\s*\)')
    for f in SRC.rglob("*.py"):
        keys.update(pat.findall(f.read_text(encoding="utf-8")))
    return keys


def load_langs():
    d = {}
    for f in LANG.glob("*.json"):
        try:
            with open(f, "r", encoding="utf-8") as fp:
                d[f.name] = set(json.load(fp).keys())
        except ValueError:
            pytest.fail(f"Bad JSON {f.name}")
    return d


class TestI18n:
    @pytest.fixture(scope="class")
    def src_keys(self):
        return get_src_keys()

    @pytest.fixture(scope="class")
    def lang_map(self):
        return load_langs()

    def test_source_uses_strings(self, src_keys):
        assert "err_invalid_boot" in src_keys

    def test_missing_keys(self, src_keys, lang_map):
        assert lang_map
        for n, k in lang_map.items():
            missing = src_keys - k
            assert not missing, f"Missing in {n}: {missing}"

    def test_parity(self, lang_map):
        base_k = lang_map["en.json"]
        for n, k in lang_map.items():
            diff = base_k - k
            assert not diff, f"{n} missing keys from en.json: {diff}"

    def test_english_listed_first(self):
        assert get_available_languages()[0] == ("en", "English")

    def test_cli_accepts_only_shipped_languages(self):
        assert main.build_parser().parse_args(["--lang", "en", "status"]).lang == "en"
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["--lang", "xx", "status"])

    def test_unknown_key_is_marked(self):
        assert "no_such_key" in get_string("no_such_key")
