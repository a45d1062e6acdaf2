import re

import pytest

from cnysa.config.options import CnysaOptions, canonicalize_options, load_default_options
from cnysa.errors import InvalidOptionsError


class TestCanonicalizeOptions:
    """Validation and normalization of options."""

    def test_defaults(self):
        options = canonicalize_options()
        assert options.padding == 1
        assert options.format == "default"
        assert options.color is True
        assert options.ignore_types is None
        assert options.roots is None
        assert options.width >= 1

    def test_patterns_compiled(self):
        options = canonicalize_options({"ignoreTypes": "^Timer", "highlight_types": "Request"})
        assert isinstance(options.ignore_types, re.Pattern)
        assert options.ignore_types.search("TimerHandle")
        assert options.highlight_types.pattern == "Request"

    def test_invalid_pattern_rejected(self):
        with pytest.raises(InvalidOptionsError) as exc_info:
            canonicalize_options(ignore_types="(")
        assert exc_info.value.errors
        assert isinstance(exc_info.value, ValueError)

    @pytest.mark.parametrize(
        "roots,expected",
        [
            (3, frozenset({3})),
            ([2, 5], frozenset({2, 5})),
            ([], None),
            (None, None),
        ],
    )
    def test_roots_ids(self, roots, expected):
        assert canonicalize_options(roots=roots).roots == expected

    def test_roots_pattern(self):
        roots = canonicalize_options(roots="^Request$").roots
        assert isinstance(roots, re.Pattern)

    def test_roots_bool_rejected(self):
        with pytest.raises(InvalidOptionsError):
            canonicalize_options(roots=True)

    @pytest.mark.parametrize("field,value", [("padding", -1), ("width", 0), ("format", "html"), ("colors", [])])
    def test_out_of_range(self, field, value):
        with pytest.raises(InvalidOptionsError):
            canonicalize_options({field: value})

    def test_instance_returned_unchanged(self):
        options = canonicalize_options(width=50)
        assert canonicalize_options(options) is options

    def test_overrides_win_and_none_ignored(self):
        base = canonicalize_options(width=50, padding=2)
        merged = canonicalize_options(base, width=70, padding=None)
        assert merged.width == 70
        assert merged.padding == 2
        assert base.width == 50

    def test_patterns_survive_merge(self):
        base = canonicalize_options(ignore_types="Timer", roots=[2])
        merged = canonicalize_options(base, padding=0)
        assert merged.ignore_types.pattern == "Timer"
        assert merged.roots == frozenset({2})

    def test_unknown_keys_ignored(self):
        assert canonicalize_options({"unknown": 1, "width": 20}).width == 20

    def test_camel_case_by_alias(self):
        options = CnysaOptions.model_validate({"captureStacks": True, "includeTypes": "Task"})
        assert options.capture_stacks is True
        assert options.include_types.pattern == "Task"


class TestLoadDefaultOptions:
    """Option defaults from config files and the environment."""

    def test_nothing_configured(self, tmp_path):
        assert load_default_options(cwd=tmp_path, environ={}) == {}

    def test_json_config(self, tmp_path):
        (tmp_path / "cnysa.json").write_text('{"width": 60, "ignoreTypes": "Future"}')
        assert load_default_options(cwd=tmp_path, environ={}) == {"width": 60, "ignore_types": "Future"}

    def test_yaml_preferred_over_json(self, tmp_path):
        (tmp_path / "cnysa.yaml").write_text("padding: 3\n")
        (tmp_path / "cnysa.json").write_text('{"padding": 5}')
        assert load_default_options(cwd=tmp_path, environ={}) == {"padding": 3}

    def test_environment_overrides_file(self, tmp_path):
        (tmp_path / "cnysa.yaml").write_text("width: 60\npadding: 2\n")
        environ = {"CNYSA_WIDTH": "100", "CNYSA_NO_COLOR": "1"}
        values = load_default_options(cwd=tmp_path, environ=environ)
        assert values == {"width": 100, "padding": 2, "color": False}

    def test_unparseable_environment_skipped(self, tmp_path):
        assert load_default_options(cwd=tmp_path, environ={"CNYSA_WIDTH": "wide"}) == {}

    @pytest.mark.parametrize("content", ["width: [unclosed\n", "- just\n- a list\n", ""])
    def test_broken_config_falls_back(self, tmp_path, content):
        (tmp_path / "cnysa.yaml").write_text(content)
        assert load_default_options(cwd=tmp_path, environ={}) == {}

    def test_user_settings_file(self, tmp_path):
        user_dir = tmp_path / "home" / ".config" / "cnysa"
        user_dir.mkdir(parents=True)
        (user_dir / "settings.yaml").write_text("width: 42\npadding: 4\n")
        (tmp_path / "cnysa.yaml").write_text("padding: 0\n")

        assert load_default_options(cwd=tmp_path, environ={}) == {"width": 42, "padding": 0}
        assert load_default_options(cwd=tmp_path, environ={}, include_user=False) == {"padding": 0}
