"""
設定檔載入 / 驗證與 GenerationConfig 轉換測試。
"""
import json

import pytest

from airis_codegen.config import GenerationConfig, load_config, validate_config
from airis_codegen.errors import ConfigError


class TestGenerationConfig:

    def test_defaults(self):
        config = GenerationConfig()
        assert config.framework == "react"
        assert config.typescript is True
        assert config.styling == "css"
        assert config.accessibility.wcag_level == "AA"
        assert config.testing.unit_tests is False

    def test_from_dict_reads_camel_case(self):
        config = GenerationConfig.from_dict({
            "framework": "Vue",
            "typescript": False,
            "styling": "SCSS",
            "optimization": {"treeshaking": True, "lazyLoading": True},
            "accessibility": {"screenReader": True, "wcagLevel": "aaa"},
            "testing": {"unitTests": True},
            "documentation": True,
        })
        assert config.framework == "vue"
        assert config.typescript is False
        assert config.styling == "scss"
        assert config.optimization.treeshaking is True
        assert config.optimization.lazy_loading is True
        assert config.optimization.codesplitting is False
        assert config.accessibility.screen_reader is True
        assert config.accessibility.wcag_level == "AAA"
        assert config.testing.unit_tests is True
        assert config.documentation is True

    def test_from_empty_dict(self):
        assert GenerationConfig.from_dict({}) == GenerationConfig()
        assert GenerationConfig.from_dict(None) == GenerationConfig()

    def test_to_dict_is_plain(self):
        data = GenerationConfig().to_dict()
        assert data["optimization"]["treeshaking"] is False
        json.dumps(data)


class TestLoadConfig:

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(str(tmp_path / "nope.json")) == {}

    def test_loads_json(self, tmp_path):
        path = tmp_path / "figma-codegen.config.json"
        path.write_text(json.dumps({"generation": {"framework": "svelte"}}), encoding="utf-8")
        assert load_config(str(path)) == {"generation": {"framework": "svelte"}}

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_non_object_returns_empty(self, tmp_path, capsys):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_config(str(path)) == {}
        assert "格式錯誤" in capsys.readouterr().out


class TestValidateConfig:

    def test_unknown_keys_warn(self, capsys):
        validate_config({"figma": {"token": "x"}, "extra": 1})
        out = capsys.readouterr().out
        assert "未知頂層欄位 'extra'" in out
        assert "[figma] 未知欄位 'token'" in out

    def test_bad_values_warn(self, capsys):
        validate_config({"generation": {"framework": "solid", "styling": "less", "accessibility": {"wcagLevel": "B"}}})
        out = capsys.readouterr().out
        assert "generation.framework 'solid'" in out
        assert "generation.styling 'less'" in out
        assert "wcagLevel 'B'" in out

    def test_valid_config_is_silent(self, capsys):
        validate_config({
            "figma": {"fileKey": "abc"},
            "generation": {"framework": "react", "optimization": {"treeshaking": True}},
            "output": {"dir": "./out"},
        })
        assert capsys.readouterr().out == ""

    @pytest.mark.parametrize("sub", ["optimization", "accessibility"])
    def test_non_object_subsection_warns(self, capsys, sub):
        validate_config({"generation": {sub: "on"}})
        assert f"generation.{sub} 應為物件，目前是 str" in capsys.readouterr().out


class TestMalformedSections:

    def test_from_dict_ignores_non_object_sections(self):
        gen = GenerationConfig.from_dict({"optimization": True, "accessibility": "on", "testing": [1]})
        assert gen.optimization.treeshaking is False
        assert gen.accessibility.wcag_level == "AA"
        assert gen.testing.unit_tests is False

    def test_from_dict_non_object(self):
        assert GenerationConfig.from_dict("react") == GenerationConfig()
