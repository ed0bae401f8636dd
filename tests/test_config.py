# strata — block-based template inheritance and caching
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Tests for strata.config and Engine.from_config."""

import os
from pathlib import Path

import pytest

from strata import Engine, EngineConfig
from strata.cache import DEFAULT_TTL, FileCache


class TestFromEnv:
    def test_defaults(self):
        config = EngineConfig.from_env({})
        assert config.paths == []
        assert config.cache_enabled is True
        assert config.cache_dir is None
        assert config.default_ttl == DEFAULT_TTL

    def test_reads_environment(self, tmp_path):
        env = {
            "STRATA_TEMPLATE_PATH": os.pathsep.join([str(tmp_path / "a"), str(tmp_path / "b")]),
            "STRATA_CACHE": "on",
            "STRATA_CACHE_DIR": str(tmp_path / "cache"),
            "STRATA_CACHE_TTL": "120",
        }
        config = EngineConfig.from_env(env)
        assert config.paths == [tmp_path / "a", tmp_path / "b"]
        assert config.cache_enabled is True
        assert config.cache_dir == tmp_path / "cache"
        assert config.default_ttl == 120

    @pytest.mark.parametrize("value", ["0", "false", "No", "off", ""])
    def test_cache_disabled(self, value):
        assert EngineConfig.from_env({"STRATA_CACHE": value}).cache_enabled is False

    def test_explicit_values_win(self, tmp_path):
        env = {"STRATA_CACHE": "0", "STRATA_CACHE_TTL": "120", "STRATA_TEMPLATE_PATH": "/nowhere"}
        config = EngineConfig.from_env(env, paths=[tmp_path], cache_enabled=True, default_ttl=5)
        assert config.paths == [tmp_path]
        assert config.cache_enabled is True
        assert config.default_ttl == 5

    def test_invalid_ttl(self):
        with pytest.raises(ValueError, match="STRATA_CACHE_TTL"):
            EngineConfig.from_env({"STRATA_CACHE_TTL": "soon"})

    def test_expands_user(self):
        config = EngineConfig.from_env({"STRATA_CACHE_DIR": "~/strata-cache"})
        assert config.cache_dir == Path.home() / "strata-cache"

    def test_process_environment(self, monkeypatch):
        monkeypatch.setenv("STRATA_CACHE_TTL", "42")
        assert EngineConfig.from_env().default_ttl == 42


class TestEngineFromConfig:
    def test_file_cache(self, tmp_path):
        (tmp_path / "hello.html").write_text("hi")
        config = EngineConfig(paths=[tmp_path], cache_dir=tmp_path / "cache", default_ttl=60)
        engine = Engine.from_config(config)
        assert isinstance(engine.cache, FileCache)
        assert engine.cache.cache_dir == tmp_path / "cache"
        assert engine.ttl == 60
        assert engine.render("hello.html") == "hi"
        assert len(list((tmp_path / "cache").iterdir())) == 1

    def test_cache_disabled(self, tmp_path):
        engine = Engine.from_config(EngineConfig(paths=[tmp_path], cache_enabled=False))
        assert engine.cache is None
